"""vidscribe: video upload -> audio artifact -> transcript ingest pipeline."""

__version__ = "0.1.0"
