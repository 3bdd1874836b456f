"""Configuration management using pydantic-settings."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from vidscribe.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class TranscodeConfig(BaseSettings):
    """Codec engine (ffmpeg) configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCODE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"

    # Output audio track. One media type / extension pair per deployment.
    codec: str = "libmp3lame"
    bitrate: str = "20k"
    stream_selector: str = "0:a:0"
    container_format: str = "mp3"
    mime_type: str = "audio/mpeg"
    file_extension: str = "mp3"

    max_concurrency: int = Field(default=2, ge=1)
    timeout_s: float | None = Field(default=None, gt=0)


class TranscriptionConfig(BaseSettings):
    """Transcription Service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="TRANSCRIPTION_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    provider: str = "upload_api"  # "upload_api" | "openai_compat"
    base_url: str = "http://localhost:3333"
    api_key: str = ""
    model: str = "whisper-1"
    language: str | None = None
    timeout: float = Field(default=300.0, gt=0)
    max_concurrent: int = Field(default=10, ge=1)


class PipelineConfig(BaseSettings):
    """Ingest pipeline tuning."""

    model_config = SettingsConfigDict(
        env_prefix="PIPELINE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    progress_min_step: int = Field(default=5, ge=1, le=100)
    progress_min_interval_s: float = Field(default=2.0, ge=0)


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"
    upload_max_bytes: int = Field(default=2 * 1024 * 1024 * 1024, ge=1)

    # Submissions
    submission_store_backend: str = "memory"  # "memory" | "redis"
    submission_ttl_days: int = Field(default=7, ge=1)
    redis_url: str = "redis://localhost:6379"

    # Artifacts
    artifact_store_backend: str = "local"  # "local" | "s3" | "upload_api"
    artifact_max_bytes: int | None = Field(default=None, ge=1)
    upload_api_base_url: str = "http://localhost:3333"
    upload_api_timeout: float = Field(default=120.0, gt=0)

    # S3/MinIO
    s3_endpoint: str = "http://localhost:9000"
    s3_access_key: str = "minioadmin"
    s3_secret_key: str = "minioadmin"
    s3_bucket_name: str = "vidscribe"

    transcode: TranscodeConfig = TranscodeConfig()
    transcription: TranscriptionConfig = TranscriptionConfig()
    pipeline: PipelineConfig = PipelineConfig()

    # Logging
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _validate(self) -> "Settings":
        # Running apps with `uv run --directory apps/*` changes CWD; keep paths stable.
        self.data_dir = _resolve_repo_path(self.data_dir)
        self.log_dir = _resolve_repo_path(self.log_dir)
        for p in (self.data_dir, self.log_dir):
            Path(p).mkdir(parents=True, exist_ok=True)

        store_backend = str(self.artifact_store_backend or "").strip().lower()
        if store_backend not in {"local", "s3", "upload_api"}:
            raise ConfigurationError(
                f"Unknown ARTIFACT_STORE_BACKEND: {self.artifact_store_backend!r} "
                "(expected: local/s3/upload_api)"
            )
        submission_backend = str(self.submission_store_backend or "").strip().lower()
        if submission_backend not in {"memory", "redis"}:
            raise ConfigurationError(
                f"Unknown SUBMISSION_STORE_BACKEND: {self.submission_store_backend!r} "
                "(expected: memory/redis)"
            )
        # openai_compat uploads the audio itself, so it must be able to read it back.
        provider = str(self.transcription.provider or "").strip().lower()
        if provider == "openai_compat" and store_backend == "upload_api":
            raise ConfigurationError(
                "TRANSCRIPTION_PROVIDER=openai_compat needs a readable artifact store "
                "(ARTIFACT_STORE_BACKEND=local or s3)"
            )
        return self

    @property
    def submission_ttl_seconds(self) -> int:
        return int(self.submission_ttl_days) * 24 * 3600
