from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path

from vidscribe.config import Settings
from vidscribe.models.submission import Stage
from vidscribe.pipeline import create_ingest_pipeline
from vidscribe.utils.logging_setup import setup_logging


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Run the vidscribe ingest pipeline on a local video file.")
    parser.add_argument("--media", required=True, help="Path to local video file")
    parser.add_argument("--prompt", default=None, help="Comma-separated keywords for the transcription")
    parser.add_argument(
        "--artifact-store",
        choices=["local", "s3", "upload_api"],
        default=None,
        help="Override ARTIFACT_STORE_BACKEND",
    )
    parser.add_argument("--follow", action="store_true", help="Print every status change as it happens")
    return parser.parse_args()


async def _run() -> int:
    args = _parse_args()
    media_path = Path(args.media)
    if not media_path.exists():
        raise SystemExit(f"Media not found: {media_path}")

    overrides = {"artifact_store_backend": args.artifact_store} if args.artifact_store else {}
    settings = Settings(**overrides)
    setup_logging(settings)

    pipeline = create_ingest_pipeline(settings)
    try:
        submission_id = await pipeline.submit(media_path.read_bytes(), args.prompt)
        if args.follow:
            async for event in pipeline.subscribe(submission_id):
                sub = event.submission
                print(f"[{event.kind.value}] stage={sub.stage.value} progress={sub.progress}")
        final = await pipeline.wait(submission_id)
    finally:
        await pipeline.aclose()

    print(json.dumps(final.to_dict(), ensure_ascii=False, indent=2))
    return 0 if final.stage == Stage.DONE else 1


def main() -> None:
    raise SystemExit(asyncio.run(_run()))


if __name__ == "__main__":
    main()
