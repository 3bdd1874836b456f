"""FFmpeg binary resolution helpers.

Prefer the configured path, then `PATH`, then the `imageio-ffmpeg` bundled binary.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def _which(binary: str) -> str | None:
    if Path(binary).exists():
        return binary
    return shutil.which(binary)


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str:
    ffmpeg_bin = (ffmpeg_bin or "ffmpeg").strip()

    found = _which(ffmpeg_bin)
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("failed to resolve bundled ffmpeg (%s); fallback to %r", exc, ffmpeg_bin)
        return ffmpeg_bin


def resolve_ffprobe_bin(ffprobe_bin: str = "ffprobe", *, ffmpeg_bin: str | None = None) -> str | None:
    """Resolve ffprobe; when missing, look next to the resolved ffmpeg binary.

    Returns None when no ffprobe is available (`imageio-ffmpeg` ships ffmpeg only).
    """
    ffprobe_bin = (ffprobe_bin or "ffprobe").strip()

    found = _which(ffprobe_bin)
    if found:
        return found

    if ffmpeg_bin:
        sibling = Path(ffmpeg_bin).with_name(Path(ffmpeg_bin).name.replace("ffmpeg", "ffprobe"))
        if sibling != Path(ffmpeg_bin) and sibling.exists():
            return str(sibling)

    logger.info("ffprobe not found (%r); media probing falls back to ffmpeg", ffprobe_bin)
    return None
