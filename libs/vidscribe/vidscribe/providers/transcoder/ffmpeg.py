"""FFmpeg-based transcoder (video container -> compressed audio track)."""

from __future__ import annotations

import asyncio
import json
import logging
import re
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import ConfigurationError, TranscodeError
from vidscribe.models.artifact import AudioArtifact, TranscodeOptions
from vidscribe.providers.transcoder.base import ProgressReporter, Transcoder
from vidscribe.utils.ffmpeg import resolve_ffmpeg_bin, resolve_ffprobe_bin

logger = logging.getLogger(__name__)

_STDERR_TAIL_CHARS = 2000
_BANNER_INPUT_RE = re.compile(r"^Input #\d+, (.+?), from ", re.MULTILINE)
_BANNER_STREAM_RE = re.compile(r"^\s*Stream #\d+:\d+\S*: (\w+):", re.MULTILINE)
_BANNER_DURATION_RE = re.compile(r"Duration: (\d+):(\d{2}):(\d{2}(?:\.\d+)?)")


@dataclass(frozen=True)
class MediaProbe:
    stream_types: list[str] = field(default_factory=list)
    format_name: str | None = None
    duration_s: float | None = None

    @property
    def has_audio(self) -> bool:
        return "audio" in self.stream_types


def parse_probe_output(raw: bytes | str) -> MediaProbe:
    """Parse `ffprobe -of json` output; raises ValueError on malformed JSON."""
    payload: dict[str, Any] = json.loads(raw or "{}")
    streams = [s for s in list(payload.get("streams") or []) if isinstance(s, dict)]
    fmt = payload.get("format") if isinstance(payload.get("format"), dict) else {}

    duration: float | None = None
    try:
        duration = float(fmt.get("duration"))
    except (TypeError, ValueError):
        duration = None
    if duration is not None and duration <= 0:
        duration = None

    return MediaProbe(
        stream_types=[str(s.get("codec_type") or "") for s in streams],
        format_name=str(fmt.get("format_name") or "") or None,
        duration_s=duration,
    )


def parse_ffmpeg_banner(stderr_text: str) -> MediaProbe | None:
    """Parse the input description `ffmpeg -i <file>` prints to stderr.

    Returns None when ffmpeg could not open the input at all.
    """
    text = str(stderr_text or "")
    match = _BANNER_INPUT_RE.search(text)
    if match is None:
        return None

    duration: float | None = None
    dm = _BANNER_DURATION_RE.search(text)
    if dm is not None:
        hours, minutes, seconds = dm.groups()
        duration = int(hours) * 3600 + int(minutes) * 60 + float(seconds)
        if duration <= 0:
            duration = None

    return MediaProbe(
        stream_types=[kind.lower() for kind in _BANNER_STREAM_RE.findall(text)],
        format_name=match.group(1).strip() or None,
        duration_s=duration,
    )


def parse_out_time_us(line: str) -> int | None:
    """Extract the encoded position (microseconds) from one `-progress` line."""
    key, sep, value = line.strip().partition("=")
    if not sep or key not in {"out_time_us", "out_time_ms"}:
        return None
    # ffmpeg reports out_time_ms in microseconds as well.
    try:
        return max(0, int(value))
    except ValueError:
        return None


def progress_percent(out_time_us: int, duration_s: float | None) -> int:
    if not duration_s or duration_s <= 0:
        return 0
    pct = int(out_time_us / (duration_s * 1_000_000) * 100)
    # 100 is reserved for the completed artifact.
    return max(0, min(99, pct))


def _stderr_tail(stderr: bytes) -> str:
    text = stderr.decode(errors="ignore").strip()
    return text[-_STDERR_TAIL_CHARS:]


def _classify_ffmpeg_failure(stderr_text: str) -> ErrorCode:
    lowered = stderr_text.lower()
    if "matches no streams" in lowered or "does not contain any stream" in lowered:
        return ErrorCode.NO_AUDIO_STREAM
    if "invalid data found when processing input" in lowered:
        return ErrorCode.UNSUPPORTED_CONTAINER
    return ErrorCode.ENCODE_FAILURE


async def _terminate(process: asyncio.subprocess.Process) -> None:
    if process.returncode is not None:
        return
    try:
        process.kill()
    except ProcessLookupError:
        pass
    await process.wait()


class FFmpegTranscoder(Transcoder):
    def __init__(
        self,
        ffmpeg_bin: str = "ffmpeg",
        ffprobe_bin: str = "ffprobe",
        *,
        work_dir: str | None = None,
        timeout_s: float | None = None,
    ) -> None:
        self.ffmpeg_bin = resolve_ffmpeg_bin(ffmpeg_bin)
        self.ffprobe_bin: str | None = resolve_ffprobe_bin(ffprobe_bin, ffmpeg_bin=self.ffmpeg_bin)
        self.work_dir = work_dir
        self.timeout_s = timeout_s

    async def _spawn(self, args: list[str]) -> asyncio.subprocess.Process:
        try:
            return await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except FileNotFoundError as exc:
            raise TranscodeError(
                ErrorCode.ENCODE_FAILURE,
                f"binary not found: {args[0]}. Install ffmpeg and ensure it is in PATH "
                "(or install `imageio-ffmpeg`, or set TRANSCODE_FFMPEG_BIN/TRANSCODE_FFPROBE_BIN).",
            ) from exc

    async def probe(self, input_path: str) -> MediaProbe:
        if not self.ffprobe_bin:
            return await self._probe_with_ffmpeg(input_path)
        return await self._probe_with_ffprobe(input_path)

    async def _probe_with_ffmpeg(self, input_path: str) -> MediaProbe:
        # Without an output file ffmpeg only describes the input and exits 1.
        process = await self._spawn([self.ffmpeg_bin, "-hide_banner", "-nostdin", "-i", str(input_path)])
        try:
            _, stderr = await process.communicate()
        except asyncio.CancelledError:
            await _terminate(process)
            raise

        probe = parse_ffmpeg_banner(stderr.decode(errors="ignore"))
        if probe is None:
            raise TranscodeError(
                ErrorCode.UNSUPPORTED_CONTAINER,
                f"ffmpeg could not read input: {_stderr_tail(stderr)}",
            )
        return probe

    async def _probe_with_ffprobe(self, input_path: str) -> MediaProbe:
        process = await self._spawn(
            [
                self.ffprobe_bin,
                "-v",
                "error",
                "-show_entries",
                "stream=index,codec_type,codec_name:format=format_name,duration",
                "-of",
                "json",
                str(input_path),
            ]
        )
        try:
            stdout, stderr = await process.communicate()
        except asyncio.CancelledError:
            await _terminate(process)
            raise

        if process.returncode != 0:
            raise TranscodeError(
                ErrorCode.UNSUPPORTED_CONTAINER,
                f"ffprobe could not read input (code={process.returncode}): {_stderr_tail(stderr)}",
            )
        try:
            return parse_probe_output(stdout)
        except ValueError as exc:
            raise TranscodeError(
                ErrorCode.UNSUPPORTED_CONTAINER, f"unreadable ffprobe output: {exc}"
            ) from exc

    def _encode_args(self, input_path: str, output_path: str, options: TranscodeOptions) -> list[str]:
        return [
            self.ffmpeg_bin,
            "-hide_banner",
            "-nostdin",
            "-y",
            "-i",
            input_path,
            "-map",
            options.stream_selector,
            "-vn",
            "-b:a",
            options.bitrate,
            "-acodec",
            options.codec,
            "-f",
            options.container_format,
            "-progress",
            "pipe:1",
            "-nostats",
            output_path,
        ]

    async def _encode(
        self,
        args: list[str],
        *,
        duration_s: float | None,
        progress_reporter: ProgressReporter | None,
    ) -> None:
        process = await self._spawn(args)
        assert process.stdout is not None and process.stderr is not None
        # Drain stderr concurrently so a chatty encoder cannot block on a full pipe.
        stderr_task = asyncio.ensure_future(process.stderr.read())
        last_pct = 0
        try:
            async for raw_line in process.stdout:
                out_us = parse_out_time_us(raw_line.decode(errors="ignore"))
                if out_us is None:
                    continue
                pct = progress_percent(out_us, duration_s)
                if pct > last_pct:
                    last_pct = pct
                    if progress_reporter is not None:
                        await progress_reporter.report(pct, "transcoding")
            returncode = await process.wait()
            stderr = await stderr_task
        except BaseException:
            # Cancellation or a reporter failure: stop the engine and free its buffers.
            stderr_task.cancel()
            await _terminate(process)
            raise

        if returncode < 0:
            raise TranscodeError(
                ErrorCode.CANCELLED, f"ffmpeg terminated by signal {-returncode}"
            )
        if returncode != 0:
            tail = _stderr_tail(stderr)
            raise TranscodeError(
                _classify_ffmpeg_failure(tail), f"ffmpeg failed (code={returncode}): {tail}"
            )

    async def transcode(
        self,
        video_bytes: bytes,
        options: TranscodeOptions,
        *,
        progress_reporter: ProgressReporter | None = None,
    ) -> AudioArtifact:
        if not video_bytes:
            raise ConfigurationError("video bytes are empty")

        if self.work_dir:
            Path(self.work_dir).mkdir(parents=True, exist_ok=True)

        with tempfile.TemporaryDirectory(prefix="vidscribe-", dir=self.work_dir) as tmp:
            input_path = Path(tmp) / "input"
            output_path = Path(tmp) / f"output.{options.file_extension}"
            await asyncio.to_thread(input_path.write_bytes, bytes(video_bytes))

            probe = await self.probe(str(input_path))
            if not probe.stream_types:
                raise TranscodeError(ErrorCode.UNSUPPORTED_CONTAINER, "no decodable streams found")
            if not probe.has_audio:
                raise TranscodeError(
                    ErrorCode.NO_AUDIO_STREAM,
                    f"container has no audio track (streams={','.join(probe.stream_types)})",
                )

            if progress_reporter is not None:
                await progress_reporter.report(0, "transcoding")

            args = self._encode_args(str(input_path), str(output_path), options)
            logger.debug("ffmpeg encode: %s", " ".join(args))
            try:
                await asyncio.wait_for(
                    self._encode(
                        args,
                        duration_s=probe.duration_s,
                        progress_reporter=progress_reporter,
                    ),
                    timeout=self.timeout_s,
                )
            except asyncio.TimeoutError as exc:
                raise TranscodeError(
                    ErrorCode.ENCODE_FAILURE, f"ffmpeg timed out after {self.timeout_s}s"
                ) from exc

            data = await asyncio.to_thread(output_path.read_bytes) if output_path.exists() else b""
            if not data:
                raise TranscodeError(ErrorCode.ENCODE_FAILURE, "ffmpeg produced an empty output")

        if progress_reporter is not None:
            await progress_reporter.report(100, "transcoded")

        logger.info(
            "transcoded (input_bytes=%d, output_bytes=%d, codec=%s, bitrate=%s)",
            len(video_bytes),
            len(data),
            options.codec,
            options.bitrate,
        )
        return AudioArtifact(
            data=data,
            mime_type=options.mime_type,
            file_extension=options.file_extension,
            duration_s=probe.duration_s,
        )
