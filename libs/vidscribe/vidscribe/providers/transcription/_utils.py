"""Shared helpers for HTTP transcription services."""

from __future__ import annotations

from typing import Any

import httpx

from vidscribe.error_codes import ErrorCode
from vidscribe.exceptions import TranscriptionError


def translate_http_error(provider: str, exc: httpx.HTTPError) -> TranscriptionError:
    if isinstance(exc, httpx.TimeoutException):
        return TranscriptionError(ErrorCode.TIMEOUT, f"request timed out: {exc}", provider=provider)
    if isinstance(exc, httpx.HTTPStatusError):
        status = exc.response.status_code
        detail = exc.response.text[:500].strip()
        return TranscriptionError(
            ErrorCode.REJECTED,
            f"request rejected (status={status}){': ' + detail if detail else ''}",
            provider=provider,
        )
    return TranscriptionError(ErrorCode.REJECTED, str(exc) or type(exc).__name__, provider=provider)


def extract_text(payload: Any, key: str) -> str:
    """Return `payload[key]` as a stripped string; raise ValueError when absent."""
    if not isinstance(payload, dict) or key not in payload:
        raise ValueError(f"response has no {key!r} field")
    value = payload.get(key)
    if not isinstance(value, str):
        raise ValueError(f"{key!r} is not a string")
    return value.strip()
