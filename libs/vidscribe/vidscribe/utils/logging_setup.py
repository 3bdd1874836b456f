"""Logging initialization helpers."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from vidscribe.config import LoggingSettings, Settings

# Client libraries that log every request at INFO/DEBUG.
_NOISY_LOGGERS = ("httpx", "httpcore", "botocore", "boto3", "urllib3")


def _build_handlers(cfg: LoggingSettings, *, log_dir: str, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))

    handlers: list[logging.Handler] = []
    if cfg.console:
        handlers.append(logging.StreamHandler())

    if cfg.file:
        file_path = Path(str(cfg.file))
        if not file_path.is_absolute():
            file_path = Path(log_dir) / file_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=int(cfg.max_bytes),
                backupCount=int(cfg.backup_count),
                encoding="utf-8",
            )
        )

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(settings: Settings, *, force: bool = False) -> None:
    """Configure the `vidscribe` logger tree from Settings.

    Framework loggers (uvicorn, fastapi) are left alone; chatty HTTP/S3 client
    loggers are capped at WARNING unless the configured level is DEBUG.
    Calling again is a no-op unless `force=True`.
    """
    logger = logging.getLogger("vidscribe")
    if getattr(logger, "_vidscribe_configured", False) and not force:
        return

    level_name = str(settings.logging.level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)

    logger.setLevel(level)
    logger.handlers = _build_handlers(settings.logging, log_dir=settings.log_dir, level=level)
    logger.propagate = False

    if level > logging.DEBUG:
        for name in _NOISY_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    setattr(logger, "_vidscribe_configured", True)
