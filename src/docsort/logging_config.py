"""Process-wide logging setup for the CLI."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

from docsort.config.models import LoggingSettings

LOG_FILENAME = "docsort.log"
_HANDLER_MARKER = "_docsort_handler"
_NOISY_LOGGERS = ("LiteLLM", "litellm", "dspy", "httpx", "pdfminer")


def configure_logging(
    settings: LoggingSettings,
    log_dir: Optional[Path] = None,
    *,
    console: Optional[Console] = None,
) -> Optional[Path]:
    """Attach console and rotating-file handlers to the ``docsort`` logger.

    Calling this again replaces the handlers installed by a previous call.

    Args:
        settings: Logging section of the configuration.
        log_dir: Directory for the rotating log file; ``None`` disables file logging.
        console: Rich console used for stderr output.

    Returns:
        Optional[Path]: Log file path when file logging is active.
    """

    level = logging.getLevelName(settings.level.upper())
    if not isinstance(level, int):
        level = logging.WARNING

    logger = logging.getLogger("docsort")
    for handler in list(logger.handlers):
        if getattr(handler, _HANDLER_MARKER, False):
            logger.removeHandler(handler)
            handler.close()
    logger.setLevel(min(level, logging.INFO) if settings.file_logging and log_dir else level)
    logger.propagate = False

    stream_handler = RichHandler(
        console=console or Console(stderr=True),
        show_path=False,
        rich_tracebacks=True,
    )
    stream_handler.setLevel(level)
    setattr(stream_handler, _HANDLER_MARKER, True)
    logger.addHandler(stream_handler)

    log_path: Optional[Path] = None
    if settings.file_logging and log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            log_path = log_dir / LOG_FILENAME
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=max(1, settings.max_size_mb) * 1024 * 1024,
                backupCount=settings.backup_count,
                encoding="utf-8",
            )
        except OSError as exc:
            logger.warning("File logging disabled: %s", exc)
            log_path = None
        else:
            file_handler.setFormatter(
                logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
            )
            file_handler.setLevel(min(level, logging.INFO))
            setattr(file_handler, _HANDLER_MARKER, True)
            logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return log_path


__all__ = ["LOG_FILENAME", "configure_logging"]
