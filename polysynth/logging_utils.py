"""Logging for the ``polysynth`` logger tree.

Console output goes to stderr, INFO and up unless ``POLYSYNTH_DEBUG`` is set.
Everything at DEBUG and up is appended to ``polysynth.log`` in the log
directory, which is also where :func:`log_exception` records CLI failures.
"""

from __future__ import annotations

import logging
import os
import sys
from pathlib import Path

from pydantic import BaseModel, ConfigDict

ROOT_LOGGER = "polysynth"
LOG_DIR_ENV = "POLYSYNTH_LOG_DIR"
DEBUG_ENV = "POLYSYNTH_DEBUG"
_LOG_FILE = "polysynth.log"
_CONSOLE_FORMAT = "%(levelname)s %(name)s: %(message)s"
_FILE_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
_FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})

_LOGGER = logging.getLogger(f"{ROOT_LOGGER}.logging")
_logging_configured = False


class LogSettings(BaseModel):
    """Where logs go and how chatty the console is."""

    log_dir: Path
    debug: bool = False

    model_config = ConfigDict(frozen=True)

    @classmethod
    def from_env(cls) -> "LogSettings":
        configured = os.environ.get(LOG_DIR_ENV)
        log_dir = (
            Path(configured).expanduser()
            if configured
            else Path.home() / ".cache" / ROOT_LOGGER / "logs"
        )
        flag = os.environ.get(DEBUG_ENV, "").strip().lower()
        return cls(log_dir=log_dir, debug=flag not in _FALSE_VALUES)

    @property
    def log_path(self) -> Path:
        return self.log_dir / _LOG_FILE

    @property
    def console_level(self) -> int:
        return logging.DEBUG if self.debug else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return the child logger ``polysynth.<name>``."""
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def debug_enabled() -> bool:
    return LogSettings.from_env().debug


def get_log_dir() -> Path:
    return LogSettings.from_env().log_dir


def get_log_path() -> Path:
    return LogSettings.from_env().log_path


def _open_log_file(settings: LogSettings) -> logging.FileHandler:
    settings.log_dir.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(settings.log_path, encoding="utf-8")
    handler.setLevel(logging.DEBUG)
    handler.setFormatter(logging.Formatter(_FILE_FORMAT, datefmt=_FILE_DATE_FORMAT))
    return handler


def configure_logging(*, force: bool = False, settings: LogSettings | None = None) -> Path | None:
    """Attach console and file handlers to the ``polysynth`` logger.

    Returns the log file path, or ``None`` when the file could not be opened.
    A console handler is only added when the host has not configured the root
    logger, so applications embedding the package keep control of stderr.
    """
    global _logging_configured
    settings = settings or LogSettings.from_env()
    logger = logging.getLogger(ROOT_LOGGER)
    if _logging_configured and not force:
        return next(
            (Path(h.baseFilename) for h in logger.handlers if isinstance(h, logging.FileHandler)),
            None,
        )

    logger.setLevel(logging.DEBUG)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    if force or not logging.getLogger().handlers:
        console = logging.StreamHandler(stream=sys.__stderr__)
        console.setLevel(settings.console_level)
        console.setFormatter(logging.Formatter(_CONSOLE_FORMAT))
        logger.addHandler(console)

    log_path: Path | None = None
    try:
        logger.addHandler(_open_log_file(settings))
        log_path = settings.log_path
    except OSError as exc:
        _LOGGER.warning("File logging disabled, cannot open %s: %s", settings.log_path, exc)

    logger.propagate = True
    _logging_configured = True
    return log_path


def log_exception(context: str, exc: BaseException) -> Path | None:
    """Append ``exc`` and its traceback to the log file, bypassing the console."""
    settings = LogSettings.from_env()
    try:
        handler = _open_log_file(settings)
    except OSError as log_exc:
        _LOGGER.warning("Failed to write log file: %s", log_exc)
        return None
    record = logging.LogRecord(
        name=ROOT_LOGGER,
        level=logging.ERROR,
        pathname=__file__,
        lineno=0,
        msg="%s failed: %s: %s",
        args=(context, type(exc).__name__, exc),
        exc_info=(type(exc), exc, exc.__traceback__),
    )
    try:
        handler.handle(record)
    finally:
        handler.close()
    return settings.log_path
