from __future__ import annotations

import logging
from pathlib import Path

import pytest

from polysynth import logging_utils
from polysynth.logging_utils import (
    DEBUG_ENV,
    LOG_DIR_ENV,
    LogSettings,
    configure_logging,
    get_log_dir,
    get_log_path,
    get_logger,
    log_exception,
)


def test_log_path_uses_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    assert get_log_dir() == tmp_path
    assert get_log_path() == tmp_path / "polysynth.log"


def test_log_exception_appends_traceback(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    try:
        raise RuntimeError("boom")
    except RuntimeError as exc:
        path = log_exception("render", exc)

    assert path == tmp_path / "polysynth.log"
    text = path.read_text(encoding="utf-8")
    assert "render failed: RuntimeError: boom" in text
    assert "Traceback" in text


def test_configure_logging_force_adds_file_handler(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    logger = logging.getLogger("polysynth")
    saved = list(logger.handlers)
    try:
        configure_logging(force=True)
        file_handlers = [h for h in logger.handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert Path(file_handlers[0].baseFilename) == tmp_path / "polysynth.log"
        assert logger.propagate
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in saved:
            logger.addHandler(handler)


def test_configure_logging_is_idempotent(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(logging_utils, "_logging_configured", True)
    logger = logging.getLogger("polysynth")
    before = list(logger.handlers)
    configure_logging()
    assert logger.handlers == before


@pytest.mark.parametrize(
    ("value", "expected"),
    [("", False), ("0", False), ("false", False), ("OFF", False), ("1", True), ("yes", True)],
)
def test_log_settings_reads_debug_flag(
    value: str, expected: bool, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    monkeypatch.setenv(LOG_DIR_ENV, str(tmp_path))
    monkeypatch.setenv(DEBUG_ENV, value)
    settings = LogSettings.from_env()
    assert settings.debug is expected
    assert settings.console_level == (logging.DEBUG if expected else logging.INFO)


def test_get_logger_is_a_child_of_the_package_logger() -> None:
    assert get_logger("scheduler").name == "polysynth.scheduler"
    assert get_logger("scheduler").parent is logging.getLogger("polysynth")


def test_configure_logging_returns_none_when_log_dir_is_unusable(tmp_path: Path) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("", encoding="utf-8")
    logger = logging.getLogger("polysynth")
    saved = list(logger.handlers)
    try:
        path = configure_logging(force=True, settings=LogSettings(log_dir=blocker / "logs"))
        assert path is None
        assert not any(isinstance(h, logging.FileHandler) for h in logger.handlers)
    finally:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()
        for handler in saved:
            logger.addHandler(handler)
