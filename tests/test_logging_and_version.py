from __future__ import annotations

import logging
import logging.handlers
from pathlib import Path

import pytest

import version
from marks_overlay import logging_utils


@pytest.fixture
def restore_logging():
    logger = logging.getLogger(logging_utils.LOGGER_NAME)
    level = logger.level
    yield logger
    handler = logging_utils.active_handler()
    if handler is not None:
        logger.removeHandler(handler)
        handler.close()
    logging_utils._active_handler = None
    logger.setLevel(level)


@pytest.mark.parametrize(
    "identifier, expected",
    [
        ("0.3.1-dev", True),
        ("1.0.0.dev2", True),
        ("1.0-dev-rc", True),
        ("1.0.0", False),
        ("", True),
    ],
)
def test_is_dev_build_reads_version_identifier(monkeypatch, identifier, expected) -> None:
    monkeypatch.delenv(version.DEV_MODE_ENV_VAR, raising=False)
    assert version.is_dev_build(identifier) is expected


@pytest.mark.parametrize("value, expected", [("1", True), ("on", True), ("false", False), ("No", False)])
def test_dev_mode_env_overrides_version(monkeypatch, value, expected) -> None:
    monkeypatch.setenv(version.DEV_MODE_ENV_VAR, value)
    assert version.is_dev_build("1.0.0") is expected
    assert version.is_dev_build("1.0.0-dev") is expected


def test_unrecognised_env_value_falls_back_to_version(monkeypatch) -> None:
    monkeypatch.setenv(version.DEV_MODE_ENV_VAR, "maybe")
    assert version.is_dev_build("1.0.0") is False
    assert version.is_dev_build("2.0.0-dev") is True


def test_resolve_logs_dir_is_under_root(tmp_path: Path) -> None:
    assert logging_utils.resolve_logs_dir(tmp_path) == tmp_path / "logs"


def test_configure_logging_writes_rotating_file(tmp_path: Path, restore_logging) -> None:
    log_dir = tmp_path / "logs"
    logger = logging_utils.configure_logging(logging.DEBUG, log_dir, retention=3)
    handler = logging_utils.active_handler()
    assert isinstance(handler, logging.handlers.RotatingFileHandler)
    assert handler.backupCount == 2
    assert handler.maxBytes == logging_utils.MAX_LOG_BYTES

    logging.getLogger("MarksOverlay.Filter").debug("discarded rect")
    handler.flush()

    contents = (log_dir / logging_utils.LOG_FILE_NAME).read_text(encoding="utf-8")
    assert logger.name == "MarksOverlay"
    assert "UTC - DEBUG - MarksOverlay.Filter - discarded rect" in contents


def test_configure_logging_replaces_previous_handler(tmp_path: Path, restore_logging) -> None:
    logging_utils.configure_logging(logging.INFO, tmp_path / "first")
    first = logging_utils.active_handler()
    logging_utils.configure_logging(logging.INFO, tmp_path / "second")
    second = logging_utils.active_handler()
    assert first is not second
    assert first not in restore_logging.handlers
    assert second in restore_logging.handlers


def test_configure_logging_without_dir_uses_stream(restore_logging) -> None:
    logging_utils.configure_logging(logging.WARNING)
    handler = logging_utils.active_handler()
    assert type(handler) is logging.StreamHandler
    assert restore_logging.level == logging.WARNING


def test_unusable_log_dir_falls_back_to_stream(tmp_path: Path, restore_logging, caplog) -> None:
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("x", encoding="utf-8")
    with caplog.at_level(logging.WARNING, logger="MarksOverlay"):
        logging_utils.configure_logging(logging.INFO, blocker / "logs")
    assert type(logging_utils.active_handler()) is logging.StreamHandler
    assert "Failed to initialise file logging" in caplog.text


@pytest.mark.parametrize("flag, expected", [("1", logging.DEBUG), ("0", logging.INFO)])
def test_configure_logging_defaults_level_from_build(monkeypatch, restore_logging, flag, expected) -> None:
    monkeypatch.setenv(version.DEV_MODE_ENV_VAR, flag)
    logging_utils.configure_logging()
    assert restore_logging.level == expected
