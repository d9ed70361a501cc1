"""Unit tests for the logging system with platform-aware paths and rotation."""

import logging
from collections.abc import Iterator
from pathlib import Path
from unittest.mock import patch

import pytest

from efis.core.logging_system import (
    DEFAULT_LOG_FILENAME,
    LoggingError,
    get_logger,
    get_platform_log_dir,
    initialize_logging,
    rotate_logs,
    shutdown_logging,
)


@pytest.fixture
def log_dir(tmp_path: Path) -> Iterator[Path]:
    """Redirect the platform log directory into a temporary directory."""
    with patch("efis.core.logging_system.get_platform_log_dir", return_value=tmp_path):
        yield tmp_path
    shutdown_logging()


class TestPlatformLogDir:
    """Tests for get_platform_log_dir."""

    def test_macos_log_dir(self) -> None:
        """Test macOS log directory path."""
        with patch("platform.system", return_value="Darwin"):
            assert get_platform_log_dir() == Path.home() / "Library" / "Logs" / "EFIS"

    def test_linux_log_dir(self) -> None:
        """Test Linux log directory path."""
        with patch("platform.system", return_value="Linux"):
            assert get_platform_log_dir() == Path.home() / ".efis" / "logs"

    def test_windows_log_dir(self) -> None:
        """Test Windows log directory path."""
        with patch("platform.system", return_value="Windows"):
            with patch.dict("os.environ", {"APPDATA": "C:/Users/Pilot/AppData/Roaming"}):
                log_dir = get_platform_log_dir()
                assert log_dir == Path("C:/Users/Pilot/AppData/Roaming") / "EFIS" / "Logs"

    def test_unknown_platform_defaults_to_linux(self) -> None:
        """Test unknown platforms use the Linux-style path."""
        with patch("platform.system", return_value="FreeBSD"):
            assert ".efis/logs" in get_platform_log_dir().as_posix()


class TestLogRotation:
    """Tests for rotate_logs."""

    def test_no_existing_log(self, tmp_path: Path) -> None:
        """Test rotation when there is nothing to rotate."""
        rotate_logs(tmp_path, "efis.log", 5)
        assert list(tmp_path.glob("*")) == []

    def test_single_file(self, tmp_path: Path) -> None:
        """Test that the current log becomes .1."""
        (tmp_path / "efis.log").write_text("flight 1")

        rotate_logs(tmp_path, "efis.log", 5)

        assert not (tmp_path / "efis.log").exists()
        assert (tmp_path / "efis.log.1").read_text() == "flight 1"

    def test_shifts_existing_backups(self, tmp_path: Path) -> None:
        """Test that older backups shift up by one."""
        (tmp_path / "efis.log").write_text("current")
        (tmp_path / "efis.log.1").write_text("previous-1")
        (tmp_path / "efis.log.2").write_text("previous-2")

        rotate_logs(tmp_path, "efis.log", 5)

        assert (tmp_path / "efis.log.1").read_text() == "current"
        assert (tmp_path / "efis.log.2").read_text() == "previous-1"
        assert (tmp_path / "efis.log.3").read_text() == "previous-2"

    def test_deletes_oldest(self, tmp_path: Path) -> None:
        """Test that backups beyond keep_count are dropped."""
        (tmp_path / "efis.log").write_text("current")
        for i in range(1, 4):
            (tmp_path / f"efis.log.{i}").write_text(f"old-{i}")

        rotate_logs(tmp_path, "efis.log", keep_count=3)

        assert not (tmp_path / "efis.log.4").exists()
        assert (tmp_path / "efis.log.3").read_text() == "old-2"


class TestLoggingInitialization:
    """Tests for initialize_logging."""

    def test_initialize_with_platform_dir(self, log_dir: Path) -> None:
        """Test that the combined log is written to the platform directory."""
        initialize_logging(use_platform_dir=True)
        get_logger("terrain").info("Window loaded")

        assert (log_dir / DEFAULT_LOG_FILENAME).exists()

    def test_initialize_from_config_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """Test reading the log directory from a config file."""
        monkeypatch.chdir(tmp_path)
        config = tmp_path / "logging.yaml"
        config.write_text(
            "log_dir: flight_logs\n"
            "combined_log:\n"
            "  filename: cockpit.log\n"
            "console:\n"
            "  enabled: false\n"
        )

        initialize_logging(config, use_platform_dir=False)
        get_logger("terrain").info("Window loaded")
        shutdown_logging()

        assert "Window loaded" in (tmp_path / "flight_logs" / "cockpit.log").read_text()

    def test_missing_config(self) -> None:
        """Test that a missing config file raises LoggingError."""
        with pytest.raises(LoggingError, match="Logging config file not found"):
            initialize_logging(config_path="/nonexistent/logging.yaml")

    def test_invalid_config(self, tmp_path: Path) -> None:
        """Test that malformed YAML raises LoggingError."""
        config = tmp_path / "logging.yaml"
        config.write_text("console: [unclosed\n")

        with pytest.raises(LoggingError, match="Failed to load logging config"):
            initialize_logging(config)


class TestLoggerFunctionality:
    """Tests for get_logger."""

    def test_get_logger_caches_loggers(self, log_dir: Path) -> None:
        """Test that loggers are created once per name."""
        initialize_logging(use_platform_dir=True)

        logger = get_logger("terrain_plugin")

        assert isinstance(logger, logging.Logger)
        assert logger.name == "terrain_plugin"
        assert get_logger("terrain_plugin") is logger

    def test_logger_writes_all_levels_to_file(self, log_dir: Path) -> None:
        """Test that the combined log receives debug output."""
        initialize_logging(use_platform_dir=True)
        logger = get_logger("terrain")
        logger.debug("Loading tile E100S10")
        logger.error("Tile W060N40 unavailable")
        shutdown_logging()

        content = (log_dir / DEFAULT_LOG_FILENAME).read_text()
        assert "Loading tile E100S10" in content
        assert "Tile W060N40 unavailable" in content

    def test_component_dedicated_file(self, tmp_path: Path, log_dir: Path) -> None:
        """Test per-component level and dedicated file."""
        config = tmp_path / "logging.yaml"
        config.write_text(
            "components:\n"
            "  reload_worker:\n"
            "    level: WARNING\n"
            "    dedicated_file: true\n"
            "  chatty:\n"
            "    enabled: false\n"
        )
        initialize_logging(config, use_platform_dir=True)

        logger = get_logger("reload_worker")
        logger.info("suppressed")
        logger.warning("retrying tile")

        assert logger.level == logging.WARNING
        assert get_logger("chatty").disabled
        for handler in logger.handlers:
            handler.flush()
        content = (log_dir / "reload_worker.log").read_text()
        assert "retrying tile" in content
        assert "suppressed" not in content

    def test_auto_initialize_on_first_logger(self, log_dir: Path) -> None:
        """Test that get_logger initializes logging on demand."""
        shutdown_logging()
        logger = get_logger("auto_init")
        assert isinstance(logger, logging.Logger)


class TestLogRotationIntegration:
    """Tests for rotation across sessions."""

    def test_startup_rotates_previous_session(self, log_dir: Path) -> None:
        """Test that a new session moves the previous log to .1."""
        initialize_logging(use_platform_dir=True)
        get_logger("session").info("First flight")
        shutdown_logging()

        initialize_logging(use_platform_dir=True)
        get_logger("session").info("Second flight")
        shutdown_logging()

        assert "First flight" in (log_dir / "efis.log.1").read_text()
        current = (log_dir / "efis.log").read_text()
        assert "Second flight" in current
        assert "First flight" not in current

    def test_keeps_five_backups(self, log_dir: Path) -> None:
        """Test that only five previous sessions are kept."""
        for i in range(7):
            initialize_logging(use_platform_dir=True)
            get_logger("session").info("Session %d", i)
            shutdown_logging()

        assert len(list(log_dir.glob("efis.log*"))) == 6
        assert "Session 1" in (log_dir / "efis.log.5").read_text()
