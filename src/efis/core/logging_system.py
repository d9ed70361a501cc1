"""Logging setup for the EFIS application.

Configures the root logger from YAML (or built-in defaults) with a
console handler and a combined log file, rotates the log file on every
start and supports per-component levels and dedicated files.

Platform-specific log locations:
    - macOS: ~/Library/Logs/EFIS/efis.log
    - Linux: ~/.efis/logs/efis.log
    - Windows: %AppData%/EFIS/Logs/efis.log

Typical usage example:
    from efis.core.logging_system import get_logger, initialize_logging

    initialize_logging("config/logging.yaml")
    log = get_logger("terrain_plugin")
    log.info("Terrain window loaded: %s", tile.name)
"""

import logging
import logging.handlers
import os
import platform
import time
from pathlib import Path
from typing import Any

import yaml

_logging_config: dict[str, Any] = {}
_loggers_cache: dict[str, logging.Logger] = {}
_initialized = False

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_LOG_FILENAME = "efis.log"


class LoggingError(Exception):
    """Raised when the logging system cannot be configured."""


def get_platform_log_dir() -> Path:
    """Get the platform-specific log directory.

    Returns:
        ~/Library/Logs/EFIS on macOS, %AppData%/EFIS/Logs on Windows,
        ~/.efis/logs elsewhere.
    """
    system = platform.system()

    if system == "Darwin":
        return Path.home() / "Library" / "Logs" / "EFIS"
    elif system == "Windows":
        appdata = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return appdata / "EFIS" / "Logs"
    else:
        return Path.home() / ".efis" / "logs"


def rotate_logs(
    log_dir: Path, log_filename: str = DEFAULT_LOG_FILENAME, keep_count: int = 5
) -> None:
    """Shift previous launch logs, keeping the last ``keep_count``.

    ``efis.log`` becomes ``efis.log.1``, ``efis.log.1`` becomes
    ``efis.log.2`` and so on; the oldest beyond ``keep_count`` is deleted.

    Args:
        log_dir: Directory containing log files.
        log_filename: Base name of the log file.
        keep_count: Number of old logs to keep.
    """
    log_file = log_dir / log_filename
    if not log_file.exists():
        return

    oldest = log_dir / f"{log_filename}.{keep_count}"
    if oldest.exists():
        oldest.unlink()

    for i in range(keep_count - 1, 0, -1):
        old_log = log_dir / f"{log_filename}.{i}"
        if old_log.exists():
            old_log.rename(log_dir / f"{log_filename}.{i + 1}")

    log_file.rename(log_dir / f"{log_filename}.1")


def initialize_logging(
    config_path: str | Path | None = None, use_platform_dir: bool = True
) -> None:
    """Initialize the logging system.

    Call once at startup. Calling again reconfigures the root logger.

    Args:
        config_path: Logging configuration YAML; built-in defaults if None.
        use_platform_dir: Write logs to the platform log directory instead
            of the ``log_dir`` from the configuration.

    Raises:
        LoggingError: If the configuration file is missing or invalid.
    """
    global _logging_config, _initialized

    if config_path:
        config_path = Path(config_path)
        if not config_path.exists():
            raise LoggingError(f"Logging config file not found: {config_path}")
        try:
            with config_path.open("r", encoding="utf-8") as f:
                _logging_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise LoggingError(f"Failed to load logging config: {e}") from e
    else:
        _logging_config = _get_default_config()

    if use_platform_dir:
        _logging_config["log_dir"] = str(get_platform_log_dir())

    log_dir = Path(_logging_config.get("log_dir", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)

    combined = _logging_config.get("combined_log", {})
    rotate_logs(
        log_dir,
        combined.get("filename", DEFAULT_LOG_FILENAME),
        combined.get("backup_count", 5),
    )

    _loggers_cache.clear()
    _configure_root_logger(log_dir)
    _initialized = True


def _get_default_config() -> dict[str, Any]:
    return {
        "version": 1,
        "format": DEFAULT_FORMAT,
        "date_format": "%Y-%m-%d %H:%M:%S",
        "log_dir": "logs",
        "combined_log": {
            "enabled": True,
            "filename": DEFAULT_LOG_FILENAME,
            "backup_count": 5,
        },
        "console": {
            "enabled": True,
            "level": "INFO",
        },
        "components": {},
    }


def _configure_root_logger(log_dir: Path) -> None:
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)  # Handlers filter
    root_logger.handlers.clear()

    console = _logging_config.get("console", {})
    if console.get("enabled", True):
        console_handler = logging.StreamHandler()
        console_handler.setLevel(getattr(logging, console.get("level", "INFO")))
        console_handler.setFormatter(_get_formatter())
        root_logger.addHandler(console_handler)

    combined = _logging_config.get("combined_log", {})
    if combined.get("enabled", True):
        # Rotation already happened at startup, so overwrite
        file_handler = logging.FileHandler(
            log_dir / combined.get("filename", DEFAULT_LOG_FILENAME),
            mode="w",
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(_get_formatter())
        root_logger.addHandler(file_handler)


class MillisecondFormatter(logging.Formatter):
    """Formatter printing timestamps with a ``.mmm`` millisecond suffix."""

    def formatTime(self, record, datefmt=None):
        """Format the record time with milliseconds."""
        ct = self.converter(record.created)
        s = time.strftime(datefmt or "%Y-%m-%d %H:%M:%S", ct)
        return f"{s}.{int(record.msecs):03d}"


def _get_formatter() -> logging.Formatter:
    return MillisecondFormatter(
        _logging_config.get("format", DEFAULT_FORMAT),
        _logging_config.get("date_format", "%Y-%m-%d %H:%M:%S"),
    )


def get_logger(name: str) -> logging.Logger:
    """Get a logger for a component.

    Loggers are cached. A component may have its own level, a dedicated
    rotating file, or be disabled under ``components`` in the logging
    configuration:

        components:
          terrain_plugin:
            level: DEBUG
            dedicated_file: true

    Args:
        name: Logger name (usually the component or module name).

    Returns:
        Configured logger instance.

    Note:
        Use lazy formatting (%) instead of f-strings.
    """
    if not _initialized:
        initialize_logging()

    if name in _loggers_cache:
        return _loggers_cache[name]

    logger = logging.getLogger(name)
    component = _logging_config.get("components", {}).get(name, {})

    if component.get("enabled", True):
        if "level" in component:
            logger.setLevel(getattr(logging, component["level"]))

        if component.get("dedicated_file", False):
            log_dir = Path(_logging_config.get("log_dir", "logs"))
            file_handler = logging.handlers.RotatingFileHandler(
                log_dir / f"{name}.log",
                maxBytes=component.get("max_bytes", 10485760),
                backupCount=component.get("backup_count", 5),
                encoding="utf-8",
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(_get_formatter())
            logger.addHandler(file_handler)
    else:
        logger.disabled = True

    _loggers_cache[name] = logger
    return logger


def shutdown_logging() -> None:
    """Flush and close all handlers."""
    global _initialized

    logging.shutdown()
    _loggers_cache.clear()
    _initialized = False
