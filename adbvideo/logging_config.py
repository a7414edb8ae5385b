"""Logging configuration for the ADB video reporter."""

import json
import logging
import logging.config
import uuid
from typing import Optional

from .config_models import LoggingConfig

ROOT_LOGGER = "adbvideo"


class ContextFilter(logging.Filter):
    """Custom filter to inject test run context into log records."""

    def __init__(self, run_id: str):
        """
        Initialize the context filter.

        Args:
            run_id: Unique identifier for the test run
        """
        super().__init__()
        self.run_id = run_id

    def filter(self, record: logging.LogRecord) -> bool:
        record.run_id = self.run_id
        return True


class JSONFormatter(logging.Formatter):
    """Custom formatter that outputs structured JSON logs."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": self.formatTime(record),
            "logger": record.name,
            "level": record.levelname,
            "run_id": getattr(record, "run_id", "unknown"),
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(config: LoggingConfig, run_id: Optional[str] = None, verbose: bool = False) -> str:
    """
    Configure the reporter's logger tree.

    Only the ``adbvideo`` logger is configured so the host test runner keeps
    control of the root logger. Records still propagate, so pytest's own log
    capture (``caplog`` and the captured-log report sections) sees them.

    Args:
        config: Logging configuration
        run_id: Test run identifier. If None, a new UUID will be generated.
        verbose: Show reporter debug and info messages on the console

    Returns:
        The run_id used for logging
    """
    if run_id is None:
        run_id = str(uuid.uuid4())

    console_level = "DEBUG" if verbose else config.level
    # Nothing below the console level is emitted unless a log file wants it
    logger_level = "DEBUG" if config.log_file is not None else console_level

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": console_level,
            "formatter": "console",
            "filters": ["context"],
            "stream": "ext://sys.stderr"
        }
    }

    if config.log_file is not None:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers["file"] = {
            "class": "logging.FileHandler",
            "level": "DEBUG",  # Always capture debug and above to file
            "formatter": "json",
            "filters": ["context"],
            "filename": str(config.log_file),
            "mode": "a"
        }

    logging_config = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "console": {
                "format": config.format_console,
                "datefmt": "%Y-%m-%dT%H:%M:%S"
            },
            "json": {
                "()": JSONFormatter,
                "datefmt": "%Y-%m-%dT%H:%M:%S"
            }
        },
        "filters": {
            "context": {
                "()": ContextFilter,
                "run_id": run_id
            }
        },
        "handlers": handlers,
        "loggers": {
            ROOT_LOGGER: {
                "level": logger_level,
                "handlers": list(handlers),
                "propagate": True
            }
        }
    }

    logging.config.dictConfig(logging_config)

    logger = logging.getLogger(__name__)
    logger.debug(f"Logging initialized for test run {run_id}")

    return run_id


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured logger instance
    """
    return logging.getLogger(name)


class LogCapture:
    """Context manager for capturing logs during test execution."""

    def __init__(self, logger_name: str = ROOT_LOGGER):
        """
        Initialize log capture.

        Args:
            logger_name: Name of logger to capture
        """
        self.logger_name = logger_name
        self.handler: Optional[logging.Handler] = None
        self.logs: list = []
        self._previous_level: Optional[int] = None

    def __enter__(self) -> "LogCapture":
        """Start capturing logs."""
        class CaptureHandler(logging.Handler):
            def __init__(self, capture_func):
                super().__init__()
                self.capture_func = capture_func

            def emit(self, record):
                self.capture_func(record)

        self.handler = CaptureHandler(self._capture_log)

        logger = logging.getLogger(self.logger_name)
        self._previous_level = logger.level
        logger.setLevel(logging.DEBUG)
        logger.addHandler(self.handler)

        return self

    def __exit__(self, exc_type: type, exc_val: Exception, exc_tb: object) -> None:
        """Stop capturing logs."""
        if self.handler:
            logger = logging.getLogger(self.logger_name)
            logger.removeHandler(self.handler)
            if self._previous_level is not None:
                logger.setLevel(self._previous_level)

    def _capture_log(self, record: logging.LogRecord) -> None:
        self.logs.append({
            "level": record.levelname,
            "message": record.getMessage(),
            "timestamp": record.created,
            "logger": record.name
        })

    def get_logs(self, level: Optional[str] = None) -> list:
        """
        Get captured logs.

        Args:
            level: Optional level filter

        Returns:
            List of log records
        """
        if level is None:
            return self.logs.copy()
        return [log for log in self.logs if log["level"] == level]
