"""
Structured JSON Logging Module.

Provides a StructuredLogger factory that produces logging.Logger instances
configured with JSON-formatted output.  Session transitions, sign-in
outcomes and profile writes are all logged through it.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional, TextIO, Union


class JSONFormatter(logging.Formatter):
    """Formats log records as structured JSON objects.

    Each log entry contains:
        - timestamp  (ISO-8601, UTC)
        - level      (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        - logger_name
        - message
        - extra      (optional structured fields passed via the `extra` kwarg)
        - exception  (formatted traceback, when present)
    """

    _STANDARD_ATTRS: frozenset[str] = frozenset(
        logging.LogRecord(
            name="", level=0, pathname="", lineno=0, msg="", args=(), exc_info=None
        ).__dict__.keys()
    ) | {"message", "asctime", "taskName"}

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Union[str, dict[str, str]]] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger_name": record.name,
            "message": record.getMessage(),
        }

        extra_fields: dict[str, str] = {
            key: str(value)
            for key, value in record.__dict__.items()
            if key not in self._STANDARD_ATTRS
        }
        if extra_fields:
            entry["extra"] = extra_fields

        if record.exc_info and not record.exc_text:
            record.exc_text = self.formatException(record.exc_info)
        if record.exc_text:
            entry["exception"] = record.exc_text

        return json.dumps(entry, ensure_ascii=False)


class StructuredLogger:
    """Injectable logger.

    Instantiate this class and pass the resulting object wherever a logger
    is needed.  The underlying ``logging.Logger`` is exposed via the
    ``.logger`` attribute and standard convenience methods are delegated
    directly.

    Usage::

        log = StructuredLogger(name="internhub.session")
        log.info("Session published", extra={"role": "student"})

    Dependency Injection::

        class RoleResolver:
            def __init__(self, store: ProfileStore, logger: StructuredLogger) -> None:
                self._logger = logger
    """

    def __init__(
        self,
        name: str = "internhub",
        level: Optional[int] = None,
        stream: Union[TextIO, None] = None,
        log_file: Optional[str] = None,
        max_bytes: Optional[int] = None,
        backup_count: Optional[int] = None,
    ) -> None:
        # Lazy import to avoid circular dependency at module level
        from internhub.config import get_config
        _cfg = get_config()

        resolved_level: int = (
            level if level is not None
            else logging.getLevelName(_cfg.LOG_LEVEL.upper())
        )
        if not isinstance(resolved_level, int):
            resolved_level = logging.INFO

        self._logger: logging.Logger = logging.getLogger(name)
        self._logger.setLevel(resolved_level)

        # Prevent duplicate handlers when the same name is reused.
        if not self._logger.handlers:
            formatter = JSONFormatter()

            stream_handler = logging.StreamHandler(stream or sys.stdout)
            stream_handler.setLevel(resolved_level)
            stream_handler.setFormatter(formatter)
            self._logger.addHandler(stream_handler)

            resolved_log_file: str = log_file if log_file is not None else _cfg.LOG_FILE
            if resolved_log_file:
                self._add_file_handler(
                    resolved_log_file,
                    resolved_level,
                    formatter,
                    max_bytes if max_bytes is not None else _cfg.LOG_MAX_BYTES,
                    backup_count if backup_count is not None else _cfg.LOG_BACKUP_COUNT,
                )

    def _add_file_handler(
        self,
        log_file: str,
        level: int,
        formatter: logging.Formatter,
        max_bytes: int,
        backup_count: int,
    ) -> None:
        try:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                filename=str(log_path),
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
            file_handler.setLevel(level)
            file_handler.setFormatter(formatter)
            self._logger.addHandler(file_handler)
        except (PermissionError, OSError) as exc:
            self._logger.warning(
                "Could not create log file '%s': %s. "
                "Continuing with console logging only.",
                log_file,
                exc,
            )

    @property
    def logger(self) -> logging.Logger:
        """Access the underlying ``logging.Logger`` directly."""
        return self._logger

    def debug(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.debug(msg, *args, **kwargs)

    def info(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.info(msg, *args, **kwargs)

    def warning(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.warning(msg, *args, **kwargs)

    def error(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.error(msg, *args, **kwargs)

    def exception(self, msg: str, *args: object, **kwargs: object) -> None:
        self._logger.exception(msg, *args, **kwargs)


def get_logger(name: str = "internhub") -> StructuredLogger:
    """Create and return a ``StructuredLogger`` instance with the given *name*."""
    return StructuredLogger(name=name)
