#!/usr/bin/env python3
"""Structured logging for VaultGuard.

Every component logs through a :class:`Logger` obtained from
:func:`get_logger`:
- Levels DEBUG through CRITICAL, settable by name
- Key-value context appended to the message (``msg | key=value``)
- Per-thread context blocks via :meth:`Logger.add_context`
- Console output on stderr and optional rotating log files

Privacy decisions are logged by path and reason only; note content never
reaches a log record.

Example:
    >>> logger = get_logger("vaultguard.scanner")
    >>> with logger.add_context(vault="notes"):
    ...     logger.info("File excluded", file_path="Private/a b.md")
    # File excluded | vault=notes file_path="Private/a b.md"
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Rotation defaults for log files
LOG_FILE_MAX_BYTES = 10 * 1024 * 1024
LOG_FILE_BACKUPS = 5


class LogLevel(IntEnum):
    """Log levels matching Python's logging module."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


def _resolve_level(level: Union[LogLevel, str, int]) -> LogLevel:
    if isinstance(level, str):
        return LogLevel[level.upper()]
    return LogLevel(level)


def _formatter() -> logging.Formatter:
    return logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)


def _render_value(value: Any) -> str:
    text = str(value)
    if not text or any(ch.isspace() for ch in text):
        return '"' + text.replace('"', '\\"') + '"'
    return text


def render_context(context: Dict[str, Any]) -> str:
    """Render context as space-separated ``key=value`` pairs.

    Values that are empty or contain whitespace are double-quoted, so vault
    paths with spaces stay readable as one field.
    """
    return " ".join(f"{key}={_render_value(value)}" for key, value in context.items())


# Context blocks pushed by add_context, one stack per thread
_local = threading.local()


def _context_stack() -> List[Dict[str, Any]]:
    stack = getattr(_local, "stack", None)
    if stack is None:
        stack = _local.stack = []
    return stack


class Logger:
    """Structured logger wrapping a standard library logger.

    Records never propagate to the root logger, so embedding applications
    see VaultGuard output only through the handlers configured here.
    """

    def __init__(
        self,
        name: str = "vaultguard",
        level: Union[LogLevel, str] = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """Initialize logger.

        Args:
            name: Dotted logger name, e.g. ``vaultguard.engine``
            level: Minimum log level to output
            handlers: Handlers to attach (default: one stderr console handler)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.propagate = False
        self.set_level(level)

        self.logger.handlers.clear()
        for handler in handlers if handlers is not None else [self._create_console_handler()]:
            self.logger.addHandler(handler)

    @staticmethod
    def _create_console_handler() -> logging.StreamHandler:
        handler = logging.StreamHandler()
        handler.setFormatter(_formatter())
        return handler

    @staticmethod
    def create_file_handler(
        filename: Union[str, Path],
        max_bytes: int = LOG_FILE_MAX_BYTES,
        backup_count: int = LOG_FILE_BACKUPS,
    ) -> logging.handlers.RotatingFileHandler:
        """Create a rotating file handler with the standard format.

        Args:
            filename: Path to log file
            max_bytes: Size at which the file is rotated
            backup_count: Rotated files to keep

        Returns:
            Rotating file handler
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(_formatter())
        return handler

    def add_handler(self, handler: logging.Handler) -> None:
        """Attach an output handler."""
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        """Detach an output handler."""
        self.logger.removeHandler(handler)

    def has_file_handler(self, filename: Union[str, Path]) -> bool:
        """Check whether a file handler for filename is already attached."""
        target = str(Path(filename).resolve())
        return any(
            isinstance(handler, logging.FileHandler) and handler.baseFilename == target
            for handler in self.logger.handlers
        )

    def set_level(self, level: Union[LogLevel, str]) -> None:
        """Set the minimum log level (LogLevel or level name)."""
        self.logger.setLevel(_resolve_level(level))

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: Union[LogLevel, str]) -> bool:
        return self.logger.isEnabledFor(_resolve_level(level))

    @contextmanager
    def add_context(self, **context: Any) -> Iterator[None]:
        """Attach context to every record logged by this thread in the block.

        Example:
            >>> with logger.add_context(vault="notes"):
            ...     logger.info("Scan started")
        """
        stack = _context_stack()
        stack.append(context)
        try:
            yield
        finally:
            stack.pop()

    def _log(self, level: int, msg: str, context: Dict[str, Any], exc_info: Any = None) -> None:
        if not self.logger.isEnabledFor(level):
            return

        merged: Dict[str, Any] = {}
        for block in _context_stack():
            merged.update(block)
        merged.update(context)

        text = f"{msg} | {render_context(merged)}" if merged else msg
        self.logger.log(level, text, exc_info=exc_info, extra={"context": merged})

    def debug(self, msg: str, **context: Any) -> None:
        self._log(logging.DEBUG, msg, context)

    def info(self, msg: str, **context: Any) -> None:
        self._log(logging.INFO, msg, context)

    def warning(self, msg: str, **context: Any) -> None:
        self._log(logging.WARNING, msg, context)

    def error(self, msg: str, **context: Any) -> None:
        self._log(logging.ERROR, msg, context)

    def exception(self, msg: str, exc: Exception, **context: Any) -> None:
        """Log an error with the exception's type, message and traceback."""
        context["exception_type"] = type(exc).__name__
        context["exception_message"] = str(exc)
        self._log(logging.ERROR, msg, context, exc_info=exc)


# Loggers by name, so components sharing a name share handlers and level
_loggers: Dict[str, Logger] = {}
_loggers_lock = threading.Lock()
_default_level: Union[LogLevel, str] = LogLevel.INFO
_default_log_file: Optional[str] = None


def _attach_log_file(logger: Logger, log_file: Optional[str]) -> None:
    if log_file and not logger.has_file_handler(log_file):
        logger.add_handler(logger.create_file_handler(log_file))


def get_logger(name: str = "vaultguard") -> Logger:
    """Get the logger registered under name, creating it if needed.

    New loggers pick up the level and log file set by
    :func:`configure_logging`.
    """
    with _loggers_lock:
        logger = _loggers.get(name)
        if logger is None:
            logger = Logger(name=name, level=_default_level)
            _attach_log_file(logger, _default_log_file)
            _loggers[name] = logger
        return logger


def set_global_logger(logger: Logger) -> None:
    """Register a logger so that get_logger(logger.name) returns it."""
    with _loggers_lock:
        _loggers[logger.name] = logger


def configure_logging(level: Union[LogLevel, str] = LogLevel.INFO, log_file: Optional[str] = None) -> None:
    """Apply a level and optional log file to every VaultGuard logger.

    Loggers created later by :func:`get_logger` inherit both. A file already
    attached to a logger is not attached twice.

    Args:
        level: Minimum level for all loggers
        log_file: Optional path for a rotating log file
    """
    global _default_level, _default_log_file
    with _loggers_lock:
        _default_level = level
        _default_log_file = log_file
        loggers = list(_loggers.values())

    for logger in loggers:
        logger.set_level(level)
        _attach_log_file(logger, log_file)
