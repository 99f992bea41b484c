#!/usr/bin/env python3
"""Structured logging for symshare.

A thin layer over the standard ``logging`` module. Every message may carry
key=value context; context pushed with :meth:`Logger.add_context` applies
to everything logged by the same thread inside the ``with`` block, which is
how a reconciliation pass tags its lines with the stage it is in.

Values containing whitespace, quotes or ``=`` are quoted, so folder names
such as ``my docs`` stay unambiguous:

    Overlaying entry | stage=read name='my docs'
"""

import logging
import logging.handlers
import threading
from contextlib import contextmanager
from enum import IntEnum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Union

LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class LogLevel(IntEnum):
    """Log levels, numerically equal to the stdlib ones."""

    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR
    CRITICAL = logging.CRITICAL


LevelLike = Union[LogLevel, str, int]


def _coerce_level(level: LevelLike) -> LogLevel:
    if isinstance(level, str):
        return LogLevel[level.upper()]
    return LogLevel(level)


def _formatter() -> logging.Formatter:
    return logging.Formatter(LINE_FORMAT, datefmt=DATE_FORMAT)


def format_value(value: Any) -> str:
    text = str(value)
    if not text or any(c.isspace() or c in "='\"" for c in text):
        return repr(text)
    return text


def format_line(msg: str, context: Dict[str, Any]) -> str:
    """``msg`` followed by `` | k=v ...`` when there is context."""
    if not context:
        return msg
    pairs = " ".join(f"{key}={format_value(value)}" for key, value in context.items())
    return f"{msg} | {pairs}"


class Logger:
    """Named logger with key=value context.

    Each instance owns its stdlib logger's handlers and does not propagate
    to the root logger.
    """

    _local = threading.local()

    def __init__(
        self,
        name: str = "symshare",
        level: LevelLike = LogLevel.INFO,
        handlers: Optional[List[logging.Handler]] = None,
    ):
        """
        Args:
            name: stdlib logger name
            level: Minimum level emitted
            handlers: Output handlers (default: one stderr handler)
        """
        self.name = name
        self.logger = logging.getLogger(name)
        self.logger.propagate = False
        self.set_level(level)

        if handlers is None:
            console = logging.StreamHandler()
            console.setFormatter(_formatter())
            handlers = [console]

        for old in list(self.logger.handlers):
            self.logger.removeHandler(old)
            if old not in handlers:
                old.close()
        for handler in handlers:
            self.add_handler(handler)

    # Handlers and levels

    def add_handler(self, handler: logging.Handler) -> None:
        self.logger.addHandler(handler)

    def remove_handler(self, handler: logging.Handler) -> None:
        self.logger.removeHandler(handler)

    def attach_file(
        self,
        filename: Union[str, Path],
        max_bytes: int = 10 * 1024 * 1024,
        backup_count: int = 5,
    ) -> logging.handlers.RotatingFileHandler:
        """Also write to ``filename``, rotating at ``max_bytes``.

        Returns:
            The added handler, so the caller can remove or close it
        """
        handler = logging.handlers.RotatingFileHandler(
            filename, maxBytes=max_bytes, backupCount=backup_count
        )
        handler.setFormatter(_formatter())
        self.add_handler(handler)
        return handler

    def set_level(self, level: LevelLike) -> None:
        self.logger.setLevel(_coerce_level(level))

    def get_level(self) -> LogLevel:
        return LogLevel(self.logger.level)

    def is_enabled_for(self, level: LevelLike) -> bool:
        return self.logger.isEnabledFor(_coerce_level(level))

    # Context

    @classmethod
    def _frames(cls) -> List[Dict[str, Any]]:
        if not hasattr(cls._local, "frames"):
            cls._local.frames = []
        return cls._local.frames

    def current_context(self) -> Dict[str, Any]:
        """Context currently pushed on this thread, innermost last."""
        context: Dict[str, Any] = {}
        for frame in self._frames():
            context.update(frame)
        return context

    @contextmanager
    def add_context(self, **kwargs) -> Iterator[None]:
        """Push key=value context for the duration of the block.

        Example:
            >>> with logger.add_context(stage="write"):
            ...     logger.info("Listing overlay", root="/srv/write")
        """
        frames = self._frames()
        frames.append(kwargs)
        try:
            yield
        finally:
            frames.pop()

    # Emitting

    def _log(self, level: LogLevel, msg: str, context: Dict[str, Any], **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        combined = self.current_context()
        combined.update(context)
        self.logger.log(level, format_line(msg, combined), extra={"context": combined}, **kwargs)

    def debug(self, msg: str, **context) -> None:
        self._log(LogLevel.DEBUG, msg, context)

    def info(self, msg: str, **context) -> None:
        self._log(LogLevel.INFO, msg, context)

    def warning(self, msg: str, **context) -> None:
        self._log(LogLevel.WARNING, msg, context)

    def error(self, msg: str, **context) -> None:
        self._log(LogLevel.ERROR, msg, context)

    def exception(self, msg: str, exc: BaseException, **context) -> None:
        """Log ``exc`` at ERROR with its traceback and type."""
        context["exception_type"] = type(exc).__name__
        self._log(LogLevel.ERROR, msg, context, exc_info=exc)


_loggers: Dict[str, Logger] = {}
_registry_lock = threading.Lock()


def get_logger(name: str = "symshare") -> Logger:
    """Shared Logger for ``name``, created with defaults on first use."""
    with _registry_lock:
        if name not in _loggers:
            _loggers[name] = Logger(name=name)
        return _loggers[name]


def set_global_logger(logger: Logger) -> None:
    """Make ``logger`` the one returned by ``get_logger(logger.name)``."""
    with _registry_lock:
        _loggers[logger.name] = logger
