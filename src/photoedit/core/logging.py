"""
Logging for photoedit.

Every module logs through ``get_logger(__name__)``, which places it under the
``photoedit`` logger. Job and file identifiers travel in a context variable
(``LogContext``) so worker threads can tag their lines without threading the
ids through every call:

    with LogContext(job_id=job.id):
        logger.info("Processing file", extra={"file": str(path)})

``setup_logging`` picks console output (plain or colored) or JSON lines, and
always writes JSON when a log file is given.
"""

import json
import logging
import sys
import time
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Iterator

PACKAGE_LOGGER = "photoedit"

CONSOLE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"

# Record attributes copied into JSON output when a caller passes them in ``extra``
EXTRA_FIELDS = ("job_id", "file", "operation", "duration_seconds", "error", "error_type")

_log_context: ContextVar[dict[str, Any]] = ContextVar("photoedit_log_context", default={})

_configured = False


class JSONFormatter(logging.Formatter):
    """One JSON object per line.

    Active ``LogContext`` fields are nested under ``context``; per-record
    extras from ``EXTRA_FIELDS`` sit at the top level.
    """

    def format(self, record: logging.LogRecord) -> str:
        data: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        context = _log_context.get()
        if context:
            data["context"] = dict(context)
        data.update({name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)})
        if record.exc_info and record.exc_info[0] is not None:
            data["exception_type"] = record.exc_info[0].__name__
            data["exception"] = self.formatException(record.exc_info)
        return json.dumps(data, default=str)


class ColoredFormatter(logging.Formatter):
    """Console formatter that colors the level name."""

    COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        # The record is shared with other handlers; restore the plain name
        levelname = record.levelname
        record.levelname = f"{self.COLORS.get(record.levelno, '')}{levelname}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = levelname


def _console_formatter(json_format: bool, colored: bool) -> logging.Formatter:
    if json_format:
        return JSONFormatter()
    if colored and sys.stdout.isatty():
        return ColoredFormatter(CONSOLE_FORMAT, datefmt="%H:%M:%S")
    return logging.Formatter(CONSOLE_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")


def setup_logging(
    level: str | None = None,
    log_file: Path | None = None,
    json_format: bool = False,
    colored: bool = True,
) -> None:
    """Configure the ``photoedit`` logger, replacing any earlier setup.

    Args:
        level: Level name; defaults to ``Settings.log_level`` (DEBUG when
            ``Settings.debug`` is on).
        log_file: Also write JSON lines to this file.
        json_format: JSON lines on the console instead of text.
        colored: Color the level name on a TTY console.
    """
    global _configured

    # Read settings at call time so configure() before setup takes effect
    from photoedit.config import get_settings

    settings = get_settings()
    level = (level or ("DEBUG" if settings.debug else settings.log_level)).upper()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.setLevel(level)
    package_logger.handlers.clear()

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(_console_formatter(json_format, colored))
    package_logger.addHandler(console)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(JSONFormatter())
        package_logger.addHandler(file_handler)

    _configured = True
    package_logger.debug(f"Logging configured: level={level}, file={log_file}, json={json_format}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``photoedit`` namespace, configuring logging on first use."""
    if not _configured:
        setup_logging()
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)


class LogContext:
    """Add fields to the log context for the duration of a ``with`` block.

    Contexts nest; inner fields override outer ones until the block exits.
    """

    def __init__(self, **fields: Any):
        self.fields = fields
        self._token = None

    def __enter__(self) -> "LogContext":
        self._token = _log_context.set({**_log_context.get(), **self.fields})
        return self

    def __exit__(self, *exc_info: Any) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None


def current_log_context() -> dict[str, Any]:
    return dict(_log_context.get())


@contextmanager
def log_operation(
    logger: logging.Logger,
    operation: str,
    level: int = logging.INFO,
) -> Iterator[None]:
    """Log ``Starting:``/``Completed:`` around a block, with its duration.

    A failing block is logged as ``Failed:`` with the error type and then
    re-raised.
    """
    start = time.perf_counter()
    logger.log(level, f"Starting: {operation}", extra={"operation": operation})
    try:
        yield
    except Exception as e:
        logger.error(
            f"Failed: {operation}",
            extra={
                "operation": operation,
                "duration_seconds": round(time.perf_counter() - start, 4),
                "error": str(e),
                "error_type": type(e).__name__,
            },
            exc_info=True,
        )
        raise
    logger.log(
        level,
        f"Completed: {operation}",
        extra={"operation": operation, "duration_seconds": round(time.perf_counter() - start, 4)},
    )


class LoggingMixin:
    """Gives a class a ``logger`` named after its module."""

    @property
    def logger(self) -> logging.Logger:
        return get_logger(type(self).__module__)

    def log_method_call(self, method_name: str, **params: Any) -> None:
        """Log ``Class.method(params)`` at DEBUG."""
        if not self.logger.isEnabledFor(logging.DEBUG):
            return
        params_str = ", ".join(f"{k}={v!r}" for k, v in params.items())
        self.logger.debug(f"{type(self).__name__}.{method_name}({params_str})")
