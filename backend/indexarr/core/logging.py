"""Logging configuration."""

from __future__ import annotations

import json
import linecache
import logging
import sys
import traceback
from datetime import UTC, datetime
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Any

import structlog

if TYPE_CHECKING:
    from structlog.types import EventDict

ExcInfo = tuple[type[BaseException] | None, BaseException | None, TracebackType | None]

TracebackFrame = dict[str, str | int | None]

ExceptionDetails = dict[
    str,
    None | str | list[TracebackFrame],
]

APP_LOG_FILE = "indexarr.json.log"
HTTP_LOG_FILE = "indexarr.http.json.log"

# Third-party HTTP client loggers, routed to their own file
HTTP_LOGGERS = ("httpx", "httpcore", "httpcore.connection", "httpcore.http11")
UVICORN_LOGGERS = ("uvicorn", "uvicorn.access", "uvicorn.error")


def format_exception_for_json(
    exc_info: ExcInfo | None,
) -> ExceptionDetails:
    """Format exception information for JSON logging.

    Args:
        exc_info: Exception info tuple from sys.exc_info() or None

    Returns:
        Dictionary with exception_type, exception_message, exception_module,
        traceback_frames and traceback_text; empty when there is no exception
    """
    if exc_info is None or exc_info == (None, None, None):
        return {}

    exc_type, exc_value, exc_tb = exc_info

    exception_details: ExceptionDetails = {
        "exception_type": exc_type.__name__ if exc_type else None,
        "exception_message": str(exc_value) if exc_value else None,
        "exception_module": exc_type.__module__ if exc_type else None,
    }

    if exc_tb:
        tb_frames: list[TracebackFrame] = []
        current_tb: TracebackType | None = exc_tb

        while current_tb is not None:
            frame = current_tb.tb_frame
            frame_info: TracebackFrame = {
                "filename": frame.f_code.co_filename,
                "lineno": current_tb.tb_lineno,
                "function": frame.f_code.co_name,
            }
            line = linecache.getline(frame.f_code.co_filename, current_tb.tb_lineno)
            if line:
                frame_info["source_line"] = line.strip()

            tb_frames.append(frame_info)
            current_tb = current_tb.tb_next

        exception_details["traceback_frames"] = tb_frames
        exception_details["traceback_text"] = "".join(
            traceback.format_exception(exc_type, exc_value, exc_tb)
        )

    return exception_details


def exception_processor(
    logger: structlog.BoundLogger,
    method_name: str,
    event_dict: EventDict,
) -> EventDict:
    """Structlog processor that turns exc_info into structured fields.

    Adds ``exception`` (see format_exception_for_json) and a one-line
    ``exception_summary``.
    """
    exc_info = event_dict.pop("exc_info", None)  # type: ignore[assignment]

    # logger.exception() / exc_info=True
    if exc_info is True:
        exc_info = sys.exc_info()  # type: ignore[assignment]
    elif isinstance(exc_info, BaseException):
        exc_info = (type(exc_info), exc_info, exc_info.__traceback__)

    if exc_info and exc_info != (None, None, None):
        exception_details = format_exception_for_json(exc_info)  # type: ignore[arg-type]
        if exception_details:
            event_dict["exception"] = exception_details
            exc_type = exception_details.get("exception_type")
            exc_msg = exception_details.get("exception_message")
            if exc_type and exc_msg:
                event_dict["exception_summary"] = f"{exc_type}: {exc_msg}"

    if "exception" in event_dict and isinstance(event_dict["exception"], BaseException):
        exc = event_dict.pop("exception")
        exception_details = format_exception_for_json((type(exc), exc, exc.__traceback__))
        if exception_details:
            event_dict["exception"] = exception_details

    return event_dict


class JSONFormatter(logging.Formatter):
    """JSON formatter for standard library logging (used for HTTP client logs)."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON string."""
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_data["exception"] = format_exception_for_json(record.exc_info)

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        return json.dumps(log_data, ensure_ascii=False)


def _close_handlers(logger: logging.Logger) -> None:
    """Close all handlers for a logger before clearing them.

    This prevents ResourceWarnings about unclosed file handles.
    """
    for handler in logger.handlers[:]:
        try:
            handler.close()
        except Exception:
            pass  # Ignore errors when closing handlers


def _route_logger(name: str, handler: logging.Handler, level: int | None = None) -> None:
    """Send a stdlib logger exclusively to one handler."""
    target = logging.getLogger(name)
    if level is not None:
        target.setLevel(level)
    target.propagate = False
    _close_handlers(target)
    target.handlers.clear()
    target.addHandler(handler)


def setup_logging(
    debug: bool = False,
    logs_dir: Path | None = None,
    log_level: str | None = None,
) -> None:
    """Setup structured logging with structlog.

    Application logs go to stdout (pretty console output in debug, JSON
    otherwise), or only to a JSON file when ``logs_dir`` is given. httpx and
    httpcore logs go to a separate JSON file at WARNING when file logging is
    enabled.

    Args:
        debug: Enable debug logging and the console renderer
        logs_dir: Optional directory for JSON log files
        log_level: Explicit level name, overrides the debug-derived level
    """
    if log_level:
        level = logging.getLevelName(log_level.upper())
        log_level_value = level if isinstance(level, int) else logging.INFO
    else:
        log_level_value = logging.DEBUG if debug else logging.INFO

    app_handlers: list[logging.Handler] = []

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setLevel(log_level_value)

    app_file_handler = None
    http_file_handler = None
    if logs_dir:
        try:
            logs_dir.mkdir(parents=True, exist_ok=True)

            # When file logging is enabled, structured logs go ONLY to file
            app_file_handler = logging.FileHandler(logs_dir / APP_LOG_FILE, encoding="utf-8")
            app_file_handler.setLevel(log_level_value)
            app_handlers.append(app_file_handler)

            http_file_handler = logging.FileHandler(logs_dir / HTTP_LOG_FILE, encoding="utf-8")
            http_file_handler.setLevel(logging.DEBUG)
            http_file_handler.setFormatter(JSONFormatter())
        except OSError as e:
            # If file logging fails, log to stderr but don't crash
            sys.stderr.write(f"Warning: Failed to setup file logging: {e}\n")

    if not app_file_handler:
        app_handlers.append(stdout_handler)

    logging.basicConfig(
        format="%(message)s",
        level=log_level_value,
        handlers=app_handlers,
        force=True,
    )

    # Uvicorn logs are not structured; they always go to stdout only
    for name in UVICORN_LOGGERS:
        _route_logger(name, stdout_handler)

    for name in HTTP_LOGGERS:
        if http_file_handler:
            _route_logger(name, http_file_handler, logging.WARNING)
        else:
            target = logging.getLogger(name)
            _close_handlers(target)
            target.handlers.clear()
            target.propagate = True
            target.setLevel(logging.WARNING)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,  # trace_id, search_sequence
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        exception_processor,
        structlog.processors.format_exc_info,
    ]

    # File logs are always JSON; console is pretty only in debug mode
    if debug and not app_file_handler:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.getLogger().setLevel(log_level_value)

    logger = structlog.get_logger("indexarr.logging")
    logger.info(
        "Logging configured",
        level=logging.getLevelName(log_level_value),
        debug=debug,
        app_file_logging=app_file_handler is not None,
        app_log_file=str(logs_dir / APP_LOG_FILE) if app_file_handler and logs_dir else None,
        http_file_logging=http_file_handler is not None,
        http_log_file=str(logs_dir / HTTP_LOG_FILE) if http_file_handler and logs_dir else None,
    )
