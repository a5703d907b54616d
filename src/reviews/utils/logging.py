"""Logging for the Reviews service.

structlog renders on top of standard library handlers: stdout plus one
rotating file. Production and staging write one JSON object per line,
everywhere else gets coloured console output with rich tracebacks.

Request-scoped values (request id, caller) are bound per request with
``bind_request``, so every line a request logs can be traced back to it.
"""

import logging
import logging.handlers
import os
import sys
from pathlib import Path

import structlog

LOG_FILE = "tourbook_reviews.log"
LEVELS = {"production": "INFO", "staging": "INFO", "development": "DEBUG", "test": "WARNING"}
JSON_ENVS = ("production", "staging")


def current_env() -> str:
    return (os.getenv("PROTEAN_ENV") or os.getenv("ENV") or "development").lower()


def log_level(env: str | None = None) -> str:
    return os.getenv("LOG_LEVEL") or LEVELS.get(env or current_env(), "INFO")


def _handlers(log_dir: Path, level: str) -> list[logging.Handler]:
    log_dir.mkdir(parents=True, exist_ok=True)
    handlers = [
        logging.StreamHandler(sys.stdout),
        logging.handlers.RotatingFileHandler(
            log_dir / LOG_FILE,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8",
        ),
    ]
    for handler in handlers:
        handler.setLevel(level)
    return handlers


def _renderer(env: str):
    if env in JSON_ENVS:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(
        colors=True,
        exception_formatter=structlog.dev.RichTracebackFormatter(show_locals=True, max_frames=2),
    )


def configure_logging(log_dir: str | Path = "logs") -> None:
    """Install the root handlers and the structlog processor chain."""
    env = current_env()
    level = log_level(env)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = _handlers(Path(log_dir), level)
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.CallsiteParameterAdder(
                parameters=[
                    structlog.processors.CallsiteParameter.FILENAME,
                    structlog.processors.CallsiteParameter.LINENO,
                ]
            ),
            _renderer(env),
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def bind_request(request_id: str, caller_id: str | None = None) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id, caller_id=caller_id)
