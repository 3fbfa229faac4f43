"""
Logging setup for the Library API using structlog.
Events are rendered as JSON or console lines and carry the context of the request being served.
"""

import logging
import sys
import uuid
from pathlib import Path
from typing import Optional
import structlog
from structlog.stdlib import LoggerFactory

# Chatty third-party loggers kept at WARNING unless debugging
NOISY_LOGGERS = ("pymongo", "motor", "multipart", "uvicorn.access")


def _processors(debug: bool) -> list:
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if debug:
        processors.append(
            structlog.processors.CallsiteParameterAdder(
                {
                    structlog.processors.CallsiteParameter.MODULE,
                    structlog.processors.CallsiteParameter.FUNC_NAME,
                    structlog.processors.CallsiteParameter.LINENO,
                }
            )
        )
    return processors


def setup_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    log_file: Optional[str] = None,
    debug: bool = False
) -> None:
    """
    Configure structlog and the standard library root logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: ``json`` for one JSON object per line, anything else for console output
        log_file: Optional file that receives a copy of every event
        debug: Add call-site information and keep third-party loggers verbose
    """
    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)

    processors = _processors(debug)
    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter('%(message)s'))
        logging.getLogger().addHandler(file_handler)

    if not debug:
        for name in NOISY_LOGGERS:
            logging.getLogger(name).setLevel(max(level, logging.WARNING))

    structlog.get_logger(__name__).info(
        "Logging system initialized",
        level=log_level,
        format=log_format,
        file=str(log_file) if log_file else None,
        debug=debug
    )


class RequestLogger:
    """
    Logger for HTTP requests.

    ``start`` binds a request id and the request line to the structlog context, so every
    event logged while the request is served carries them.
    """

    def __init__(self, name: str = "api.requests"):
        self.logger = structlog.get_logger(name)

    def start(self, method: str, path: str, client: Optional[str] = None) -> str:
        request_id = uuid.uuid4().hex
        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=method,
            path=path,
            client=client,
        )
        return request_id

    def log_response(self, status_code: int, duration_ms: float) -> None:
        """Log request completion; client errors at WARNING, server errors at ERROR."""
        if status_code >= 500:
            level = "error"
        elif status_code >= 400:
            level = "warning"
        else:
            level = "info"
        getattr(self.logger, level)(
            "Request completed",
            status_code=status_code,
            duration_ms=round(duration_ms, 2),
        )

    def finish(self) -> None:
        structlog.contextvars.clear_contextvars()
