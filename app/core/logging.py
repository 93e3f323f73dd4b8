import logging
import sys

import structlog

from app.core.config import get_settings


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    level = logging.DEBUG if settings.env == "dev" else logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout)
    # Drivers are chatty at DEBUG and log every statement.
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.add_log_level,
            structlog.stdlib.add_logger_name,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def get_event_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
