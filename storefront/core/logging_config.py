import logging

import structlog

from storefront.core.config import settings

# Third-party loggers that only matter while debugging
QUIET_LOGGERS = ("passlib", "httpx")


def _add_environment(logger, method_name, event_dict):
    event_dict.setdefault("environment", settings.ENVIRONMENT)
    return event_dict


def configure_logging() -> None:
    """Route structlog events through stdlib logging as JSON, or as console lines when DEBUG is on."""
    level = logging.DEBUG if settings.DEBUG else logging.INFO
    logging.basicConfig(format="%(message)s", level=level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(level if settings.DEBUG else logging.WARNING)

    if settings.DEBUG:
        exception_processor = structlog.processors.format_exc_info
        renderer = structlog.dev.ConsoleRenderer()
    else:
        exception_processor = structlog.processors.dict_tracebacks
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _add_environment,
            structlog.processors.StackInfoRenderer(),
            exception_processor,
            renderer,
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
