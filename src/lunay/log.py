"""structlog configuration.

Learn: Every module does `logger = structlog.get_logger()` and logs
dotted event names with key/value context:

    logger.info("teams.created", team_id=str(team.id))

configure_logging() runs once at startup. The processor chain merges
contextvars (request_id, bound by RequestIdMiddleware), stamps level
and time, and masks credential-shaped keys before rendering: colored
console output in development, JSON lines elsewhere.
"""

import logging

import structlog

from lunay.config import settings

# Keys that must never reach a log line
REDACTED_KEYS = frozenset(
    {"password", "current_password", "new_password", "password_hash", "token", "authorization"}
)


def redact_credentials(logger_obj, method_name: str, event_dict: dict) -> dict:
    for key in REDACTED_KEYS & event_dict.keys():
        event_dict[key] = "***"
    return event_dict


def configure_logging(level: str | None = None, fmt: str | None = None) -> None:
    fmt = fmt or settings.log_format
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        redact_credentials,
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        processors += [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(colors=settings.environment == "development")
        )

    level_name = (level or settings.log_level).upper()
    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level_name)
        ),
        cache_logger_on_first_use=True,
    )
