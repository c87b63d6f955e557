"""
Logging for the agent process.

Every module logs through the stdlib (`logging.getLogger(__name__)`); the
records are rendered by structlog so the sweep's bound context (`tick`,
`order_id`, `run_user`) lands on each line. DEBUG renders a colored console,
anything else renders JSON lines for the log shipper.
"""

import logging
import sys
from typing import Optional

import structlog
from structlog.types import EventDict, Processor

from .config import settings

# Bound keys whose values must never reach a log line
SECRET_KEYS = frozenset({"private_key", "agent_private_key", "agent_secret", "api_key", "x-agent-secret"})
REDACTED = "***"

QUIET_LOGGERS = ("httpcore", "httpx", "anthropic")


def mask_secrets(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    for key in SECRET_KEYS.intersection(event_dict):
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        mask_secrets,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]


def setup_logging(log_level: Optional[str] = None) -> int:
    """Install the structlog formatter on the root logger.

    Args:
        log_level: Override log level (default: settings.log_level)

    Returns:
        The numeric level that was applied.
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    pre_chain = _shared_processors()

    if level == logging.DEBUG:
        renderer: Processor = structlog.dev.ConsoleRenderer()
    else:
        pre_chain.append(structlog.processors.format_exc_info)
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=pre_chain,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
    return level
