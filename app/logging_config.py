"""
Structured logging configuration using structlog.

Produces JSON logs in production, human-readable colored logs in development.
Alchemy embeds the API key in its endpoint paths, so every event passes
through a redaction step before rendering.
"""

import logging
import re
import sys
from typing import Any, MutableMapping, Optional

import structlog

from .config import settings

_ALCHEMY_KEY_RE = re.compile(r"(/v2/|/v3/|/data/v1/)[A-Za-z0-9_\-]{8,}")


def _redact(value: str) -> str:
    secret = settings.alchemy_api_key
    if secret and secret in value:
        value = value.replace(secret, "***")
    return _ALCHEMY_KEY_RE.sub(r"\1***", value)


def redact_secrets(
    _logger: Any, _method: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask provider credentials in string fields of a log event."""

    for key, value in list(event_dict.items()):
        if isinstance(value, str):
            event_dict[key] = _redact(value)
    return event_dict


def build_processors(is_dev: bool = False) -> list[structlog.types.Processor]:
    """Processors shared by structlog and stdlib records. Redaction must follow ``format_exc_info``."""

    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]
    if not is_dev:
        processors.append(structlog.processors.format_exc_info)
    processors.extend([structlog.processors.UnicodeDecoder(), redact_secrets])
    return processors


def setup_logging(log_level: Optional[str] = None) -> None:
    """Configure structlog for structured JSON logging.

    Args:
        log_level: Override log level (default: from settings.log_level)
    """
    level = getattr(logging, (log_level or settings.log_level).upper(), logging.INFO)
    is_dev = level == logging.DEBUG

    shared_processors = build_processors(is_dev)
    if is_dev:
        renderer = structlog.dev.ConsoleRenderer()
    else:
        renderer = structlog.processors.JSONRenderer()

    structlog.configure(
        processors=[
            *shared_processors,
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    # Route stdlib logging through structlog's formatter
    formatter = structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors,
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    # httpx logs full request URLs, which carry the Alchemy key
    for name in ("uvicorn.access", "httpcore", "httpx"):
        logging.getLogger(name).setLevel(logging.WARNING)
