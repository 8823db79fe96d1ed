"""
structlog configuration for keywarden.

Console rendering in development, one JSON object per line in production.
Two processors matter for this service:

- ``redact_secrets`` blanks any field whose name marks it as secret-bearing
  and any string value that carries the API key prefix, so an issued token or
  key cannot reach a log sink even when passed under an innocent name.
- ``add_timestamp`` stamps every event in UTC.

``setup_logging`` runs once at import with environment defaults and again
from ``create_app`` / the bootstrap CLI with the resolved LoggingSettings.
"""

from __future__ import annotations

import logging
import os
import sys
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

import structlog
from structlog.types import EventDict, Processor

if TYPE_CHECKING:
    from config import LoggingSettings

REDACTED = "***REDACTED***"

# Event types logged on every request; the rest are always emitted.
SAMPLING_RATES: dict[str, float] = {
    "principal_authenticated": 0.10,
    "credential_lookup": 0.20,
}

_SENSITIVE_MARKERS = ("token", "key", "secret", "password", "authorization")
_STRUCTURAL_KEYS = {"event", "level", "logger", "timestamp"}
_api_key_prefix = "kw_"

_NOISY_LOGGERS = ("pymongo", "pymongo.topology", "pymongo.connection", "pymongo.serverSelection")


def add_timestamp(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["timestamp"] = datetime.now(timezone.utc).isoformat()
    return event_dict


def redact_secrets(
    logger: logging.Logger, method_name: str, event_dict: EventDict
) -> EventDict:
    for key, value in list(event_dict.items()):
        if key in _STRUCTURAL_KEYS:
            continue
        if any(marker in key.lower() for marker in _SENSITIVE_MARKERS):
            event_dict[key] = REDACTED
        elif isinstance(value, str) and value.startswith(_api_key_prefix):
            event_dict[key] = REDACTED
    return event_dict


def _processors(log_format: str) -> list[Processor]:
    chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_timestamp,
        structlog.processors.StackInfoRenderer(),
        redact_secrets,
        structlog.processors.format_exc_info,
    ]
    if log_format == "json":
        chain.append(structlog.processors.JSONRenderer())
    else:
        chain.append(structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty()))
    return chain


def setup_logging(
    settings: Optional["LoggingSettings"] = None, *, api_key_prefix: Optional[str] = None
) -> None:
    """(Re)configure stdlib logging and structlog.

    Without *settings* the level, format and sampling rates come from the
    environment, which is enough for import time and for the test suite.
    """
    global _api_key_prefix

    if settings is not None:
        level, log_format = settings.log_level, settings.log_format
        SAMPLING_RATES["principal_authenticated"] = settings.sample_rate_auth
        SAMPLING_RATES["credential_lookup"] = settings.sample_rate_lookup
    else:
        level = os.getenv("LOG_LEVEL", "INFO").upper()
        log_format = os.getenv("LOG_FORMAT", "console")
    if api_key_prefix:
        _api_key_prefix = api_key_prefix

    logging.basicConfig(format="%(message)s", stream=sys.stdout, force=True)
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=_processors(log_format),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )


setup_logging()
