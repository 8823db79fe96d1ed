"""
Logger helpers used across services and routes.

Event names are snake_case verbs in the past tense (``credential_issued``,
``principal_revoked_cascade``); identifiers travel as ``*_id`` fields, never
as secrets.
"""

from __future__ import annotations

import random

import structlog
from structlog.stdlib import BoundLogger

from utils.logging_config import SAMPLING_RATES


def get_logger(name: str) -> BoundLogger:
    return structlog.get_logger(name)


def should_sample(event_type: str) -> bool:
    """True if a high-frequency *event_type* should be emitted this time.

    Events without a configured rate are always emitted.
    """
    rate = SAMPLING_RATES.get(event_type, 1.0)
    if rate >= 1.0:
        return True
    if rate <= 0.0:
        return False
    return random.random() < rate


def log_with_context(logger: BoundLogger, **context) -> BoundLogger:
    """Return *logger* with *context* bound to every subsequent event.

    >>> log = log_with_context(get_logger(__name__), actor_id="65f0...")
    >>> log.info("permission_added")  # carries actor_id
    """
    return logger.bind(**context)
