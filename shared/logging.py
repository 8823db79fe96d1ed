"""
Logging entry points for services, repositories and routes.

Application code imports from here; utils/ holds the structlog wiring.
"""

from utils.logger import get_logger, log_with_context, should_sample
from utils.logging_config import REDACTED, SAMPLING_RATES, setup_logging

__all__ = [
    "REDACTED",
    "SAMPLING_RATES",
    "get_logger",
    "log_with_context",
    "setup_logging",
    "should_sample",
]
