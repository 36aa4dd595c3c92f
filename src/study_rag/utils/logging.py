"""
Logging setup for scripts and services embedding the engine.

Library modules only create module-level loggers with
logging.getLogger(__name__); configuring handlers is left to the process
entry point, which calls setup_logging() once.
"""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(log_level: str = "INFO") -> None:
    """
    Configure the root logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL (case-insensitive).

    Raises:
        ValueError: If log_level is not a known level name.
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        raise ValueError(f"Unknown log level: '{log_level}'")

    logging.basicConfig(format=LOG_FORMAT, stream=sys.stderr, level=level, force=True)
    # Third-party HTTP clients are chatty at INFO
    for noisy in ("httpx", "openai", "anthropic"):
        logging.getLogger(noisy).setLevel(max(level, logging.WARNING))
