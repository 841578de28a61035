"""
Deliberately slow operation used to demonstrate cache hits.
"""

import time

from shared.errors import ValidationError
from shared.logging import get_logger


logger = get_logger("memoizer.slow")


def slow_operation(seconds: int) -> int:
    """Block the calling thread for ``seconds`` seconds and return ``seconds``."""
    logger.info("Running slow operation", seconds=seconds)
    time.sleep(seconds)
    return seconds


def as_whole_seconds(value: float) -> int:
    """Convert a decoded argument to a non-negative whole number of seconds."""
    if isinstance(value, bool) or not float(value).is_integer() or value < 0:
        raise ValidationError(
            f"delay must be a non-negative whole number of seconds, got {value!r}",
            {"value": value},
        )
    return int(value)
