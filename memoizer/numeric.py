"""
Numeric helpers used by the command line driver.
"""

import math
import re
from typing import Iterable, List, Sequence

from shared.errors import ParseError, ValidationError


_DECIMAL_LITERAL = re.compile(r"-?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?", re.ASCII)
_SPECIAL_LITERAL = re.compile(r"-?(?:inf|infinity|nan)", re.IGNORECASE)


def parse_number(text: str) -> float:
    """Decode a complete numeric literal.

    Accepts decimal and scientific notation plus ``inf``/``infinity``/``nan``.
    Leading ``+``, surrounding whitespace and trailing garbage are rejected, as
    are finite literals too large to represent.
    """
    if _SPECIAL_LITERAL.fullmatch(text):
        return float(text)
    if not _DECIMAL_LITERAL.fullmatch(text):
        raise ParseError(text)

    value = float(text)
    if math.isinf(value):
        raise ParseError(text, "value out of representable range")
    return value


def parse_numbers(texts: Iterable[str]) -> List[float]:
    """Decode every literal, failing on the first malformed one."""
    return [parse_number(text) for text in texts]


def total(values: Iterable[float]) -> float:
    return sum(values, 0.0)


def average(values: Sequence[float]) -> float:
    """Arithmetic mean of a non-empty sequence."""
    if not values:
        raise ValidationError("cannot average an empty sequence")
    return total(values) / len(values)


def format_number(value) -> str:
    """Render a result the way it is printed on the command line.

    Integral floats drop their trailing ``.0``.
    """
    if isinstance(value, float) and value.is_integer() and abs(value) < 1e16:
        return str(int(value))
    return str(value)
