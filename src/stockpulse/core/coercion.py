"""Total conversions of agent-supplied values into numbers and string lists."""

import math
import re
from typing import Any, List, Union

Number = Union[int, float]

# Characters kept before parsing: digits, dot and minus.
_NON_NUMERIC = re.compile(r"[^0-9.\-]")
# Longest real-number prefix, the way a lenient float parser reads it.
_NUMBER_PREFIX = re.compile(r"^-?(?:\d+(?:\.\d*)?|\.\d+)")


def safe_number(value: Any) -> Number:
    """
    Coerce any value into a finite number.

    Numbers pass through unchanged. Everything else is stringified (falsy
    values become "0"), stripped down to digits, dots and minus signs, and
    the leading numeric prefix is parsed. Anything unparseable yields 0.

    Args:
        value: Arbitrary input, typically a score string such as "72/100"

    Returns:
        The parsed number, or 0 when nothing usable is found
    """
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            return value if math.isfinite(value) else 0
        except OverflowError:
            # int too large for a float
            return 0

    text = _NON_NUMERIC.sub("", str(value or "0"))
    match = _NUMBER_PREFIX.match(text)
    if not match:
        return 0

    number = float(match.group(0))
    if not math.isfinite(number):
        return 0
    return number


def safe_array(value: Any) -> List[str]:
    """
    Keep only the string elements of a sequence.

    Args:
        value: Arbitrary input, typically a list of highlight strings

    Returns:
        A new list of the string elements in their original order, or an
        empty list if ``value`` is not a list or tuple
    """
    if isinstance(value, (list, tuple)):
        return [item for item in value if isinstance(item, str)]
    return []


def clamp_score(value: Any, lower: float = 0.0, upper: float = 100.0) -> float:
    """Clamp a score-like value to a gauge range after coercion."""
    return float(min(upper, max(lower, safe_number(value))))
