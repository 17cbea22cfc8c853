"""String parsing utilities for query parameters.

Browser clients pass numbers as loose strings ("3", "3rd", "12.5abc"), so
these helpers read the leading number the way JavaScript's parseInt() and
parseFloat() do instead of rejecting the whole value.
"""

import calendar

from utils.patterns import LEADING_FLOAT, LEADING_INT

# "january" -> 1, "jan" -> 1, ...
_MONTH_NAMES = {
    name.lower(): number
    for number, name in enumerate(calendar.month_name)
    if name
}
_MONTH_NAMES.update(
    (abbr.lower(), number)
    for number, abbr in enumerate(calendar.month_abbr)
    if abbr
)


def parse_leading_float(val, default: float = 0.0) -> float:
    """Parse the leading decimal number of a value, parseFloat-style.

    Handles:
    - None, empty strings, text without a leading number -> default
    - Numeric types -> float
    - "12.5abc" -> 12.5

    Args:
        val: Value to convert (any type)
        default: Value to return when no number can be read (default: 0.0)

    Returns:
        float: Parsed value or default
    """
    if val is None:
        return default
    if isinstance(val, bool):
        return float(val)
    if isinstance(val, (int, float)):
        return float(val)
    match = LEADING_FLOAT.match(str(val))
    if not match:
        return default
    return float(match.group(1))


def parse_leading_int(val) -> int | None:
    """Parse the leading integer of a value, parseInt-style.

    Returns None when the value has no leading digits.
    """
    if val is None:
        return None
    if isinstance(val, int) and not isinstance(val, bool):
        return val
    match = LEADING_INT.match(str(val))
    if not match:
        return None
    return int(match.group(1))


def month_number_from_name(name: str) -> int | None:
    """Map a month name ("March", "mar") or number ("3") to 1..12.

    Returns None for anything that is not a recognisable month.
    """
    key = name.strip().lower()
    if key in _MONTH_NAMES:
        return _MONTH_NAMES[key]
    if key.isdigit() and 1 <= int(key) <= 12:
        return int(key)
    return None
