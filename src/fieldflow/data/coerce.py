"""Fail-open value coercions shared by the registry and record builders.

Every function here accepts arbitrary form or CSV input and returns a
documented default instead of raising.
"""

from datetime import date
import math
from typing import Any, Iterable

import pandas as pd

TRUTHY_STRINGS = frozenset({"true", "t", "yes", "y", "1", "on", "ok", "pass"})
FALSY_STRINGS = frozenset({"false", "f", "no", "n", "0", "off", "fail"})


def to_text(value: Any, default: str = "") -> str:
    """Convert to a trimmed string; ``None`` gives ``default``."""
    if value is None:
        return default
    return str(value).strip()


def to_float(value: Any, default: float = 0.0) -> float:
    """Parse a float, returning ``default`` on absence or failure.

    Empty strings, non-numeric text, NaN and infinities all give
    ``default``. Booleans count as 1.0 / 0.0.
    """
    if value is None:
        return default
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return default
    try:
        result = float(value)
    except (TypeError, ValueError, OverflowError):
        return default
    if math.isnan(result) or math.isinf(result):
        return default
    return result


def to_int(value: Any, default: int = 0) -> int:
    """Parse an integer, accepting integral float text like ``"2.0"``.

    Fractional values are truncated toward zero.
    """
    result = to_float(value, default=math.nan)
    if math.isnan(result):
        return default
    return int(result)


def to_non_negative_float(value: Any, default: float = 0.0) -> float:
    """Parse a float and clamp negatives to ``default``."""
    result = to_float(value, default=default)
    return result if result >= 0 else default


def to_tristate(value: Any) -> bool | None:
    """Coerce to True, False or None (unknown).

    Recognizes booleans, numbers and the usual yes/no spellings.
    Anything else, including empty input, is unknown.
    """
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        return value != 0
    text = str(value).strip().lower()
    if text in TRUTHY_STRINGS:
        return True
    if text in FALSY_STRINGS:
        return False
    return None


def to_flag(value: Any) -> str:
    """Coerce truthy/falsy input to a ``"Y"``/``"N"`` marker.

    Empty strings and recognized negative spellings give ``"N"``; any other
    non-empty text gives ``"Y"``.
    """
    if isinstance(value, str):
        text = value.strip().lower()
        return "N" if not text or text in FALSY_STRINGS else "Y"
    return "Y" if value else "N"


def to_choice(value: Any, choices: Iterable[str], default: str) -> str:
    """Match ``value`` case-insensitively against ``choices``.

    Returns the canonical spelling from ``choices`` or ``default``.
    """
    text = to_text(value).lower()
    for choice in choices:
        if choice.lower() == text:
            return choice
    return default


def to_text_list(value: Any) -> list[str]:
    """Coerce to a list of strings.

    A single string becomes a one-item list (empty string gives an empty
    list); ``None`` gives an empty list; ``None`` items are dropped.
    """
    if value is None:
        return []
    if isinstance(value, str):
        return [value] if value else []
    try:
        return [str(item) for item in value if item is not None]
    except TypeError:
        return [str(value)]


def parse_date(value: Any) -> date | None:
    """Parse a date or timestamp string to a calendar date.

    Accepts ISO dates, ISO timestamps (with ``Z`` or offsets, reduced to
    their UTC calendar day) and the other formats pandas understands.

    Returns:
        The calendar date, or None if unparseable
    """
    text = to_text(value)
    if not text:
        return None
    try:
        ts = pd.to_datetime(text, errors="coerce")
    except (TypeError, ValueError, OverflowError):
        return None
    if ts is None or pd.isna(ts):
        return None
    if ts.tzinfo is not None:
        ts = ts.tz_convert("UTC")
    return ts.date()
