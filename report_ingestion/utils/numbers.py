"""
Locale Numeric Utilities
========================

Conversion of loosely formatted report cells into typed numbers under the
Russian locale convention (space or dot thousands, comma decimals).

Example inputs:
- "12 345,67 ₽" → 12345.67
- "12.345,67"   → 12345.67
- "12\u00a0345" → 12345.0 (non-breaking space)
- "—"           → None
- "12%"         → 12.0 (0.12 via parse_percent_to_fraction)

Value corrections (clamping) never log or print: callers pass an
``on_clamp`` callback receiving the original value and record it as a
pipeline warning.
"""

import math
import numbers
import re
from decimal import Decimal
from typing import Any, Callable, Final


ClampCallback = Callable[[float], None]

# Cell texts that mean "no value" in marketplace exports
EMPTY_MARKERS: Final[frozenset[str]] = frozenset({"", "—", "-", "–"})

_GLYPHS_RE: Final = re.compile(r"[₽%$€]")
_WHITESPACE_RE: Final = re.compile(r"\s+")
_MINUS_SIGNS_RE: Final = re.compile("[\u2212\u2012\u2013]")
_NON_NUMERIC_RE: Final = re.compile(r"[^0-9.\-]")


# =============================================================================
# Parsing
# =============================================================================


def is_blank_value(value: Any) -> bool:
    """True for a missing cell or a placeholder such as "—"."""
    return value is None or str(value).strip() in EMPTY_MARKERS


def parse_locale_number(value: Any) -> float | None:
    """
    Parse a number from a RU-formatted cell.

    Native numbers pass through when finite. Strings are trimmed, glyphs
    and thousands separators are stripped and the decimal comma becomes a
    decimal point. When both dot and comma are present, dots are thousands
    separators.

    Args:
        value: Raw cell value (str, int, float, Decimal or None)

    Returns:
        Finite float or None

    Examples:
        >>> parse_locale_number("1 200,50 ₽")
        1200.5
        >>> parse_locale_number("12.345,67")
        12345.67
        >>> parse_locale_number("—") is None
        True
    """
    if value is None or isinstance(value, bool):
        return None

    if isinstance(value, (numbers.Real, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else None

    raw = str(value).strip()
    if raw in EMPTY_MARKERS:
        return None

    cleaned = _GLYPHS_RE.sub("", raw)
    cleaned = _WHITESPACE_RE.sub("", cleaned)
    cleaned = _MINUS_SIGNS_RE.sub("-", cleaned)
    cleaned = _normalize_separators(cleaned)
    cleaned = _NON_NUMERIC_RE.sub("", cleaned)

    if cleaned in ("", "-", ".", "-."):
        return None

    try:
        number = float(cleaned)
    except ValueError:
        return None

    return number if math.isfinite(number) else None


def _normalize_separators(value: str) -> str:
    """
    Normalize decimal and thousands separators to a single decimal point.

    - "12.345,67" → "12345.67" (dot thousands, comma decimal)
    - "1234,5"    → "1234.5"
    - "1.234.567" → "1234567" (several dots can only be thousands)
    - "12.5"      → "12.5"
    """
    if "," in value:
        return value.replace(".", "").replace(",", ".")

    if value.count(".") > 1:
        return value.replace(".", "")

    return value


def parse_percent_to_fraction(value: Any) -> float | None:
    """
    Parse a percent or fraction cell into a fraction in [0, 1].

    Values in [0, 1] are already fractions, values in (1, 100] are percents
    and get divided by 100. Anything else is out of domain and rejected.

    Examples:
        >>> parse_percent_to_fraction("12%")
        0.12
        >>> parse_percent_to_fraction(0.3)
        0.3
        >>> parse_percent_to_fraction("120%") is None
        True
    """
    number = parse_locale_number(value)
    if number is None:
        return None
    if 0 <= number <= 1:
        return number
    if 1 < number <= 100:
        return number / 100
    return None


# =============================================================================
# Arithmetic and Clamping
# =============================================================================


def safe_divide(numerator: float | None, denominator: float | None) -> float | None:
    """
    Divide two optional numbers.

    Returns None when either side is None, the denominator is zero or the
    result is not finite. Division by zero never yields zero.
    """
    if numerator is None or denominator is None:
        return None
    if denominator == 0:
        return None

    result = numerator / denominator
    return result if math.isfinite(result) else None


def clamp_fraction(value: float | None, on_clamp: ClampCallback | None = None) -> float | None:
    """Clamp a fraction into [0, 1], reporting corrected values via on_clamp."""
    if value is None:
        return None
    if value < 0:
        if on_clamp is not None:
            on_clamp(value)
        return 0.0
    if value > 1:
        if on_clamp is not None:
            on_clamp(value)
        return 1.0
    return value


def clamp_non_negative(value: float | None, on_clamp: ClampCallback | None = None) -> float | None:
    """Replace a negative number with zero, reporting it via on_clamp."""
    if value is None:
        return None
    if value < 0:
        if on_clamp is not None:
            on_clamp(value)
        return 0.0
    return value


def coerce_non_negative_int(value: float | None, on_clamp: ClampCallback | None = None) -> int | None:
    """
    Round to the nearest integer (halves away from zero for positives) and
    clamp negatives to zero.

    Examples:
        >>> coerce_non_negative_int(2.5)
        3
        >>> coerce_non_negative_int(-5.0)
        0
    """
    if value is None or not math.isfinite(value):
        return None

    rounded = math.floor(value + 0.5)
    if rounded < 0:
        if on_clamp is not None:
            on_clamp(value)
        return 0
    return int(rounded)
