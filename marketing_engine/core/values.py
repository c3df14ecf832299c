"""
Answer-value extraction.

Answers arrive as a flat map of question keys to strings, numbers, booleans
or string lists. These helpers coerce them without ever raising: anything
that cannot be read as the requested type is treated as absent.
"""

from __future__ import annotations

import math
from collections.abc import Mapping
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

# Exact tokens that count as "true" (strings compared case-insensitively)
TRUTHY_TOKENS = frozenset({"yes", "true", "1", "نعم"})

Answers = Mapping[str, Any]


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


def _is_blank(value: Any) -> bool:
    return value is None or value == "" or value == [] or value == ()


def first_present(answers: Answers, *keys: str) -> Any:
    """Return the value of the first key (alias) that holds a non-blank value; None otherwise."""
    for key in keys:
        value = answers.get(key)
        if not _is_blank(value):
            return value
    return None


def get_bool(answers: Answers, *keys: str) -> bool:
    """True only when the value is one of TRUTHY_TOKENS, boolean True, or the number 1."""
    value = first_present(answers, *keys)
    if value is True:
        return True
    if value is False or value is None:
        return False
    if isinstance(value, (int, float)):
        return value == 1
    if isinstance(value, str):
        return value.strip().lower() in TRUTHY_TOKENS
    return False


def get_numeric(answers: Answers, *keys: str) -> float | None:
    """Numeric value (numbers or numeric strings); None when absent or not a finite number."""
    value = first_present(answers, *keys)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
    elif isinstance(value, str):
        try:
            number = float(value.strip().replace(",", ""))
        except ValueError:
            return None
    else:
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return number


def get_number(answers: Answers, key: str, default: float, *aliases: str) -> float:
    """get_numeric with a default for absent values."""
    value = get_numeric(answers, key, *aliases)
    return default if value is None else value


def get_scale(answers: Answers, key: str, max_points: float, invert: bool = False) -> int:
    """
    Convert a 0-10 scale answer into points out of max_points.

    Missing answers score 0. Inverted scales reward low answers
    (e.g. differentiation gap: 10 = no differentiation).
    """
    value = get_numeric(answers, key)
    if value is None:
        return 0
    fraction = clamp(value / 10.0, 0.0, 1.0)
    if invert:
        fraction = 1.0 - fraction
    return round_int(fraction * max_points)


def get_str(answers: Answers, *keys: str, default: str | None = None) -> str | None:
    """Lower-cased, stripped string value; numbers are stringified; lists and blanks are absent."""
    value = first_present(answers, *keys)
    if value is None or isinstance(value, (list, tuple, dict)):
        return default
    if isinstance(value, bool):
        return "yes" if value else "no"
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    text = str(value).strip().lower()
    return text or default


def get_list(answers: Answers, *keys: str) -> list[str]:
    """String-list answer; a comma-separated string is split; absent gives []."""
    value = first_present(answers, *keys)
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(v).strip() for v in value if not _is_blank(v)]
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return []


def is_numeric_value(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return not (math.isnan(value) or math.isinf(value))
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return False
        return not (math.isnan(number) or math.isinf(number))
    return False


def safe_ratio(numerator: float | None, denominator: float | None) -> float | None:
    """numerator / denominator, or None when either side is missing or the denominator is not positive."""
    if numerator is None or denominator is None or denominator <= 0:
        return None
    return numerator / denominator


def round_half_up(value: float, ndigits: int = 0) -> float:
    """Round halves away from zero (2.5 -> 3, -2.5 -> -3), unlike the built-in banker's rounding."""
    quantum = Decimal(1).scaleb(-ndigits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_int(value: float) -> int:
    return int(round_half_up(value))
