from __future__ import annotations

import math
import re
from typing import Any

# Empirical; McPAT rounds its printed values to about six significant digits.
DEFAULT_TOLERANCE = 6e-6

# Decimal or exponent notation plus inf/nan; no digit separators.
NUMBER_RE = re.compile(
    r"^\s*[-+]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][-+]?\d+)?|inf(?:inity)?|nan)\s*$",
    re.IGNORECASE,
)


def fcmp(a: float, b: float, tol: float = DEFAULT_TOLERANCE) -> bool:
    """Relative-tolerance float equality, symmetric in ``a`` and ``b``."""
    hi = max(abs(a), abs(b))
    if hi == 0:
        return True
    return abs(a - b) / hi < tol


def looks_like_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, (int, float)):
        return True
    if not isinstance(value, str):
        return False
    return NUMBER_RE.match(value) is not None


def as_number(value: Any) -> float | None:
    if not looks_like_number(value):
        return None
    number = float(value)
    if math.isnan(number):
        return None
    return number
