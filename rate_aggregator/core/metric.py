"""Metric snapshot model and numeric conversion of field values."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

INT64_MIN = -(2 ** 63)
UINT64_MAX = 2 ** 64 - 1


@dataclass
class Metric:
    """One observation of a named, tagged set of fields.

    `fields` may hold values of any type; only numeric ones take part in
    rate computation.
    """

    name: str
    tags: Dict[str, str] = field(default_factory=dict)
    fields: Dict[str, Any] = field(default_factory=dict)
    timestamp: Optional[float] = None


def convert_numeric(value: Any) -> Tuple[float, bool]:
    """Convert a field value to float.

    Accepted kinds are floats and integers within the signed/unsigned
    64-bit range. Booleans, strings and non-finite floats are rejected.

    Returns:
        (converted_value, ok)
    """
    if isinstance(value, bool):
        return 0.0, False
    if isinstance(value, float):
        if not math.isfinite(value):
            return 0.0, False
        return value, True
    if isinstance(value, int):
        if INT64_MIN <= value <= UINT64_MAX:
            return float(value), True
        return 0.0, False
    return 0.0, False
