from __future__ import annotations

import math
import uuid
from decimal import Decimal
from typing import Any


def coerce_uuid(value: uuid.UUID | str) -> uuid.UUID:
    if isinstance(value, uuid.UUID):
        return value
    return uuid.UUID(str(value))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves toward positive infinity.

    >>> round_half_up(77.5)
    78
    >>> round_half_up(-2.5)
    -2
    """
    # Absorb binary noise such as 77.49999999999999 before flooring.
    return math.floor(round(value, 9) + 0.5)


def percent_variance(planned: float | None, actual: float | None) -> int:
    """Signed percentage of ``actual`` over ``planned``; 0 when nothing was planned."""
    planned_value = float(planned or 0)
    actual_value = float(actual or 0)
    if planned_value == 0:
        return 0
    return round_half_up(((actual_value - planned_value) / planned_value) * 100)


def to_float(value: Any, default: float = 0.0) -> float:
    try:
        if value is None:
            return default
        if isinstance(value, Decimal):
            return float(value)
        return float(value)
    except (TypeError, ValueError):
        return default
