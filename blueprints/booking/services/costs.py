# blueprints/booking/services/costs.py
from __future__ import annotations
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from .dto import TeacherInfo


def calculate_cost(price: Optional[float], commission_rate: Optional[float]) -> Optional[int]:
    """Teacher pay for a lesson: price * rate%, rounded half-up to a whole amount."""
    if price is None:
        return None
    raw = Decimal(str(price)) * Decimal(str(commission_rate or 0)) / Decimal(100)
    return int(raw.quantize(Decimal(1), rounding=ROUND_HALF_UP))


def cost_for_teacher(price: Optional[float], teacher: Optional[TeacherInfo]) -> int:
    # preview occurrences fall back to 0 when either side is unknown
    if teacher is None or price is None:
        return 0
    return calculate_cost(price, teacher.commission_rate)
