# sales_analytics/comparator.py
import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from typing import Sequence

ONE_DECIMAL = Decimal("0.1")

@dataclass(frozen=True)
class ComparisonResult:
    total_revenue: float
    percentage_change: float
    is_positive: bool

def round_half_away(value: Decimal, exponent: Decimal = ONE_DECIMAL) -> Decimal:
    # ROUND_HALF_UP in the decimal module rounds ties away from zero
    return value.quantize(exponent, rounding=ROUND_HALF_UP)

def percentage_change(current: float, previous: float) -> float:
    """
    Absolute period-over-period change in percent, one decimal place.

    Growth from nothing is reported as a flat 100, and no activity in either
    period as 0.
    """
    if previous > 0:
        ratio = (Decimal(repr(current)) - Decimal(repr(previous))) / Decimal(repr(previous)) * 100
        return float(abs(round_half_away(ratio)))
    if current > 0:
        return 100.0
    return 0.0

def compare_periods(current: Sequence[float], comparison: Sequence[float]) -> ComparisonResult:
    total = math.fsum(current)
    previous = math.fsum(comparison)
    return ComparisonResult(
        total_revenue=total,
        percentage_change=percentage_change(total, previous),
        is_positive=total >= previous,
    )
