"""Daily energy usage and average power from two cumulative readings.

Readings of the same instance are paired by position across the two
instants. Pairing truncates to the shorter sequence, and instances without a
previous-day series are left out of the result.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal

from power_usage.prometheus import InstanceSeries

HOURS_PER_DAY = 24.0


@dataclass(frozen=True)
class PowerUsage:
    """Energy used by one meter over the 24 hour window.

    Attributes:
        prev_kwh: Cumulative reading at the start of the window
        curr_kwh: Cumulative reading at the end of the window
        daily_kwh: curr_kwh - prev_kwh, negative after a meter reset
        avg_power_watt: Average power over the window, 2 decimal places
    """

    prev_kwh: float
    curr_kwh: float
    daily_kwh: float
    avg_power_watt: float


UsageResult = dict[str, list[PowerUsage]]


def round_half_away(value: float) -> float:
    """Round to the nearest integer, ties away from zero.

    Works on the exact binary value of `value`, unlike the builtin round(),
    which rounds ties to even. Non-finite values are returned unchanged.
    """
    # Floats this large are already integral
    if not math.isfinite(value) or abs(value) >= 2.0**52:
        return value
    return float(Decimal(value).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def average_power_watts(daily_kwh: float) -> float:
    """kWh per day to average watts, rounded to 2 decimal places."""
    return round_half_away(daily_kwh / HOURS_PER_DAY * 100000.0) / 100.0


def compute_usage(curr_kwh: float, prev_kwh: float) -> PowerUsage:
    daily_kwh = curr_kwh - prev_kwh
    return PowerUsage(
        prev_kwh=prev_kwh,
        curr_kwh=curr_kwh,
        daily_kwh=daily_kwh,
        avg_power_watt=average_power_watts(daily_kwh),
    )


def align_usage(current: InstanceSeries, previous: InstanceSeries) -> UsageResult:
    """Pair current and previous readings per instance and compute usage.

    Args:
        current: Readings at the requested instant
        previous: Readings 24 hours earlier

    Returns:
        Mapping of instance to one PowerUsage per paired position, in the
        order of `current`
    """
    result: UsageResult = {}
    for instance, curr_values in current.items():
        prev_values = previous.get(instance)
        if prev_values is None:
            continue
        result[instance] = [
            compute_usage(curr, prev) for curr, prev in zip(curr_values, prev_values)
        ]
    return result
