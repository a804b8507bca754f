"""Rendering of usage results as JSON data or CSV text."""

from __future__ import annotations

import math
from decimal import Decimal

from power_usage.usage import PowerUsage, UsageResult

CSV_HEADER = "Target,Address,Prev_kWh,Current_kWh,Daily_KWh,Avg_Power_Watt"


def format_number(value: float) -> str:
    """Format a float in plain decimal notation.

    Uses the shortest digits that round-trip, never an exponent, and drops
    the fractional part of integral values: 250.0 -> "250", 1e-05 -> "0.00001".
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    text = format(Decimal(repr(value)), "f")
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _json_number(value: float) -> float | None:
    # JSON has no NaN or Infinity
    return value if math.isfinite(value) else None


def usage_to_dict(usage: PowerUsage) -> dict[str, float | None]:
    return {
        "prev_kwh": _json_number(usage.prev_kwh),
        "curr_kwh": _json_number(usage.curr_kwh),
        "daily_kwh": _json_number(usage.daily_kwh),
        "avg_power_watt": _json_number(usage.avg_power_watt),
    }


def render_json(result: UsageResult) -> dict[str, list[dict[str, float | None]]]:
    """Render a usage result as instance -> list of record dicts."""
    return {
        instance: [usage_to_dict(usage) for usage in usages]
        for instance, usages in result.items()
    }


def render_csv(result: UsageResult) -> str:
    """Render a usage result as CSV text.

    Address is the 1-based position of the record within its instance.
    Records with an average power of exactly zero are left out; the header
    is always written.
    """
    lines = [CSV_HEADER]
    for instance, usages in result.items():
        for position, usage in enumerate(usages, start=1):
            if usage.avg_power_watt == 0.0:
                continue
            fields = [
                instance,
                str(position),
                format_number(usage.prev_kwh),
                format_number(usage.curr_kwh),
                format_number(usage.daily_kwh),
                format_number(usage.avg_power_watt),
            ]
            lines.append(",".join(fields))
    return "\n".join(lines) + "\n"
