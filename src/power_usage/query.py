"""Query parameter decoding for the power usage endpoint.

Turns the raw `target`, `date`, `time` and `csv` parameters into a
`UsageQuery` whose instant is an aware UTC datetime. The caller's date and
time are local wall-clock values in a fixed reference offset (WIB, UTC+7 by
default), so there are no DST transitions to resolve.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta, timezone, tzinfo

from power_usage.errors import BadRequestError, InternalError

_DATE_SEPARATORS = re.compile(r"[-.]")
_TIME_SEPARATOR = re.compile(":")
_UNSIGNED_INT = re.compile(r"\+?[0-9]+")

# Distance between the two readings being compared
USAGE_WINDOW = timedelta(days=1)
_EARLIEST_INSTANT = datetime.min.replace(tzinfo=UTC) + USAGE_WINDOW


@dataclass(frozen=True)
class UsageQuery:
    """A decoded power usage request.

    Attributes:
        target: Regex matched against the `instance` label, used verbatim
        instant: End of the usage window, aware and in UTC
        want_csv: Render the answer as CSV text instead of JSON
    """

    target: str
    instant: datetime
    want_csv: bool = False

    @property
    def previous_instant(self) -> datetime:
        """Start of the usage window, exactly 24 hours before `instant`."""
        return self.instant - USAGE_WINDOW


def reference_timezone(offset_hours: float) -> tzinfo:
    """Build the fixed-offset timezone local parameters are interpreted in.

    Raises:
        InternalError: If the offset is not representable (|offset| >= 24h)
    """
    try:
        return timezone(timedelta(hours=offset_hours))
    except (ValueError, OverflowError) as e:
        raise InternalError(f"Invalid reference UTC offset {offset_hours!r}: {e}") from e


def _parse_components(value: str | None, separator: re.Pattern, count: int) -> list[int]:
    if value is None:
        raise BadRequestError("Missing parameter")
    parts = separator.split(value)
    if len(parts) != count:
        raise BadRequestError(f"Expected {count} components in {value!r}")
    for part in parts:
        if not _UNSIGNED_INT.fullmatch(part):
            raise BadRequestError(f"Non-numeric component {part!r} in {value!r}")
    return [int(part) for part in parts]


def parse_date(value: str | None) -> tuple[int, int, int]:
    """Split `YYYY-MM-DD` (or `YYYY.MM.DD`) into (year, month, day).

    No range checks are done here; invalid calendar values fail when the
    datetime is built.
    """
    year, month, day = _parse_components(value, _DATE_SEPARATORS, 3)
    return year, month, day


def parse_time(value: str | None) -> tuple[int, int]:
    """Split `HH:MM` into (hour, minute)."""
    hour, minute = _parse_components(value, _TIME_SEPARATOR, 2)
    return hour, minute


def parse_usage_query(params: Mapping[str, str], tz: tzinfo) -> UsageQuery:
    """Decode request parameters into a UsageQuery.

    Args:
        params: Raw query string parameters
        tz: Timezone the local `date` and `time` are expressed in

    Returns:
        UsageQuery with its instant converted to UTC

    Raises:
        BadRequestError: On any missing or malformed parameter, or when the
            date and time do not form a valid calendar timestamp
    """
    target = params.get("target")
    if not target:
        raise BadRequestError("Missing parameter 'target'")

    year, month, day = parse_date(params.get("date"))
    hour, minute = parse_time(params.get("time"))
    want_csv = params.get("csv") == "true"

    try:
        local = datetime(year, month, day, hour, minute, 0, tzinfo=tz)
        instant = local.astimezone(UTC)
    except (ValueError, OverflowError) as e:
        raise BadRequestError(f"Invalid timestamp: {e}") from e

    # The previous-day reading must be representable too
    if instant < _EARLIEST_INSTANT:
        raise BadRequestError(f"No previous day for {instant.isoformat()}")

    return UsageQuery(target=target, instant=instant, want_csv=want_csv)
