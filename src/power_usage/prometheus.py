"""Prometheus client for cumulative energy readings.

Issues instant queries against the Prometheus HTTP API and reshapes the
vector result into per-instance reading sequences, ordered by the numeric
`address` label of each series.
"""

import asyncio
import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

import httpx
from pydantic import BaseModel, ValidationError

from power_usage.config import Settings
from power_usage.errors import BackendUnreachableError

logger = logging.getLogger(__name__)

# instance -> readings ordered by address
InstanceSeries = dict[str, list[float]]

UNKNOWN_INSTANCE = "unknown"
_U32_MAX = 0xFFFFFFFF
_UNSIGNED_INT = re.compile(r"\+?[0-9]+")


class QueryData(BaseModel):
    """The `data` member of a Prometheus query response."""

    result: list[Any]


class QueryResponse(BaseModel):
    """Envelope of a Prometheus query response. Only `data.result` is used."""

    data: QueryData


@dataclass(frozen=True)
class RawSample:
    """One series of an instant vector, reduced to the fields we use."""

    instance: str
    address: int
    value: float | None


def parse_address(raw: Any) -> int:
    """Parse an `address` label as an unsigned 32-bit integer, 0 if it isn't one."""
    if not isinstance(raw, str) or not _UNSIGNED_INT.fullmatch(raw):
        return 0
    address = int(raw)
    return address if address <= _U32_MAX else 0


def parse_sample_value(raw: Any) -> float | None:
    """Parse a string-encoded sample value. Returns None if it is not a float."""
    if not isinstance(raw, str) or raw != raw.strip() or "_" in raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


def to_raw_sample(item: Any) -> RawSample:
    """Read one result item, tolerating any missing or mistyped field."""
    item = item if isinstance(item, dict) else {}
    labels = item.get("metric")
    labels = labels if isinstance(labels, dict) else {}
    instance = labels.get("instance")
    if not isinstance(instance, str):
        instance = UNKNOWN_INSTANCE

    pair = item.get("value")
    value = None
    if isinstance(pair, list) and len(pair) > 1:
        value = parse_sample_value(pair[1])

    return RawSample(
        instance=instance,
        address=parse_address(labels.get("address")),
        value=value,
    )


def group_samples(samples: list[RawSample]) -> InstanceSeries:
    """Sort samples by address (stable) and group their values by instance.

    Samples without a parseable value are dropped after sorting.
    """
    series: InstanceSeries = {}
    for sample in sorted(samples, key=lambda s: s.address):
        if sample.value is None:
            continue
        series.setdefault(sample.instance, []).append(sample.value)
    return series


def parse_query_result(payload: Any) -> InstanceSeries:
    """Convert a decoded Prometheus response body into an InstanceSeries.

    Raises:
        BackendUnreachableError: If the body has no `data.result` array
    """
    try:
        response = QueryResponse.model_validate(payload)
    except ValidationError as e:
        raise BackendUnreachableError(f"Unexpected Prometheus response shape: {e}") from e
    return group_samples([to_raw_sample(item) for item in response.data.result])


def format_query_time(instant: datetime) -> str:
    """Format an instant as RFC 3339 UTC with seconds precision, e.g. 2024-05-01T03:00:00Z."""
    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=UTC)
    return instant.astimezone(UTC).strftime("%Y-%m-%dT%H:%M:%SZ")


def build_energy_query(metric: str, target: str, lookback: str) -> str:
    """Build the PromQL selecting the latest reading per series within `lookback`.

    `target` is inserted verbatim as a regex matcher on the `instance` label.
    """
    return f'last_over_time({{__name__="{metric}",instance=~"{target}"}}[{lookback}])'


class PrometheusClient:
    """Instant-query client for the energy metric.

    Holds no per-request state; a single instance is shared by all requests.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None):
        self.settings = settings
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(settings.query_timeout)
        )

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this instance created it."""
        if self._owns_client:
            await self._client.aclose()

    async def _query(self, params: dict[str, str]) -> Any:
        response = await self._client.get(self.settings.prometheus_query_url, params=params)
        return response.json()

    async def fetch(self, target: str, instant: datetime) -> InstanceSeries:
        """Fetch the latest energy reading of every series matching `target` at `instant`.

        Args:
            target: Regex for the `instance` label
            instant: Evaluation time of the query

        Returns:
            Mapping of instance to readings ordered by address

        Raises:
            BackendUnreachableError: On transport failure, timeout, a non-JSON
                body or a body without a result array
        """
        params = {
            "query": build_energy_query(
                self.settings.energy_metric, target, self.settings.lookback_window
            ),
            "time": format_query_time(instant),
        }
        logger.debug(f"Prometheus query: {params['query']} @ {params['time']}")

        try:
            payload = await asyncio.wait_for(
                self._query(params),
                timeout=self.settings.query_timeout,
            )
        except TimeoutError as e:
            logger.warning(
                f"Prometheus query timed out after {self.settings.query_timeout}s"
            )
            raise BackendUnreachableError("Prometheus query timed out") from e
        except httpx.HTTPError as e:
            logger.warning(f"Prometheus request failed: {e!r}")
            raise BackendUnreachableError(f"Prometheus request failed: {e}") from e
        except ValueError as e:
            logger.warning(f"Prometheus returned a non-JSON body: {e}")
            raise BackendUnreachableError("Prometheus returned a non-JSON body") from e

        try:
            return parse_query_result(payload)
        except BackendUnreachableError:
            logger.warning("Prometheus response is missing data.result")
            raise
