"""Pytest configuration and shared fixtures."""

import httpx
import pytest

from power_usage.config import Settings

CURRENT_TIME = "2024-05-01T03:00:00Z"
PREVIOUS_TIME = "2024-04-30T03:00:00Z"


def vector_response(*samples: tuple[str, str, str]) -> dict:
    """Build a Prometheus instant-vector body from (instance, address, value) triples."""
    return {
        "status": "success",
        "data": {
            "resultType": "vector",
            "result": [
                {
                    "metric": {"__name__": "energy", "instance": instance, "address": address},
                    "value": [1714532400, value],
                }
                for instance, address, value in samples
            ],
        },
    }


@pytest.fixture
def settings():
    """Settings pointing at a fake Prometheus, isolated from any .env file."""
    return Settings(_env_file=None, prometheus_host="prometheus.test:9090", query_timeout=0.5)


@pytest.fixture
def backend():
    """Fake Prometheus answering by query time.

    Tests fill `responses` with time -> body (dict) or httpx.Response, and can
    inspect `requests` afterwards.
    """

    class FakeBackend:
        def __init__(self):
            self.responses: dict[str, object] = {}
            self.requests: list[httpx.Request] = []

        def handler(self, request: httpx.Request) -> httpx.Response:
            self.requests.append(request)
            body = self.responses.get(request.url.params.get("time"))
            if isinstance(body, httpx.Response):
                return body
            if body is None:
                return httpx.Response(200, json=vector_response())
            return httpx.Response(200, json=body)

        def client(self) -> httpx.AsyncClient:
            return httpx.AsyncClient(transport=httpx.MockTransport(self.handler))

    return FakeBackend()
