"""FastAPI application for the power usage gateway."""

import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse, Response

from .config import Settings, get_settings
from .errors import InternalError, PowerUsageError
from .prometheus import PrometheusClient
from .query import parse_usage_query, reference_timezone
from .render import render_csv, render_json
from .usage import align_usage

logger = logging.getLogger(__name__)

ERROR_BODY = "Invalid request"


def get_prometheus_client(request: Request) -> PrometheusClient:
    """Dependency returning the client created by the app lifespan."""
    return request.app.state.prometheus


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


async def handle_power_usage_error(request: Request, exc: PowerUsageError) -> Response:
    """Map any gateway error to its status code with a generic body."""
    if isinstance(exc, InternalError):
        logger.error(f"{request.url.path}: {exc}")
    else:
        logger.warning(f"{request.url.path} -> {exc.status_code}: {exc}")
    return PlainTextResponse(ERROR_BODY, status_code=exc.status_code)


async def health_check():
    """Liveness probe. Does not contact Prometheus."""
    return {"status": "healthy", "service": "power-usage"}


async def power_usage(
    request: Request,
    settings: Settings = Depends(get_app_settings),
    client: PrometheusClient = Depends(get_prometheus_client),
) -> Response:
    """
    Daily energy usage per meter for the 24 hours ending at `date` `time`.

    Query parameters:
    - target: regex for the Prometheus `instance` label
    - date: local date, YYYY-MM-DD
    - time: local time, HH:MM
    - csv: "true" for CSV text instead of JSON

    Both readings are fetched concurrently; any failure fails the request.
    """
    tz = reference_timezone(settings.reference_utc_offset_hours)
    query = parse_usage_query(request.query_params, tz)

    current, previous = await asyncio.gather(
        client.fetch(query.target, query.instant),
        client.fetch(query.target, query.previous_instant),
    )
    result = align_usage(current, previous)
    logger.info(
        f"Power usage for {query.target!r} at {query.instant.isoformat()}: "
        f"{len(result)} instance(s)"
    )

    if query.want_csv:
        return PlainTextResponse(render_csv(result))
    return JSONResponse(render_json(result))


def create_app(settings: Settings | None = None, client: PrometheusClient | None = None) -> FastAPI:
    """Build the application.

    Args:
        settings: Settings to use; loaded from the environment when omitted
        client: Prometheus client to use; created in the lifespan when omitted
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan - create and close the Prometheus client."""
        logger.info(
            f"Starting {settings.server_name} v{settings.server_version} "
            f"(prometheus={settings.prometheus_base_url})"
        )
        owns_client = app.state.prometheus is None
        if owns_client:
            app.state.prometheus = PrometheusClient(settings)
        yield
        if owns_client:
            await app.state.prometheus.aclose()
            app.state.prometheus = None
        logger.info("Server shutdown complete")

    app = FastAPI(
        title="Power Usage API",
        description="Daily energy usage and average power from Prometheus meter readings",
        version=settings.server_version,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.prometheus = client

    app.add_exception_handler(PowerUsageError, handle_power_usage_error)
    app.add_api_route("/health", health_check, methods=["GET"])
    app.add_api_route("/api/v1/power-usage", power_usage, methods=["GET"])
    return app
