"""HTTP server entry point for the power usage gateway."""

import logging

import uvicorn

from power_usage.config import get_settings

logger = logging.getLogger(__name__)


def main():
    """Entry point for the power usage server.

    Fails at startup if PROMETHEUS_HOST is not configured.
    """
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper())
    logger.info(f"Server running on http://{settings.server_host}:{settings.server_port}")
    uvicorn.run(
        "power_usage.app:create_app",
        factory=True,
        host=settings.server_host,
        port=settings.server_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
