#!/usr/bin/env python3
"""Script to serve star history charts over HTTP."""

import logging
import sys
import os

# Add project root to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

import uvicorn

from star_trends.api.app import create_app
from star_trends.config import Settings, build_service, configure_logging
from star_trends.infrastructure.cache import TTLCache

logger = logging.getLogger(__name__)


def main():
    """Run the HTTP server."""
    settings = Settings.from_env()
    configure_logging(settings)

    try:
        service = build_service(settings)
        response_cache = TTLCache(default_ttl=settings.cache_ttl_seconds, max_cost=settings.cache_max_cost)
        app = create_app(service, response_cache)

        logger.info(f"Listening on: {settings.host}:{settings.port}")
        uvicorn.run(app, host=settings.host, port=settings.port, log_level=settings.log_level.lower())
        return 0

    except Exception as e:
        logger.error(f"Unable to listen on {settings.host}:{settings.port}: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
