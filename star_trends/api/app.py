"""FastAPI application serving star history charts."""

import asyncio
import logging
from typing import Any, Callable, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse, Response
from starlette.concurrency import run_in_threadpool

from star_trends.application.cancellation import CancelToken
from star_trends.application.star_history_service import StarHistoryService
from star_trends.domain.errors import StarTrendsError
from star_trends.domain.models import RENDERED_SVG, CacheKey
from star_trends.infrastructure.cache import TTLCache

logger = logging.getLogger(__name__)

SVG_MEDIA_TYPE = "image/svg+xml;charset=utf-8"
CACHE_CONTROL = "public, max-age=86400"
DISCONNECT_POLL_SECONDS = 0.25


def svg_cache_key(user: str, repo: str) -> str:
    return str(CacheKey(RENDERED_SVG, (user, repo)))


def send_svg(svg: bytes, hit: bool) -> Response:
    return Response(
        content=svg,
        media_type=SVG_MEDIA_TYPE,
        headers={
            "cache-hit": "hit" if hit else "miss",
            "cache-control": CACHE_CONTROL,
        },
    )


async def run_cancellable(request: Request, token: CancelToken, fn: Callable[..., Any], *args: Any) -> Any:
    """
    Run fn in the threadpool, cancelling token when the client goes away.

    The engine is blocking; this keeps the event loop free and turns a client
    disconnect into a cancellation of every nested fan-out.
    """
    work = asyncio.ensure_future(run_in_threadpool(fn, *args))
    try:
        while True:
            done, _ = await asyncio.wait({work}, timeout=DISCONNECT_POLL_SECONDS)
            if done:
                return work.result()
            if not token.cancelled and await request.is_disconnected():
                logger.info("Client disconnected, cancelling aggregation.")
                token.cancel("client disconnected")
    finally:
        if not work.done():
            token.cancel("request aborted")


def create_app(
    service: StarHistoryService,
    response_cache: Optional[TTLCache] = None,
    ttl: Optional[float] = None,
) -> FastAPI:
    """
    Build the HTTP application.

    Args:
        service: Star history service doing the actual work
        response_cache: Cache of rendered SVGs (a new one if None)
        ttl: TTL in seconds of rendered SVGs (cache default if None)
    """
    responses = response_cache if response_cache is not None else TTLCache()

    app = FastAPI(
        title="Star Trends",
        description="Cumulative GitHub stargazer charts",
        version="1.0.0",
    )

    @app.get("/health")
    async def health_check():
        """Simple API health check."""
        return {"status": "healthy"}

    @app.get("/stars.svg")
    async def stars(request: Request, user: str = Query(..., min_length=1), repo: str = ""):
        """Stargazer growth of one repository, or of every repository of user."""
        cache_key = svg_cache_key(user, repo)
        svg, found = responses.get(cache_key)
        if found:
            logger.debug(f"Found {cache_key} in cache.")
            return send_svg(svg, hit=True)

        token = CancelToken()
        try:
            svg = await run_cancellable(request, token, service.render_stars, user, repo or None, token)
        except StarTrendsError as e:
            logger.error(f"Unable to render stars for {user}/{repo}: {e}")
            return PlainTextResponse(str(e), status_code=500)

        responses.set(cache_key, svg, ttl=ttl, cost=len(svg))
        return send_svg(svg, hit=False)

    return app
