"""Process configuration read from environment variables."""

import logging
import os
from dataclasses import dataclass
from typing import Optional

from star_trends.application.fan_out import DEFAULT_MAX_WORKERS
from star_trends.application.star_history_service import StarHistoryService
from star_trends.infrastructure.cache import DEFAULT_MAX_COST, TTLCache
from star_trends.infrastructure.github_client import GitHubRestClient

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


@dataclass(frozen=True)
class Settings:
    """Settings for the service and scripts."""

    github_token: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 5000
    log_level: str = "INFO"
    cache_ttl_hours: float = 48
    cache_max_cost: int = DEFAULT_MAX_COST
    max_workers: int = DEFAULT_MAX_WORKERS

    @property
    def cache_ttl_seconds(self) -> float:
        return self.cache_ttl_hours * 3600

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            github_token=os.getenv("GITHUB_TOKEN") or None,
            host=os.getenv("HOST") or "0.0.0.0",
            port=int(os.getenv("PORT") or "5000"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            cache_ttl_hours=float(os.getenv("CACHE_TTL_HOURS", "48")),
            cache_max_cost=int(os.getenv("CACHE_MAX_COST", str(DEFAULT_MAX_COST))),
            max_workers=int(os.getenv("FAN_OUT_MAX_WORKERS", str(DEFAULT_MAX_WORKERS))),
        )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT
    )


def build_service(settings: Settings) -> StarHistoryService:
    """Wire client, cache and service together."""
    cache = TTLCache(default_ttl=settings.cache_ttl_seconds, max_cost=settings.cache_max_cost)
    # An empty token still means anonymous access, not a fallback to GITHUB_TOKEN
    client = GitHubRestClient(token=settings.github_token or "")
    return StarHistoryService(client, cache, max_workers=settings.max_workers)
