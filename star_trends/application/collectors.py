"""Repository and stargazer collectors built on the paginated fan-out."""

import logging
from typing import List, Optional

from star_trends.application.cancellation import CancelToken
from star_trends.application.fan_out import FanOut
from star_trends.application.pagination import PageFetcher, collect_pages
from star_trends.domain.models import REPOSITORIES, STARGAZERS, RepositoryIdentity, StarEvent
from star_trends.infrastructure.cache import TTLCache
from star_trends.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)


class RepositoryCollector:
    """Lists every repository owned by a user."""

    def __init__(self, client: GitHubRestClient, cache: TTLCache, fan_out: FanOut, ttl: Optional[float] = None):
        self.fan_out = fan_out
        self.fetcher: PageFetcher[RepositoryIdentity] = PageFetcher(
            REPOSITORIES,
            lambda identity, page, token: client.list_repositories_page(identity[0], page, token=token),
            cache,
            ttl,
        )

    def list_repositories(self, user: str, token: Optional[CancelToken] = None) -> List[RepositoryIdentity]:
        repos = collect_pages(self.fetcher, (user,), self.fan_out, token)
        logger.info(f"Found {len(repos)} repositories for {user}")
        return repos


class StargazerCollector:
    """Lists every star event of one repository."""

    def __init__(self, client: GitHubRestClient, cache: TTLCache, fan_out: FanOut, ttl: Optional[float] = None):
        self.fan_out = fan_out
        self.fetcher: PageFetcher[StarEvent] = PageFetcher(
            STARGAZERS,
            lambda identity, page, token: client.list_stargazers_page(identity[0], identity[1], page, token=token),
            cache,
            ttl,
        )

    def list_stargazers(self, repo: RepositoryIdentity, token: Optional[CancelToken] = None) -> List[StarEvent]:
        events = collect_pages(self.fetcher, (repo.owner, repo.name), self.fan_out, token)
        logger.info(f"Found {len(events)} stargazers for {repo.full_name}")
        return events
