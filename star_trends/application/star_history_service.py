"""Application service for collecting and rendering star history."""

import logging
from datetime import datetime
from typing import List, Optional

from star_trends.application.cancellation import CancelToken
from star_trends.application.collectors import RepositoryCollector, StargazerCollector
from star_trends.application.fan_out import DEFAULT_MAX_WORKERS, FanOut
from star_trends.application.series import build_series
from star_trends.domain.models import RepositoryIdentity, StarEvent, TimeSeriesPoint
from star_trends.infrastructure.cache import TTLCache
from star_trends.infrastructure.github_client import GitHubRestClient
from star_trends.infrastructure.renderer import SvgRenderer

logger = logging.getLogger(__name__)


class StarHistoryService:
    """Service aggregating stargazers of a user's repositories into a cumulative series."""

    def __init__(
        self,
        github_client: GitHubRestClient,
        cache: TTLCache,
        renderer: Optional[SvgRenderer] = None,
        max_workers: int = DEFAULT_MAX_WORKERS,
        ttl: Optional[float] = None,
    ):
        """
        Initialize star history service.

        Args:
            github_client: GitHub API client
            cache: Shared page cache
            renderer: Chart renderer (a default SvgRenderer if None)
            max_workers: Concurrency bound of every single fan-out
            ttl: TTL in seconds of cached pages (cache default if None)
        """
        self.cache = cache
        self.renderer = renderer or SvgRenderer()
        self.repositories = RepositoryCollector(
            github_client, cache, FanOut(max_workers, name="repo-pages"), ttl
        )
        self.stargazers = StargazerCollector(
            github_client, cache, FanOut(max_workers, name="gazer-pages"), ttl
        )
        self.repository_fan_out = FanOut(max_workers, name="repos")

    def list_repositories(self, user: str, token: Optional[CancelToken] = None) -> List[RepositoryIdentity]:
        return self.repositories.list_repositories(user, token)

    def list_stargazers(self, user: str, repo: str, token: Optional[CancelToken] = None) -> List[StarEvent]:
        return self.stargazers.list_stargazers(RepositoryIdentity(owner=user, name=repo), token)

    def list_all_stargazers(self, user: str, token: Optional[CancelToken] = None) -> List[StarEvent]:
        """
        Collect star events across every repository of user.

        One failing repository aborts the whole aggregation; no partial
        result is ever returned.
        """
        repos = self.list_repositories(user, token)

        def unit(repo: RepositoryIdentity):
            def run(group: CancelToken) -> List[StarEvent]:
                logger.debug(f"Checking stars for repository {repo.full_name}.")
                try:
                    return self.stargazers.list_stargazers(repo, group)
                except Exception as e:
                    if not group.cancelled:
                        logger.error(f"Unable to fetch stargazers for {repo.full_name}: {e}")
                    raise
            return run

        events: List[StarEvent] = []
        for part in self.repository_fan_out.run([unit(repo) for repo in repos], token):
            events.extend(part)

        logger.info(f"Found {len(events)} stargazers across {len(repos)} repositories of {user}")
        return events

    def star_series(
        self,
        user: str,
        repo: Optional[str] = None,
        token: Optional[CancelToken] = None,
        now: Optional[datetime] = None,
    ) -> List[TimeSeriesPoint]:
        """Cumulative series for one repository, or for all of user's repositories when repo is empty."""
        if repo:
            events = self.list_stargazers(user, repo, token)
        else:
            events = self.list_all_stargazers(user, token)
        return build_series(events, now=now)

    def render_stars(
        self,
        user: str,
        repo: Optional[str] = None,
        token: Optional[CancelToken] = None,
        now: Optional[datetime] = None,
    ) -> bytes:
        series = self.star_series(user, repo, token, now)
        return self.renderer.render(series)
