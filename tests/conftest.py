import random
import threading
import time
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest

from star_trends.domain.errors import RemoteFetchError
from star_trends.domain.models import RepositoryIdentity, StarEvent
from star_trends.infrastructure.cache import TTLCache

EPOCH = datetime(2020, 1, 1, tzinfo=timezone.utc)


def star_events(count, start=0):
    return [StarEvent(starred_at=EPOCH + timedelta(days=start + i)) for i in range(count)]


class FakeGitHubClient:
    """In-memory stand-in for GitHubRestClient with call counting and fault injection."""

    def __init__(self, repos=None, stars=None, per_page=2, jitter=0.0):
        self.repos = repos or {}
        self.stars = stars or {}
        self.per_page = per_page
        self.jitter = jitter
        self.failures = set()
        self.calls = Counter()
        self._lock = threading.Lock()

    def _page(self, key, items, page):
        with self._lock:
            self.calls[key] += 1
        if self.jitter:
            time.sleep(random.uniform(0, self.jitter))
        if key in self.failures:
            raise RemoteFetchError(f"injected failure for {key}")
        last_page = max(1, -(-len(items) // self.per_page))
        chunk = items[(page - 1) * self.per_page:page * self.per_page]
        next_page = page + 1 if page < last_page else 0
        return list(chunk), next_page, last_page

    def list_repositories_page(self, user, page, per_page=100, token=None):
        items = [RepositoryIdentity(owner=user, name=name) for name in self.repos.get(user, [])]
        return self._page(("repos", user, page), items, page)

    def list_stargazers_page(self, owner, repo, page, per_page=100, token=None):
        return self._page(("gazers", owner, repo, page), self.stars.get((owner, repo), []), page)


@pytest.fixture
def cache():
    return TTLCache(default_ttl=3600)


@pytest.fixture
def fake_client():
    return FakeGitHubClient(
        repos={"octocat": ["alpha", "beta"]},
        stars={
            ("octocat", "alpha"): star_events(5),
            ("octocat", "beta"): star_events(3, start=100),
        },
    )
