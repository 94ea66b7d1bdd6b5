"""Cached page fetching and the generic paginated fan-out collector."""

import logging
from typing import Callable, Generic, List, Optional, Sequence, Tuple, TypeVar

from star_trends.application.cancellation import CancelToken
from star_trends.application.fan_out import FanOut
from star_trends.domain.errors import RemoteFetchError, StarTrendsError
from star_trends.domain.models import CacheKey, Page
from star_trends.infrastructure.cache import TTLCache

logger = logging.getLogger(__name__)

T = TypeVar("T")

# (identity, page, token) -> (items, next_page, last_page)
RemotePageFn = Callable[[Tuple[str, ...], int, Optional[CancelToken]], Tuple[Sequence[T], int, int]]


class PageFetcher(Generic[T]):
    """Fetches single pages of one resource kind, consulting the cache first."""

    def __init__(self, kind: str, remote: RemotePageFn, cache: TTLCache, ttl: Optional[float] = None):
        """
        Initialize page fetcher.

        Args:
            kind: Resource kind tag, part of every cache key
            remote: Function performing the upstream call for (identity, page, token)
            cache: Shared TTL cache
            ttl: Entry TTL in seconds (cache default if None)
        """
        self.kind = kind
        self.remote = remote
        self.cache = cache
        self.ttl = ttl

    def cache_key(self, identity: Tuple[str, ...], page: int) -> str:
        return str(CacheKey(self.kind, identity, page))

    def fetch_page(self, identity: Tuple[str, ...], page: int, token: Optional[CancelToken] = None) -> Page[T]:
        """
        Return one page, from cache when possible.

        Raises:
            RemoteFetchError: If the upstream call fails
            CancelledError: If token is cancelled before or during the upstream call
        """
        cache_key = self.cache_key(identity, page)

        item, found = self.cache.get(cache_key)
        if found and isinstance(item, Page) and item.kind == self.kind:
            logger.debug(f"Found {cache_key} in cache.")
            return item

        if token is not None:
            token.raise_if_cancelled()

        try:
            items, next_page, last_page = self.remote(identity, page, token)
        except StarTrendsError:
            raise
        except Exception as e:
            raise RemoteFetchError(f"Unable to fetch {cache_key}: {e}") from e

        result = Page(kind=self.kind, items=tuple(items), next_page=next_page or 0, last_page=last_page)
        self.cache.set(cache_key, result, ttl=self.ttl, cost=max(1, len(result.items)))
        return result


def collect_pages(
    fetcher: PageFetcher[T],
    identity: Tuple[str, ...],
    fan_out: FanOut,
    token: Optional[CancelToken] = None,
) -> List[T]:
    """
    Materialize a whole paginated listing.

    Page 1 is fetched first; its pagination tells which pages remain, and
    those are fetched concurrently. Page 1 items come first, the rest follow
    in no particular order. Any page failure fails the whole listing.
    """
    first = fetcher.fetch_page(identity, 1, token)
    items: List[T] = list(first.items)
    logger.debug(
        f"Found {len(first.items)} {fetcher.kind} on page 1 of {'/'.join(identity)} "
        f"(next={first.next_page}, last={first.last_page})."
    )
    if first.is_last:
        return items

    units = [
        lambda group, page=page: fetcher.fetch_page(identity, page, group)
        for page in range(first.next_page, first.last_page + 1)
    ]
    for page in fan_out.run(units, token):
        items.extend(page.items)
    return items
