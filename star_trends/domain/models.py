"""Domain entities for star history aggregation."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Generic, Tuple, TypeVar, Union

T = TypeVar("T")

REPOSITORIES = "repos"
STARGAZERS = "gazers"
RENDERED_SVG = "svg"


@dataclass(frozen=True)
class RepositoryIdentity:
    """Immutable repository identity."""

    owner: str
    name: str

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass(frozen=True, order=True)
class StarEvent:
    """A single star action on a repository."""

    starred_at: datetime


@dataclass(frozen=True)
class Page(Generic[T]):
    """
    One slice of a paginated listing.

    A next_page of 0 marks the end of the listing. last_page is taken from
    the first page and assumed stable for the rest of the listing.
    """

    kind: str
    items: Tuple[T, ...]
    next_page: int = 0
    last_page: int = 1

    @property
    def is_last(self) -> bool:
        return self.next_page == 0


@dataclass(frozen=True)
class TimeSeriesPoint:
    """One point of a cumulative star series."""

    timestamp: datetime
    cumulative_count: int


@dataclass(frozen=True)
class CacheKey:
    """Cache key for one (kind, identity, page) tuple."""

    kind: str
    identity: Tuple[str, ...]
    page: Union[int, str] = field(default="")

    def __str__(self) -> str:
        # "/" inside an identity part would make two keys collide
        parts = [self.kind] + [p.replace("%", "%25").replace("/", "%2F") for p in self.identity]
        if self.page != "":
            parts.append(str(self.page))
        return "/".join(parts)
