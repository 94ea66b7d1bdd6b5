"""GitHub REST API client for paginated repository and stargazer listings."""

import time
import logging
import os
from datetime import datetime, timezone
from typing import List, Optional, Dict, Any, Tuple
from urllib.parse import parse_qs, urlparse
import requests

from star_trends.domain.errors import CancelledError, RateLimitExceeded, RemoteFetchError
from star_trends.domain.models import RepositoryIdentity, StarEvent

logger = logging.getLogger(__name__)

PageResult = Tuple[List[Any], int, int]


class GitHubRestClient:
    """Client for GitHub REST API with transport retries."""

    # Unauthenticated requests are limited to 60 per hour, authenticated to 5,000.
    # Rate limiting is reported to callers, never waited out here.

    API_ROOT = "https://api.github.com"
    STAR_MEDIA_TYPE = "application/vnd.github.v3.star+json"
    PER_PAGE = 100
    MAX_RETRIES = 3
    RETRY_DELAY_SECONDS = 1
    TIMEOUT_SECONDS = 30

    def __init__(self, token: Optional[str] = None, session: Optional[requests.Session] = None):
        """
        Initialize GitHub REST client.

        Args:
            token: GitHub personal access token. If None, uses GITHUB_TOKEN env var.
            session: Optional requests session (a new one is created otherwise)
        """
        if token is None:
            token = os.getenv("GITHUB_TOKEN")

        self.token = token
        self.session = session or requests.Session()
        self.headers = {
            "Accept": "application/vnd.github.v3+json",
        }

        if self.token:
            self.headers["Authorization"] = f"token {self.token}"
        else:
            logger.warning("No GitHub token configured. Using unauthenticated requests (limited rate).")

    def _get(self, path: str, params: Dict[str, Any], accept: Optional[str] = None, token=None) -> requests.Response:
        """
        Execute a GET request with retry logic.

        Args:
            path: API path below API_ROOT
            params: Query parameters
            accept: Optional Accept header override
            token: Optional cancel token, checked before every attempt and during backoff

        Returns:
            The successful response

        Raises:
            CancelledError: If token is cancelled before or between attempts
            RateLimitExceeded: If rate limit is exceeded
            RemoteFetchError: If the request fails or returns a non-2xx status
        """
        url = f"{self.API_ROOT}{path}"
        headers = dict(self.headers)
        if accept:
            headers["Accept"] = accept

        for attempt in range(self.MAX_RETRIES):
            if token is not None:
                token.raise_if_cancelled()
            try:
                response = self.session.get(
                    url,
                    params=params,
                    headers=headers,
                    timeout=self.TIMEOUT_SECONDS
                )
            except requests.exceptions.RequestException as e:
                if attempt < self.MAX_RETRIES - 1:
                    delay = self.RETRY_DELAY_SECONDS * (2 ** attempt)  # Exponential backoff
                    logger.warning(f"Request failed (attempt {attempt + 1}/{self.MAX_RETRIES}): {e}. Retrying in {delay}s...")
                    self._backoff(delay, token)
                    continue
                raise RemoteFetchError(f"GET {url} failed: {e}") from e

            if response.status_code == 200:
                return response

            if response.status_code in (403, 429):
                remaining = response.headers.get("X-RateLimit-Remaining")
                if remaining is not None and int(remaining) == 0:
                    reset_time = int(response.headers.get("X-RateLimit-Reset", 0))
                    raise RateLimitExceeded(
                        f"GitHub API rate limit exceeded, resets at "
                        f"{datetime.fromtimestamp(reset_time, tz=timezone.utc).strftime('%Y-%m-%d %H:%M:%S')} UTC",
                        reset_at=reset_time
                    )

            raise RemoteFetchError(f"GET {url} returned {response.status_code}: {self._message(response)}")

        raise RemoteFetchError("Max retries exceeded")

    @staticmethod
    def _backoff(delay: float, token=None) -> None:
        if token is None:
            time.sleep(delay)
        elif token.wait(delay):
            raise CancelledError(f"Retry aborted: {token.reason}")

    @staticmethod
    def _message(response: requests.Response) -> str:
        try:
            data = response.json()
        except ValueError:
            return response.text
        if isinstance(data, dict) and "message" in data:
            return data["message"]
        return response.text

    @staticmethod
    def _pagination(response: requests.Response, page: int) -> Tuple[int, int]:
        """Read (next_page, last_page) from the Link header; next_page is 0 at the end."""
        links = response.links or {}
        next_page = _page_param(links.get("next", {}).get("url"))
        last_page = _page_param(links.get("last", {}).get("url")) or max(page, next_page)
        return next_page, last_page

    def list_repositories_page(self, user: str, page: int, per_page: int = PER_PAGE, token=None) -> PageResult:
        """
        Fetch one page of repositories owned by user, oldest first.

        Returns:
            Tuple of (list of repository identities, next page, last page)
        """
        response = self._get(
            f"/users/{user}/repos",
            {"sort": "created", "direction": "asc", "per_page": per_page, "page": page},
            token=token,
        )
        data = response.json()
        if not isinstance(data, list):
            raise RemoteFetchError(f"Unexpected response type for repositories of {user}: {type(data).__name__}")

        repositories = [
            RepositoryIdentity(owner=node["owner"]["login"], name=node["name"])
            for node in data
        ]
        next_page, last_page = self._pagination(response, page)
        return repositories, next_page, last_page

    def list_stargazers_page(self, owner: str, repo: str, page: int, per_page: int = PER_PAGE, token=None) -> PageResult:
        """
        Fetch one page of stargazers of owner/repo with their starred_at timestamps.

        Returns:
            Tuple of (list of star events, next page, last page)
        """
        response = self._get(
            f"/repos/{owner}/{repo}/stargazers",
            {"per_page": per_page, "page": page},
            accept=self.STAR_MEDIA_TYPE,
            token=token,
        )
        data = response.json()
        if not isinstance(data, list):
            raise RemoteFetchError(f"Unexpected response type for stargazers of {owner}/{repo}: {type(data).__name__}")

        events = [
            StarEvent(starred_at=datetime.fromisoformat(node["starred_at"].replace("Z", "+00:00")))
            for node in data
        ]
        next_page, last_page = self._pagination(response, page)
        return events, next_page, last_page


def _page_param(url: Optional[str]) -> int:
    if not url:
        return 0
    values = parse_qs(urlparse(url).query).get("page", [])
    return int(values[0]) if values and values[0].isdigit() else 0
