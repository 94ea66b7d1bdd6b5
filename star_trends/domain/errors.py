"""Exceptions raised while collecting and rendering star history."""


class StarTrendsError(Exception):
    """Base exception for star history failures."""
    pass


class RemoteFetchError(StarTrendsError):
    """Raised when a call to the GitHub API fails for any reason."""
    pass


class RateLimitExceeded(RemoteFetchError):
    """Raised when GitHub API rate limit is exceeded."""

    def __init__(self, message: str, reset_at: int = 0):
        super().__init__(message)
        self.reset_at = reset_at


class RenderError(StarTrendsError):
    """Raised when the chart cannot be rendered."""
    pass


class CancelledError(StarTrendsError):
    """Raised when an aggregation is aborted by cancellation."""
    pass
