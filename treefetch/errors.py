"""
Exception hierarchy for treefetch.
"""

from typing import List, Optional


class TreefetchError(Exception):
    """Base class for all treefetch errors."""
    pass


class ConfigError(TreefetchError):
    """Invalid or unreadable configuration."""
    pass


class FetchError(TreefetchError):
    """A GET request failed at the network level or returned a non-2xx status."""

    def __init__(self, url: str, message: str, status: Optional[int] = None):
        self.url = url
        self.status = status
        super().__init__(f"{url}: {message}")


class PersistError(TreefetchError):
    """Writing a downloaded resource to disk failed."""

    def __init__(self, url: str, path: str, message: str):
        self.url = url
        self.path = path
        super().__init__(f"Could not save {url} to {path}: {message}")


class PoolSaturatedError(TreefetchError):
    """Raised by a non-blocking submission when every worker slot is busy."""
    pass


class DownloadJoinError(TreefetchError):
    """
    One or more concurrently dispatched downloads failed.

    Sibling downloads are never cancelled, so ``results`` holds the outcome of
    every node; ``first_error`` is the earliest failure to complete.
    """

    def __init__(self, results: List, first_error: BaseException):
        self.results = results
        self.first_error = first_error
        failed = sum(1 for result in results if result.error is not None)
        super().__init__(
            f"{failed} of {len(results)} downloads failed; first error: {first_error}"
        )
