"""
Streams fetched resources to local files.
"""

import asyncio
import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from aiohttp import ClientError

from ..crawler.fetcher import WebFetcher
from ..errors import PersistError
from ..utils.monitoring import CrawlerMonitor, get_monitor
from ..utils.progress import ProgressFactory, no_progress


@dataclass
class DownloadResult:
    """Outcome of persisting one resource."""
    url: str
    path: str
    bytes_written: int = 0
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


def file_name_for(url: str) -> str:
    """Stable 64-bit hash of ``url`` as 16 lowercase hex digits."""
    return hashlib.blake2b(url.encode('utf-8'), digest_size=8).hexdigest()


class FilePersister:
    """
    Downloads a URL into a file, reporting progress per chunk.

    The body is streamed; nothing is buffered beyond one chunk. A partially
    written file is left in place if the transfer fails.
    """

    def __init__(self, fetcher: WebFetcher, chunk_size: int = 8192,
                 progress: ProgressFactory = no_progress,
                 monitor: Optional[CrawlerMonitor] = None):
        self.fetcher = fetcher
        self.chunk_size = chunk_size
        self.progress = progress
        self.monitor = monitor or get_monitor()
        self.logger = logging.getLogger(__name__)

    async def save(self, url: str, destination: Union[str, Path]) -> DownloadResult:
        """
        Fetch ``url`` and write its body to ``destination``.

        Raises:
            FetchError: request failed or returned a non-2xx status
            PersistError: the file could not be created or written
        """
        path = Path(destination)
        bytes_written = 0

        async with self.fetcher.get(url) as response:
            total = response.content_length
            try:
                path.parent.mkdir(parents=True, exist_ok=True)
                with open(path, 'wb') as f, self.progress(path.name, total) as sink:
                    async for chunk in response.content.iter_chunked(self.chunk_size):
                        f.write(chunk)
                        bytes_written += len(chunk)
                        sink.update(len(chunk))
            except (ClientError, asyncio.TimeoutError):
                raise
            except OSError as e:
                raise PersistError(url, str(path), str(e)) from e

        self.monitor.record_download(url, bytes_written)
        self.logger.debug(f"Saved {url} to {path} ({bytes_written} bytes)")
        return DownloadResult(url=url, path=str(path), bytes_written=bytes_written)


async def download(url: str, outfile: Union[str, Path], fetcher: Optional[WebFetcher] = None,
                   progress: ProgressFactory = no_progress,
                   chunk_size: int = 8192) -> DownloadResult:
    """Save a single URL to ``outfile`` with a temporary fetcher unless one is given."""
    if fetcher is not None:
        return await FilePersister(fetcher, chunk_size, progress).save(url, outfile)

    async with WebFetcher() as own_fetcher:
        return await FilePersister(own_fetcher, chunk_size, progress).save(url, outfile)
