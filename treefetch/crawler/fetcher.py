"""
HTTP fetcher shared by the crawl and download phases.
"""

import asyncio
import aiohttp
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict, Optional
from aiohttp import ClientResponse, ClientSession, ClientTimeout, ClientError

from ..errors import FetchError


class WebFetcher:
    """
    Issues GET requests over a single aiohttp session.

    Any non-2xx status is a hard failure: ``get`` raises FetchError before the
    caller sees the response. No timeout is applied unless one is configured.
    """

    def __init__(self, user_agent: str = "treefetch/1.0", request_timeout: Optional[float] = None,
                 max_connections: int = 10, max_content_size: int = 10 * 1024 * 1024):
        self.user_agent = user_agent
        self.request_timeout = request_timeout
        self.max_connections = max_connections
        self.max_content_size = max_content_size

        self.logger = logging.getLogger(__name__)
        self.session: Optional[ClientSession] = None

        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_read': 0
        }

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            session_kwargs = {
                'headers': {'User-Agent': self.user_agent},
                'connector': aiohttp.TCPConnector(limit=self.max_connections),
            }
            if self.request_timeout is not None:
                session_kwargs['timeout'] = ClientTimeout(total=self.request_timeout)

            self.session = aiohttp.ClientSession(**session_kwargs)
            self.logger.debug("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.debug("WebFetcher session closed")

    @asynccontextmanager
    async def get(self, url: str) -> AsyncIterator[ClientResponse]:
        """
        GET ``url`` and yield the response once its status is known to be 2xx.

        Network errors raised while the caller reads the body are reported as
        FetchError as well.

        Args:
            url: The URL to fetch

        Raises:
            FetchError: on connection failure, timeout or non-2xx status
        """
        if self.session is None:
            await self.start()

        self.stats['total_requests'] += 1
        try:
            async with self.session.get(url) as response:
                if not 200 <= response.status < 300:
                    self.stats['failed_requests'] += 1
                    raise FetchError(url, f"HTTP {response.status} {response.reason or ''}".strip(),
                                     status=response.status)

                yield response
                self.stats['successful_requests'] += 1

        except asyncio.TimeoutError as e:
            self.stats['failed_requests'] += 1
            raise FetchError(url, "Request timeout") from e

        except ClientError as e:
            self.stats['failed_requests'] += 1
            raise FetchError(url, f"Client error: {e}") from e

    async def read_text(self, response: ClientResponse) -> Optional[str]:
        """
        Read a response body with a size limit and decode it.

        Returns:
            Decoded body, or None when the body exceeds ``max_content_size``
        """
        content_length = response.content_length
        if content_length is not None and content_length > self.max_content_size:
            self.logger.warning(f"Content too large ({content_length} bytes): {response.url}")
            return None

        content_bytes = bytearray()
        async for chunk in response.content.iter_chunked(8192):
            content_bytes.extend(chunk)
            if len(content_bytes) > self.max_content_size:
                self.logger.warning(f"Content exceeded size limit during reading: {response.url}")
                return None

        self.stats['total_bytes_read'] += len(content_bytes)

        encoding = response.charset or 'utf-8'
        try:
            return content_bytes.decode(encoding)
        except (UnicodeDecodeError, LookupError):
            for fallback_encoding in ['utf-8', 'latin-1']:
                try:
                    return content_bytes.decode(fallback_encoding)
                except UnicodeDecodeError:
                    continue

            return content_bytes.decode('utf-8', errors='ignore')

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


def declared_content_type(response: ClientResponse) -> Optional[bytes]:
    """Raw Content-Type header bytes as sent by the server, or None if absent."""
    for name, value in response.raw_headers:
        if name.lower() == b'content-type':
            return value
    return None
