"""
Shared fixtures: a configurable aiohttp site served on localhost.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from treefetch.crawler.fetcher import WebFetcher


@dataclass
class Page:
    """A canned response. ``{base}`` in the body becomes the server origin."""
    body: str = ""
    content_type: Optional[str] = "text/html"
    status: int = 200
    delay: float = 0.0
    chunked: bool = False


@dataclass
class Site:
    server: TestServer
    requests: List[str] = field(default_factory=list)
    active: int = 0
    peak_active: int = 0

    def url(self, path: str) -> str:
        return str(self.server.make_url(path))


def html(*links: str) -> str:
    anchors = "\n".join(f'<li><a href="{{base}}{link}">{link}</a></li>' for link in links)
    return f"<html><head><title>page</title></head><body><ul>{anchors}</ul></body></html>"


@pytest_asyncio.fixture
async def make_site():
    servers: List[TestServer] = []

    async def start(pages: Dict[str, Page]) -> Site:
        site: Optional[Site] = None

        async def handler(request: web.Request) -> web.StreamResponse:
            site.requests.append(request.path)
            page = pages.get(request.path)
            if page is None:
                return web.Response(status=404, text="Not Found")

            site.active += 1
            site.peak_active = max(site.peak_active, site.active)
            try:
                if page.delay:
                    await asyncio.sleep(page.delay)

                body = page.body.replace("{base}", str(request.url.origin())).encode("utf-8")
                headers = {}
                if page.content_type is not None:
                    headers["Content-Type"] = page.content_type

                if page.chunked:
                    response = web.StreamResponse(status=page.status, headers=headers)
                    response.enable_chunked_encoding()
                    await response.prepare(request)
                    await response.write(body)
                    await response.write_eof()
                    return response

                return web.Response(status=page.status, body=body, headers=headers)
            finally:
                site.active -= 1

        app = web.Application()
        app.router.add_route("GET", "/{tail:.*}", handler)
        server = TestServer(app)
        await server.start_server()
        servers.append(server)

        site = Site(server=server)
        return site

    yield start

    for server in servers:
        await server.close()


@pytest_asyncio.fixture
async def raw_server():
    """Serve one fixed raw HTTP response, for headers aiohttp.web would rewrite."""
    servers = []
    released = asyncio.Event()

    async def start(raw_response: bytes, stall: bool = False) -> str:
        async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter):
            await reader.readuntil(b"\r\n\r\n")
            writer.write(raw_response)
            await writer.drain()
            # Keep the connection open without sending the rest of the body
            if stall:
                await released.wait()
            writer.close()

        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        servers.append(server)
        port = server.sockets[0].getsockname()[1]
        return f"http://127.0.0.1:{port}/"

    yield start

    released.set()
    for server in servers:
        server.close()
        await server.wait_closed()


@pytest_asyncio.fixture
async def fetcher():
    async with WebFetcher() as web_fetcher:
        yield web_fetcher

