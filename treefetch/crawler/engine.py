"""
Breadth-first link discovery bounded by a maximum depth.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import List, Optional

from .content_type import ContentType, Other, Text, Unknown, classify
from .fetcher import WebFetcher, declared_content_type
from .link_queue import Queue
from .link_tree import ROOT, LinkTree
from .parser import ContentParser
from ..errors import FetchError
from ..utils.logger import get_crawler_logger
from ..utils.monitoring import CrawlerMonitor, get_monitor


@dataclass
class CrawlOutcome:
    """What happened when a single frontier node was processed."""
    index: int
    url: str
    content_type: Optional[ContentType] = None
    links_found: int = 0
    error: Optional[str] = None

    @property
    def terminal_reason(self) -> Optional[str]:
        if self.error is not None:
            return 'error'
        if isinstance(self.content_type, Other):
            return 'other'
        if isinstance(self.content_type, Unknown):
            return 'unknown'
        return None


@dataclass
class CrawlState:
    """
    BFS bookkeeping.

    ``level_width`` is the number of nodes in the level being processed,
    ``next_level_width`` the number discovered for the level after it.
    Comparing ``processed_in_level`` with ``level_width`` finds level
    boundaries without tagging nodes with their level.
    """
    tree: LinkTree
    frontier: Queue = field(default_factory=Queue)
    level_width: int = 1
    processed_in_level: int = 0
    next_level_width: int = 0

    def close_level(self):
        self.tree.depth += 1
        self.level_width = self.next_level_width
        self.next_level_width = 0
        self.processed_in_level = 0


class CrawlEngine:
    """
    Builds a LinkTree by fetching one URL at a time in level order.

    Only resources classified as Text are parsed for links. Other and Unknown
    content types, and fetch failures below the root, end their branch
    without stopping the crawl. A fetch failure on the root propagates.
    """

    def __init__(self, fetcher: WebFetcher, parser: Optional[ContentParser] = None,
                 monitor: Optional[CrawlerMonitor] = None):
        self.fetcher = fetcher
        self.parser = parser or ContentParser()
        self.monitor = monitor or get_monitor()
        self.logger = get_crawler_logger(__name__)
        self.outcomes: List[CrawlOutcome] = []

    async def crawl(self, root_url: str, max_depth: int) -> LinkTree:
        """
        Discover resources reachable from ``root_url``.

        The root level is always fetched and classified. Afterwards the crawl
        stops at the first level boundary where the tree depth has reached
        ``max_depth``, or as soon as the frontier is empty. ``max_depth`` 0
        classifies the root without expanding it.

        Args:
            root_url: Absolute http(s) URL to start from
            max_depth: Depth bound, see above

        Returns:
            The expanded LinkTree

        Raises:
            FetchError: if the root itself cannot be fetched
        """
        if max_depth < 0:
            raise ValueError("max_depth must be non-negative")

        state = CrawlState(tree=LinkTree(root_url))
        state.frontier.push(ROOT)
        self.outcomes = []
        expand = max_depth > 0

        self.logger.info(f"Crawling {root_url} to depth {max_depth}")
        start_time = time.time()

        while not state.frontier.is_empty():
            index = state.frontier.pop()
            outcome = await self._step(state, index, expand)
            self.outcomes.append(outcome)

            state.processed_in_level += 1
            if state.processed_in_level == state.level_width:
                state.close_level()
                self.logger.debug(
                    f"Level closed: depth={state.tree.depth}, next level width={state.level_width}"
                )
                if state.tree.depth >= max_depth:
                    break

        self.logger.info(
            f"Discovered {len(state.tree)} resources in {time.time() - start_time:.2f}s "
            f"({len(self.outcomes)} fetched)"
        )
        self.logger.debug(f"Fetcher stats: {self.fetcher.get_stats()}")
        return state.tree

    async def _step(self, state: CrawlState, index: int, expand: bool) -> CrawlOutcome:
        """Fetch one node, classify it and attach its links when expandable."""
        url = state.tree.node(index).url
        start_time = time.time()

        try:
            async with self.fetcher.get(url) as response:
                self.monitor.record_page_fetched(url, time.time() - start_time)
                content_type = classify(declared_content_type(response))
                outcome = CrawlOutcome(index=index, url=url, content_type=content_type)

                if not isinstance(content_type, Text):
                    self.logger.log_url_event(
                        logging.INFO, url,
                        f"Not expanding {url}: content type {self._describe(content_type)} "
                        f"at depth {state.tree.depth}"
                    )
                    self.monitor.record_terminal(url, outcome.terminal_reason)
                    return outcome

                if not expand:
                    return outcome

                body = await self.fetcher.read_text(response)

        except FetchError as e:
            if index == ROOT:
                raise
            self.logger.log_url_event(logging.WARNING, url, f"Fetch failed, branch ends: {e}")
            self.monitor.record_error('fetch')
            self.monitor.record_terminal(url, 'error')
            return CrawlOutcome(index=index, url=url, error=str(e))

        if body is None:
            return outcome

        links = self.parser.extract_links(body)
        for link in links:
            child = state.tree.attach(index, link)
            state.frontier.push(child)

        state.next_level_width += len(links)
        outcome.links_found = len(links)

        self.logger.debug(f"Expanded {url}: {len(links)} links")
        return outcome

    @staticmethod
    def _describe(content_type: ContentType) -> str:
        if isinstance(content_type, Other):
            return content_type.raw
        return 'unknown'


async def crawl(root_url: str, max_depth: int, fetcher: Optional[WebFetcher] = None) -> LinkTree:
    """Crawl ``root_url`` with a temporary fetcher unless one is given."""
    if fetcher is not None:
        return await CrawlEngine(fetcher).crawl(root_url, max_depth)

    async with WebFetcher() as own_fetcher:
        return await CrawlEngine(own_fetcher).crawl(root_url, max_depth)
