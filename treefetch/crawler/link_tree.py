"""
Arena-backed tree of discovered resources.

Nodes live in a single list owned by the tree and refer to their children by
index, so the crawl engine can hand out plain integers instead of shared
node references.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Iterator, List

from .link_queue import Queue
from .worker_pool import WorkerPool

ROOT = 0


@dataclass
class Node:
    """A discovered URL and the arena indices of the links found on it."""
    index: int
    url: str
    children: List[int] = field(default_factory=list)


class LinkTree:
    """
    Level-ordered tree of URLs plus the depth of the current crawl frontier.

    The tree starts with only the root at depth 1. Children are appended
    unconditionally: the same URL may appear under several parents.
    """

    def __init__(self, root_url: str):
        self._nodes: List[Node] = [Node(index=ROOT, url=root_url)]
        self.depth = 1
        self.logger = logging.getLogger(__name__)

    @property
    def root(self) -> Node:
        return self._nodes[ROOT]

    def node(self, index: int) -> Node:
        return self._nodes[index]

    def children(self, index: int) -> List[Node]:
        return [self._nodes[child] for child in self._nodes[index].children]

    def attach(self, parent: int, url: str) -> int:
        """Create a node for ``url`` under ``parent`` and return its index."""
        if not 0 <= parent < len(self._nodes):
            raise IndexError(f"No node with index {parent}")

        index = len(self._nodes)
        self._nodes.append(Node(index=index, url=url))
        self._nodes[parent].children.append(index)
        return index

    def __len__(self) -> int:
        return len(self._nodes)

    def __iter__(self) -> Iterator[Node]:
        return self._level_order()

    def _level_order(self) -> Iterator[Node]:
        pending: Queue[int] = Queue()
        pending.push(ROOT)
        while not pending.is_empty():
            current = self._nodes[pending.pop()]
            for child in current.children:
                pending.push(child)
            yield current

    def traverse(self, visit: Callable[[Node], Any]):
        """Call ``visit`` on every node once, parents before children."""
        for node in self._level_order():
            visit(node)

    async def traverse_concurrently(self, visit: Callable[[Node], Awaitable[Any]],
                                    pool: WorkerPool) -> List[Any]:
        """
        Submit one ``visit(node)`` unit per node to ``pool`` and wait for all.

        Every node of the already-built tree is enumerated up front in level
        order; the pool decides how many units run at once. Returns results
        (or the exceptions raised) in level order.
        """
        submitted = 0
        for node in self._level_order():
            await pool.submit(visit, node)
            submitted += 1

        self.logger.debug(f"Scheduled {submitted} node visits")
        return await pool.join()

    def urls(self) -> List[str]:
        """All URLs in level order."""
        return [node.url for node in self._level_order()]

    def levels(self) -> List[List[str]]:
        """URLs grouped by level, root level first."""
        levels: List[List[str]] = []
        current = [ROOT]
        while current:
            levels.append([self._nodes[index].url for index in current])
            current = [child for index in current for child in self._nodes[index].children]
        return levels

    def __repr__(self) -> str:
        return f"LinkTree(root={self.root.url!r}, nodes={len(self)}, depth={self.depth})"
