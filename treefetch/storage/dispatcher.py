"""
Concurrent download of every node in a discovered LinkTree.
"""

import logging
from pathlib import Path
from typing import List, Optional, Union

from .persister import DownloadResult, FilePersister, file_name_for
from ..crawler.link_tree import LinkTree, Node
from ..crawler.worker_pool import WorkerPool
from ..errors import DownloadJoinError, FetchError, PersistError
from ..utils.monitoring import CrawlerMonitor, get_monitor


class DownloadDispatcher:
    """
    Persists each tree node to ``output_dir/<hash of url>``.

    Downloads run on a bounded worker pool. A failure never cancels the other
    downloads; once all have finished, DownloadJoinError reports the first
    failure that completed.
    """

    def __init__(self, persister: FilePersister, output_dir: Union[str, Path] = '.',
                 max_concurrent_downloads: int = 10,
                 monitor: Optional[CrawlerMonitor] = None):
        self.persister = persister
        self.output_dir = Path(output_dir)
        self.max_concurrent_downloads = max_concurrent_downloads
        self.monitor = monitor or get_monitor()
        self.logger = logging.getLogger(__name__)

    def destination_for(self, url: str) -> Path:
        return self.output_dir / file_name_for(url)

    async def _download_node(self, node: Node) -> DownloadResult:
        destination = self.destination_for(node.url)
        try:
            return await self.persister.save(node.url, destination)
        except (FetchError, PersistError) as e:
            self.logger.error(f"Download failed for {node.url}: {e}")
            self.monitor.record_error('fetch' if isinstance(e, FetchError) else 'persist')
            return DownloadResult(url=node.url, path=str(destination), error=e)

    async def download_all(self, tree: LinkTree) -> List[DownloadResult]:
        """
        Download every node of ``tree`` and wait for all of them.

        Returns:
            One DownloadResult per node, in level order

        Raises:
            DownloadJoinError: if at least one download failed
        """
        pool = WorkerPool(self.max_concurrent_downloads)
        urls = tree.urls()

        self.logger.info(
            f"Downloading {len(urls)} resources to {self.output_dir} "
            f"({self.max_concurrent_downloads} at a time)"
        )
        raw_results = await tree.traverse_concurrently(self._download_node, pool)

        results: List[DownloadResult] = []
        for url, result in zip(urls, raw_results):
            if isinstance(result, BaseException):
                result = DownloadResult(url=url, path=str(self.destination_for(url)), error=result)
            results.append(result)

        failed = [index for index in pool.completion_order if results[index].error is not None]
        if failed:
            first_error = results[failed[0]].error
            self.logger.error(f"{len(failed)} of {len(results)} downloads failed")
            raise DownloadJoinError(results, first_error)

        self.logger.info(f"Downloaded {len(results)} resources")
        return results
