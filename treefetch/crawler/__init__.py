"""
Link discovery components.
"""

from .content_type import ContentType, Other, Text, TextType, Unknown, classify
from .engine import CrawlEngine, CrawlOutcome, crawl
from .fetcher import WebFetcher
from .link_queue import Queue
from .link_tree import LinkTree, Node
from .parser import ContentParser, extract_links
from .worker_pool import WorkerPool

__all__ = [
    'ContentType', 'Other', 'Text', 'TextType', 'Unknown', 'classify',
    'CrawlEngine', 'CrawlOutcome', 'crawl',
    'WebFetcher',
    'Queue',
    'LinkTree', 'Node',
    'ContentParser', 'extract_links',
    'WorkerPool'
]
