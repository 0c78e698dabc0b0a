"""
Command-line entry point for treefetch.
"""

import asyncio
import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .commands import run_interactive
from .crawler.engine import CrawlEngine
from .crawler.fetcher import WebFetcher
from .errors import ConfigError, DownloadJoinError, TreefetchError
from .storage.dispatcher import DownloadDispatcher
from .storage.persister import FilePersister, download
from .utils.config import Config, load_config, validate_config
from .utils.logger import log_system_info, setup_logging
from .utils.monitoring import CrawlerMonitor, initialize_monitoring
from .utils.progress import progress_factory


class TreefetchApp:
    """Wires configuration, logging and monitoring around the three subcommands."""

    def __init__(self, config: Config):
        self.config = config
        self.logger = logging.getLogger(__name__)
        self.monitor: Optional[CrawlerMonitor] = None

    def setup(self):
        setup_logging(self.config.logging)
        log_system_info()

        monitoring = self.config.monitoring
        self.monitor = initialize_monitoring(monitoring.metrics_enabled, monitoring.prometheus_port)
        self.monitor.metrics.start_prometheus_server()

    def _fetcher(self) -> WebFetcher:
        crawler = self.config.crawler
        return WebFetcher(
            user_agent=crawler.user_agent,
            request_timeout=crawler.request_timeout,
            max_connections=self.config.download.max_concurrent_downloads,
            max_content_size=crawler.max_content_size
        )

    def _persister(self, fetcher: WebFetcher) -> FilePersister:
        download = self.config.download
        return FilePersister(
            fetcher,
            chunk_size=download.chunk_size,
            progress=progress_factory(download.show_progress),
            monitor=self.monitor
        )

    async def get(self, url: str, outfile: str) -> int:
        download_config = self.config.download
        async with self._fetcher() as fetcher:
            result = await download(
                url, outfile, fetcher,
                progress=progress_factory(download_config.show_progress),
                chunk_size=download_config.chunk_size
            )
        self.logger.info(f"Saved {url} to {result.path} ({result.bytes_written} bytes)")
        return 0

    async def get_depth(self, url: str, max_depth: int) -> int:
        async with self._fetcher() as fetcher:
            engine = CrawlEngine(fetcher, monitor=self.monitor)
            tree = await engine.crawl(url, max_depth)

            dispatcher = DownloadDispatcher(
                self._persister(fetcher),
                output_dir=self.config.download.output_dir,
                max_concurrent_downloads=self.config.download.max_concurrent_downloads,
                monitor=self.monitor
            )
            results = await dispatcher.download_all(tree)

        self.logger.info(f"Saved {len(results)} resources to {self.config.download.output_dir}")
        return 0

    async def interactive(self, outfile: str) -> int:
        async with self._fetcher() as fetcher:
            downloaded = await run_interactive(self._persister(fetcher), outfile)
        self.logger.info(f"Interactive session ended after {downloaded} downloads")
        return 0

    async def run(self, args: argparse.Namespace) -> int:
        """Run the selected subcommand and map failures to an exit status."""
        try:
            if args.command == 'get':
                return await self.get(args.url, args.outfile or self.config.download.default_outfile)
            if args.command == 'get-depth':
                return await self.get_depth(args.url, self.config.crawler.max_depth)
            return await self.interactive(args.outfile or self.config.download.default_outfile)

        except DownloadJoinError as e:
            for result in e.results:
                if result.error is not None:
                    self.logger.debug(f"Failed: {result.url}: {result.error}")
            self.logger.error(f"Error: {e}")
            return 1

        except TreefetchError as e:
            self.logger.error(f"Error: {e}")
            return 1

        finally:
            if self.config.monitoring.metrics_file and self.monitor:
                self.monitor.metrics.export_metrics_json(self.config.monitoring.metrics_file)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='treefetch',
        description="Download a URL, optionally following its links to a bounded depth",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  treefetch get https://example.com/ -o page.html
  treefetch get-depth https://example.com/ --depth 2 --output-dir out/
  treefetch interactive
        """
    )

    parser.add_argument('--config', help='Path to a YAML configuration file')
    parser.add_argument('--log-level', help='Override the configured log level')
    parser.add_argument('--no-progress', action='store_true', help='Disable progress bars')
    parser.add_argument('--max-downloads', type=int,
                        help='Maximum number of simultaneous downloads')
    parser.add_argument('--version', action='version', version=f'treefetch {__version__}')

    subparsers = parser.add_subparsers(dest='command', required=True)

    get_parser = subparsers.add_parser('get', help='Download a single URL')
    get_parser.add_argument('url', help='The URL to download')
    get_parser.add_argument('-o', '--outfile', help='File to write (default: treefetch.out)')

    depth_parser = subparsers.add_parser('get-depth', help='Crawl links then download every resource')
    depth_parser.add_argument('url', help='The URL to start from')
    depth_parser.add_argument('-d', '--depth', type=int, help='Maximum crawl depth (default: 1)')
    depth_parser.add_argument('--output-dir', help='Directory for downloaded files')

    interactive_parser = subparsers.add_parser('interactive', help='Read URLs from a prompt')
    interactive_parser.add_argument('-o', '--outfile',
                                    help='Default file when a line names no outfile')

    return parser


def apply_overrides(config: Config, args: argparse.Namespace) -> Config:
    """Fold command-line flags into the loaded configuration."""
    if args.log_level:
        config.logging.level = args.log_level
    if args.no_progress:
        config.download.show_progress = False
    if args.max_downloads is not None:
        config.download.max_concurrent_downloads = args.max_downloads
    if getattr(args, 'depth', None) is not None:
        config.crawler.max_depth = args.depth
    if getattr(args, 'output_dir', None):
        config.download.output_dir = args.output_dir

    validate_config(config)
    return config


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        config = apply_overrides(load_config(args.config), args)
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2

    app = TreefetchApp(config)
    app.setup()
    try:
        return asyncio.run(app.run(args))
    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
