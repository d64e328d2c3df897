"""
Crawler scheduler that wires the fetch and extraction stages into a cycle
and decides when the crawl is over.
"""

import asyncio
import logging
import time
from typing import Dict, List, Optional, Tuple
from dataclasses import dataclass
from yarl import URL

from .channel import Channel
from .fetcher import WebFetcher
from .url_frontier import URLFrontier, frontier_key
from .parser import LinkExtractor
from .tracker import InFlightTracker
from ..utils.config import Config, TERMINATION_DRAIN


def parse_seed_url(url: str) -> Tuple[str, str]:
    """
    Validate the seed URL and return it with its subdomain.

    Raises:
        ValueError: if the URL is not an absolute http(s) URL with a host.
    """
    try:
        parsed = URL(url)
        host = parsed.host
    except (ValueError, TypeError) as e:
        raise ValueError(f"Invalid seed URL {url!r}: {e}") from e

    if parsed.scheme not in ('http', 'https'):
        raise ValueError(f"Seed URL must use http or https: {url!r}")
    if not host:
        raise ValueError(f"URL should have a valid DNS subdomain: {url!r}")

    return url, host


@dataclass
class CrawlStats:
    """Statistics for crawl operations."""
    start_time: float
    end_time: Optional[float] = None
    pages_visited: int = 0
    pages_failed: int = 0
    urls_discovered: int = 0
    urls_claimed: int = 0

    @property
    def elapsed_time(self) -> float:
        return (self.end_time or time.time()) - self.start_time


class CrawlerScheduler:
    """
    Coordinates the crawl pipeline.

    seed -> url channel -> WebFetcher -> html channel -> LinkExtractor -> url channel

    The frontier is shared by the scheduler (seeding) and the extractor
    (discovery). With the `drain` termination mode the crawl stops as soon as
    the in-flight count reaches zero; with `idle` each worker gives up after
    `idle_timeout` seconds without input.
    """

    def __init__(self, config: Config, seed_url: str):
        self.config = config
        self.logger = logging.getLogger(__name__)

        self.seed_url, self.subdomain = parse_seed_url(seed_url)

        # Components
        self.frontier = URLFrontier()
        self.tracker: Optional[InFlightTracker] = None
        self.fetcher: Optional[WebFetcher] = None
        self.extractor = LinkExtractor(
            self.subdomain,
            self.frontier,
            excluded_extensions=config.crawler.excluded_extensions,
            origin=str(URL(self.seed_url).origin())
        )

        # Crawl state
        self.stats = CrawlStats(start_time=time.time())
        self.is_running = False
        self._stop_event = asyncio.Event()

    async def start_crawling(self, stop: Optional[asyncio.Event] = None) -> CrawlStats:
        """
        Run the crawl until it terminates.

        Args:
            stop: Optional external cancellation event. Setting it makes both
                workers exit at their next suspension point.

        Returns:
            Final crawl statistics
        """
        if self.is_running:
            raise RuntimeError("Crawler is already running")

        crawler_config = self.config.crawler
        self.is_running = True
        self.stats = CrawlStats(start_time=time.time())
        if stop is not None:
            self._stop_event = stop
        self.tracker = InFlightTracker()

        url_channel = Channel('url')
        html_channel = Channel('html')

        idle_timeout = None
        if crawler_config.termination != TERMINATION_DRAIN:
            idle_timeout = crawler_config.idle_timeout

        watchers: List[asyncio.Task] = []
        try:
            async with WebFetcher(
                request_timeout=crawler_config.request_timeout,
                max_concurrent_requests=crawler_config.concurrency
            ) as fetcher:
                self.fetcher = fetcher

                self.frontier.try_claim(frontier_key(self.seed_url))
                self.tracker.add()
                await url_channel.send(self.seed_url)
                self.logger.info(f"Seeded crawl of {self.subdomain} with {self.seed_url}")

                if crawler_config.termination == TERMINATION_DRAIN:
                    watchers.append(asyncio.create_task(self._stop_when_drained()))
                if crawler_config.max_duration:
                    watchers.append(asyncio.create_task(
                        self._stop_after(crawler_config.max_duration)
                    ))

                await asyncio.gather(
                    fetcher.run(url_channel, html_channel, idle_timeout,
                                self._stop_event, self.tracker),
                    self.extractor.run(html_channel, url_channel, idle_timeout,
                                       self._stop_event, self.tracker)
                )
        finally:
            for watcher in watchers:
                watcher.cancel()
            await asyncio.gather(*watchers, return_exceptions=True)
            self.is_running = False
            self._collect_stats()

        self._log_final_stats()
        return self.stats

    async def _stop_when_drained(self):
        """Set the stop event once no claimed URL is left unprocessed."""
        await self.tracker.wait_drained()
        self.logger.info("All discovered pages processed, stopping workers")
        self._stop_event.set()

    async def _stop_after(self, max_duration: float):
        await asyncio.sleep(max_duration)
        self.logger.info(f"Reached max duration: {max_duration} seconds")
        self._stop_event.set()

    def _collect_stats(self):
        self.stats.end_time = time.time()
        if self.fetcher:
            fetcher_stats = self.fetcher.get_stats()
            self.stats.pages_visited = fetcher_stats['total_requests']
            self.stats.pages_failed = fetcher_stats['failed_requests']
        extractor_stats = self.extractor.get_stats()
        self.stats.urls_discovered = extractor_stats['urls_found']
        self.stats.urls_claimed = extractor_stats['urls_claimed']

    def _log_final_stats(self):
        """Log final crawl statistics."""
        self.logger.info("=== CRAWL COMPLETED ===")
        self.logger.info(f"Pages visited: {self.stats.pages_visited}")
        self.logger.info(f"Pages failed: {self.stats.pages_failed}")
        self.logger.info(f"URLs discovered: {self.stats.urls_discovered}")
        self.logger.info(f"Frontier size: {len(self.frontier)}")
        self.logger.info(f"Work left in flight: {self.tracker.in_flight}")
        self.logger.info(f"Total time: {self.stats.elapsed_time:.2f} seconds")

    def stop_crawling(self):
        """Ask both workers to stop at their next suspension point."""
        self.logger.info("Stopping crawler...")
        self._stop_event.set()

    def get_stats(self) -> Dict:
        """Get current crawl statistics."""
        return {
            'pages_visited': self.stats.pages_visited,
            'pages_failed': self.stats.pages_failed,
            'urls_discovered': self.stats.urls_discovered,
            'urls_claimed': self.stats.urls_claimed,
            'frontier_size': len(self.frontier),
            'elapsed_time': self.stats.elapsed_time,
            'is_running': self.is_running
        }
