"""
Web page fetcher implementation with bounded concurrency.
"""

import asyncio
import aiohttp
import logging
import time
from typing import Optional, Dict, Set
from dataclasses import dataclass
from aiohttp import ClientSession, ClientTimeout, ClientError, ClientResponseError

from .channel import Channel, ChannelClosed, ChannelError
from .tracker import InFlightTracker


@dataclass
class FetchResult:
    """Result of a fetch operation."""
    url: str
    status_code: int
    content: Optional[str] = None
    headers: Optional[Dict[str, str]] = None
    error: Optional[str] = None
    fetch_time: float = 0.0
    content_type: Optional[str] = None
    encoding: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None and self.content is not None


class WebFetcher:
    """
    Fetches web pages and feeds their HTML into the extraction stage.
    Failures are per-URL: they are logged and the URL is dropped.
    """

    def __init__(self, request_timeout: float = 5, max_concurrent_requests: int = 6):
        if max_concurrent_requests < 1:
            raise ValueError("max_concurrent_requests must be at least 1")

        self.request_timeout = request_timeout
        self.max_concurrent_requests = max_concurrent_requests

        self.logger = logging.getLogger(__name__)

        # Session management
        self.session: Optional[ClientSession] = None
        self.semaphore = asyncio.Semaphore(max_concurrent_requests)

        # Statistics
        self.stats = {
            'total_requests': 0,
            'successful_requests': 0,
            'failed_requests': 0,
            'total_bytes_downloaded': 0
        }

    async def __aenter__(self):
        """Async context manager entry."""
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit."""
        await self.close()

    async def start(self):
        """Initialize the fetcher session."""
        if self.session is None:
            timeout = ClientTimeout(total=self.request_timeout)

            self.session = aiohttp.ClientSession(
                timeout=timeout,
                connector=aiohttp.TCPConnector(
                    limit=self.max_concurrent_requests * 2,
                    ttl_dns_cache=300,
                    use_dns_cache=True
                )
            )
            self.logger.info("WebFetcher session started")

    async def close(self):
        """Close the fetcher session."""
        if self.session:
            await self.session.close()
            self.session = None
            self.logger.info("WebFetcher session closed")

    async def fetch(self, url: str) -> FetchResult:
        """
        Fetch a single URL.

        Args:
            url: The URL to fetch

        Returns:
            FetchResult object containing the response data or error information
        """
        start_time = time.time()
        self.stats['total_requests'] += 1

        try:
            async with self.session.get(url) as response:
                response.raise_for_status()

                headers = dict(response.headers)
                content_type = response.headers.get('content-type', '').lower()

                if not self._is_text_content(content_type):
                    self.stats['failed_requests'] += 1
                    self.logger.warning(f"Skipping non-text content: {url} ({content_type})")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        headers=headers,
                        content_type=content_type,
                        error="Non-text content type",
                        fetch_time=time.time() - start_time
                    )

                try:
                    content = await response.text()
                except (UnicodeDecodeError, LookupError) as e:
                    self.stats['failed_requests'] += 1
                    self.logger.warning(f"Error decoding response text from {url}: {e}")
                    return FetchResult(
                        url=url,
                        status_code=response.status,
                        headers=headers,
                        content_type=content_type,
                        error=f"Decode error: {e}",
                        fetch_time=time.time() - start_time
                    )

                self.stats['successful_requests'] += 1
                self.stats['total_bytes_downloaded'] += len(content)

                self.logger.debug(f"Fetched {url}: {response.status} ({len(content)} chars)")
                return FetchResult(
                    url=url,
                    status_code=response.status,
                    content=content,
                    headers=headers,
                    content_type=content_type,
                    encoding=response.charset,
                    fetch_time=time.time() - start_time
                )

        except ClientResponseError as e:
            self.stats['failed_requests'] += 1
            self.logger.warning(f"URL {url} returned status {e.status}")
            return FetchResult(
                url=url,
                status_code=e.status,
                error=f"HTTP {e.status}",
                fetch_time=time.time() - start_time
            )

        except asyncio.TimeoutError:
            self.stats['failed_requests'] += 1
            error_msg = "Request timeout"
            self.logger.warning(f"Timeout fetching {url}")

        except (ClientError, ValueError) as e:
            self.stats['failed_requests'] += 1
            error_msg = f"Client error: {str(e)}"
            self.logger.warning(f"Client error fetching {url}: {e}")

        except Exception as e:
            self.stats['failed_requests'] += 1
            error_msg = f"Unexpected error: {str(e)}"
            self.logger.error(f"Unexpected error fetching {url}: {e}")

        return FetchResult(
            url=url,
            status_code=0,
            error=error_msg,
            fetch_time=time.time() - start_time
        )

    def _is_text_content(self, content_type: str) -> bool:
        """Check if content type is text-based."""
        if not content_type:
            return True

        text_types = [
            'text/html',
            'text/plain',
            'text/xml',
            'application/xml',
            'application/xhtml+xml'
        ]

        return any(text_type in content_type for text_type in text_types)

    async def run(self, url_channel: Channel, page_channel: Channel,
                  idle_timeout: Optional[float] = None,
                  stop: Optional[asyncio.Event] = None,
                  tracker: Optional[InFlightTracker] = None):
        """
        Pull URLs from `url_channel` and push successful pages to `page_channel`.

        At most `max_concurrent_requests` fetches are in flight. The loop ends
        when no URL arrives within `idle_timeout` while nothing is in flight,
        when `stop` is set, or when `page_channel` is closed. In-flight fetches
        are awaited before returning and `url_channel` is closed on exit.
        """
        self.logger.info(f"Fetcher: max concurrent connections {self.max_concurrent_requests}")
        pending: Set[asyncio.Task] = set()

        try:
            while not page_channel.closed:
                await self.semaphore.acquire()
                try:
                    url = await url_channel.receive(idle_timeout, stop)
                except ChannelError as e:
                    self.semaphore.release()
                    if isinstance(e, ChannelClosed) or not pending:
                        self.logger.info(f"Fetcher: stopping ({e})")
                        break
                    # Still fetching; the idle window restarts once they finish
                    await asyncio.wait(pending)
                    if stop is not None and stop.is_set():
                        self.logger.info(f"Fetcher: stopping ({e})")
                        break
                    continue

                task = asyncio.create_task(self._visit(url, page_channel, tracker))
                pending.add(task)
                task.add_done_callback(pending.discard)
            else:
                self.logger.info("Fetcher: html channel closed")
        finally:
            url_channel.close()
            if pending:
                await asyncio.gather(*pending, return_exceptions=True)
            self.logger.info(f"Fetcher: finished, stats {self.get_stats()}")

    async def _visit(self, url: str, page_channel: Channel,
                     tracker: Optional[InFlightTracker]):
        """Fetch one URL and forward its page; always settles the tracker."""
        forwarded = False
        try:
            self.logger.info(f"Visited URL: {url}")
            result = await self.fetch(url)
            if not result.ok:
                return

            try:
                await page_channel.send(result)
                forwarded = True
            except ChannelClosed as e:
                self.logger.warning(f"Error sending html to channel: {e}")
        finally:
            self.semaphore.release()
            if tracker is not None and not forwarded:
                tracker.done()

    def get_stats(self) -> Dict[str, int]:
        """Get fetcher statistics."""
        return self.stats.copy()
