"""
Link extraction for same-subdomain crawling.

Each fetched page expands into several documents: the page itself plus one
document per `noscript` block, whose inner markup is parsed on its own since
some sites only ship navigation links inside `noscript` fallbacks. Anchors
from every document are normalized, scoped to the crawl's subdomain and
deduplicated against the shared frontier.
"""

import asyncio
import logging
from typing import Iterable, List, Optional, Sequence
from bs4 import BeautifulSoup
from yarl import URL

from .channel import Channel, ChannelClosed, ChannelError
from .fetcher import FetchResult
from .url_frontier import URLFrontier, frontier_key
from .tracker import InFlightTracker


ROOT_HREFS = ('', '/', '#', '/#')
DEFAULT_EXCLUDED_EXTENSIONS = ('.pdf', '.mp3')


def normalize_href(href: str, subdomain: str, origin: Optional[str] = None) -> str:
    """
    Turn a raw href into an absolute URL string for `subdomain`.

    Root-like values become the site root, fragments are dropped and
    root-relative paths are resolved against `origin`, which defaults to
    `https://<subdomain>`. Anything else is returned as is.
    """
    origin = origin or f"https://{subdomain}"

    if href in ROOT_HREFS:
        return origin

    href = href.split('#', 1)[0]

    # Protocol-relative links keep their own host and only borrow the scheme,
    # they are not treated as paths on the subdomain
    if href.startswith('//'):
        return f"{origin.split(':', 1)[0]}:{href}"
    if href.startswith('/'):
        return f"{origin}{href}"
    return href


def parse_documents(html: str) -> List[BeautifulSoup]:
    """Parse a page into its noscript sub-documents followed by the page itself."""
    document = BeautifulSoup(html, 'lxml')

    documents = []
    for noscript in document.find_all('noscript'):
        # Children may be tags or raw text depending on where the parser put them
        inner = ''.join(str(child) for child in noscript.contents)
        documents.append(BeautifulSoup(inner, 'lxml'))

    documents.append(document)
    return documents


class LinkExtractor:
    """
    Extracts in-subdomain links from HTML and claims them in the frontier.
    """

    def __init__(self, subdomain: str, frontier: URLFrontier,
                 excluded_extensions: Optional[Sequence[str]] = DEFAULT_EXCLUDED_EXTENSIONS,
                 origin: Optional[str] = None):
        self.subdomain = subdomain.lower()
        self.origin = origin or f"https://{self.subdomain}"
        self.frontier = frontier
        self.excluded_extensions = tuple(ext.lower() for ext in excluded_extensions or ())
        self.logger = logging.getLogger(__name__)

        self.stats = {
            'pages_parsed': 0,
            'urls_found': 0,
            'urls_claimed': 0,
            'invalid_hrefs': 0,
            'off_subdomain': 0
        }

    def extract_urls(self, html: str) -> List[str]:
        """
        Extract every on-subdomain URL from a page.

        The result may contain duplicates; deduplication is the frontier's job.
        """
        urls = []

        for document in parse_documents(html):
            for anchor in document.find_all('a'):
                href = anchor.get('href')
                if href is None:
                    self.logger.warning(f"Found <a> without href: {anchor}")
                    continue

                url = self._parse_href(href)
                if url is not None:
                    urls.append(url)

        return urls

    def _parse_href(self, href: str) -> Optional[str]:
        """Normalize and validate one href. Returns None if it is not crawlable."""
        normalized = normalize_href(href, self.subdomain, self.origin)

        # Parsed the way the HTTP client will request it, so the frontier key
        # matches the page actually fetched
        try:
            parsed = URL(normalized)
            url = str(parsed)
        except (ValueError, TypeError) as e:
            self.stats['invalid_hrefs'] += 1
            self.logger.warning(f"Found href that is not a valid URL {normalized!r}: {e}")
            return None

        if not parsed.scheme:
            self.stats['invalid_hrefs'] += 1
            self.logger.warning(f"Found href that is not a valid URL {normalized!r}")
            return None

        if parsed.host and parsed.raw_path == '/' and not parsed.raw_query_string:
            url = str(parsed.with_path('/'))

        self.stats['urls_found'] += 1
        self.logger.info(f"Found URL: {url}")

        host = (parsed.host or '').lower()
        if parsed.scheme.lower() not in ('http', 'https') or host != self.subdomain:
            self.stats['off_subdomain'] += 1
            self.logger.warning(f"Skipping URL outside {self.subdomain}: {url}")
            return None

        return url

    def is_excluded(self, url: str) -> bool:
        """Check if URL points at a resource type that is never crawled."""
        path = URL(url).path.lower()
        return any(path.endswith(ext) for ext in self.excluded_extensions)

    def claim_new(self, urls: Iterable[str]) -> List[str]:
        """
        Keep the URLs this caller wins in the frontier.

        Excluded resources are filtered before claiming so they never occupy
        a frontier key.
        """
        claimed = []
        for url in urls:
            if self.is_excluded(url):
                self.logger.debug(f"Skipping excluded resource: {url}")
                continue
            if self.frontier.try_claim(frontier_key(url)):
                claimed.append(url)

        self.stats['urls_claimed'] += len(claimed)
        return claimed

    async def run(self, html_channel: Channel, url_channel: Channel,
                  idle_timeout: Optional[float] = None,
                  stop: Optional[asyncio.Event] = None,
                  tracker: Optional[InFlightTracker] = None):
        """
        Consume pages from `html_channel` and push newly claimed URLs to `url_channel`.

        Ends on idle timeout, on `stop`, or when `url_channel` has been closed
        by the fetch stage. Closes `html_channel` on exit.
        """
        try:
            while True:
                self.logger.debug("Link extractor: waiting for html")
                try:
                    page = await html_channel.receive(idle_timeout, stop)
                except ChannelError as e:
                    self.logger.info(f"Link extractor: stopping ({e})")
                    return

                try:
                    if not await self._process_page(page, url_channel, tracker):
                        self.logger.info("Link extractor: url channel closed")
                        return
                finally:
                    if tracker is not None:
                        tracker.done()
        finally:
            html_channel.close()
            self.logger.info(f"Link extractor: finished, stats {self.get_stats()}")

    async def _process_page(self, page: FetchResult, url_channel: Channel,
                            tracker: Optional[InFlightTracker]) -> bool:
        """Returns False once the url channel refuses new work."""
        self.stats['pages_parsed'] += 1
        urls = self.claim_new(self.extract_urls(page.content))
        self.logger.debug(f"Queued {len(urls)} new URLs from {page.url}")

        for url in urls:
            if tracker is not None:
                tracker.add()
            try:
                await url_channel.send(url)
            except ChannelClosed:
                if tracker is not None:
                    tracker.done()
                return False
        return True

    def get_stats(self) -> dict:
        """Get extractor statistics."""
        return self.stats.copy()
