"""
Crawler pipeline components.
"""

from .url_frontier import URLFrontier, frontier_key
from .channel import Channel, ChannelError, ChannelClosed, ChannelTimeout, ReceiveCancelled
from .tracker import InFlightTracker
from .fetcher import WebFetcher, FetchResult
from .parser import LinkExtractor, normalize_href, parse_documents
from .scheduler import CrawlerScheduler, CrawlStats, parse_seed_url

__all__ = [
    'URLFrontier', 'frontier_key',
    'Channel', 'ChannelError', 'ChannelClosed', 'ChannelTimeout', 'ReceiveCancelled',
    'InFlightTracker',
    'WebFetcher', 'FetchResult',
    'LinkExtractor', 'normalize_href', 'parse_documents',
    'CrawlerScheduler', 'CrawlStats', 'parse_seed_url'
]
