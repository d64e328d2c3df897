#!/usr/bin/env python3
"""
Main entry point for the same-subdomain crawler.
"""

import asyncio
import argparse
import logging
import signal
import sys
from typing import Optional

from subcrawl import __version__
from subcrawl.utils.config import ConfigManager, Config, TERMINATION_MODES
from subcrawl.utils.logger import setup_logging
from subcrawl.crawler.scheduler import CrawlerScheduler


class CrawlerApp:
    """Main application class for the crawler."""

    def __init__(self):
        self.scheduler: Optional[CrawlerScheduler] = None
        self.logger = logging.getLogger(__name__)

    def setup_signal_handlers(self):
        """Setup signal handlers for graceful shutdown."""
        loop = asyncio.get_running_loop()

        def signal_handler(signum):
            self.logger.info(f"Received signal {signum}, initiating shutdown...")
            self.scheduler.stop_crawling()

        for signum in (signal.SIGINT, signal.SIGTERM):
            try:
                loop.add_signal_handler(signum, signal_handler, signum)
            except (NotImplementedError, RuntimeError):
                # Not available on this platform or outside the main thread
                pass

    async def run(self, config: Config, seed_url: str) -> int:
        """Run the crawler. Returns the process exit code."""
        try:
            self.scheduler = CrawlerScheduler(config, seed_url)
        except ValueError as e:
            self.logger.error(f"Fatal error: {e}")
            return 1

        self.setup_signal_handlers()

        self.logger.info("=== CRAWLER STARTING ===")
        self.logger.info(f"Seed URL: {self.scheduler.seed_url}")
        self.logger.info(f"Subdomain: {self.scheduler.subdomain}")
        self.logger.info(f"Max concurrent requests: {config.crawler.concurrency}")
        self.logger.info(f"Request timeout: {config.crawler.request_timeout}s")
        self.logger.info(f"Termination: {config.crawler.termination}")

        await self.scheduler.start_crawling()

        self.logger.info("=== CRAWLER FINISHED ===")
        return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Given a starting URL, visits each URL with the same subdomain and "
                    "prints each URL visited as well as the links found on each page",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python main.py https://community.monzo.com
  python main.py https://community.monzo.com -c 12 -t 10
  python main.py https://community.monzo.com --termination idle --idle-timeout 15
  python main.py https://community.monzo.com --config crawl.yaml
        """
    )

    parser.add_argument(
        'url',
        help='Absolute URL to start crawling from'
    )

    parser.add_argument(
        '-c', '--concurrency',
        type=int,
        help='Concurrent http request limit (default: 6)'
    )

    parser.add_argument(
        '-t', '--timeout',
        type=float,
        dest='request_timeout',
        help='http request timeout in seconds (default: 5)'
    )

    parser.add_argument(
        '--idle-timeout',
        type=float,
        help='Seconds a worker waits for input before giving up, in idle termination mode (default: 10)'
    )

    parser.add_argument(
        '--termination',
        choices=TERMINATION_MODES,
        help='How the end of the crawl is detected (default: drain)'
    )

    parser.add_argument(
        '--max-duration',
        type=float,
        help='Maximum crawl duration in seconds'
    )

    parser.add_argument(
        '--config',
        help='Path to a YAML configuration file'
    )

    parser.add_argument(
        '--log-level',
        help='Override the configured log level'
    )

    parser.add_argument(
        '--json-logs',
        action='store_true',
        help='Emit log records as JSON'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'subcrawl {__version__}'
    )

    return parser


def main(argv: Optional[list] = None) -> int:
    """Main entry point."""
    args = build_parser().parse_args(argv)

    try:
        manager = ConfigManager(args.config)
        manager.load_config()
        config = manager.apply_overrides(
            concurrency=args.concurrency,
            request_timeout=args.request_timeout,
            idle_timeout=args.idle_timeout,
            termination=args.termination,
            max_duration=args.max_duration
        )
        if args.log_level:
            config.logging.level = args.log_level
        if args.json_logs:
            config.logging.json = True
        setup_logging(config.logging)
    except (FileNotFoundError, ValueError, AttributeError, TypeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    app = CrawlerApp()
    try:
        return asyncio.run(app.run(config, args.url))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        return 1


if __name__ == '__main__':
    sys.exit(main())
