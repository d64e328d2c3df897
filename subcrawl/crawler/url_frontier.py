"""
URL Frontier implementation for tracking which pages have been claimed.
Implements the at-most-once visitation gate shared by all producers.
"""

import logging
import threading
from typing import Set
from yarl import URL


def frontier_key(url: str) -> str:
    """
    Build the deduplication key for a URL.

    The key is the path component with every trailing slash removed, so
    `https://x.com/page/`, `https://x.com/page#a` and `https://x.com/page?b=1`
    all map to `/page`. The path is taken from the same normalized form the
    HTTP client requests: dot segments resolved, non-ASCII percent-encoded,
    `;params` kept.
    """
    return URL(url).raw_path.rstrip('/')


class URLFrontier:
    """
    Set of frontier keys already enqueued or visited.

    The only mutation is `try_claim`, which checks and inserts under one lock.
    """

    def __init__(self):
        self.logger = logging.getLogger(__name__)
        self._claimed: Set[str] = set()
        self._lock = threading.Lock()

    def try_claim(self, key: str) -> bool:
        """
        Claim a key.

        Returns True if this call inserted the key, False if it was already
        claimed and the caller must drop the corresponding URL.
        """
        with self._lock:
            if key in self._claimed:
                return False
            self._claimed.add(key)

        self.logger.debug(f"Claimed frontier key: {key!r}")
        return True

    def __contains__(self, key: str) -> bool:
        return key in self._claimed

    def __len__(self) -> int:
        return len(self._claimed)

    def get_stats(self) -> dict:
        """Get frontier statistics."""
        return {'total_claimed': len(self._claimed)}
