"""
Same-subdomain web crawler.

Visits every page reachable from a seed URL without leaving its host.
"""

__version__ = "1.0.0"
__description__ = "A concurrent crawler that visits each page of a single subdomain once"
