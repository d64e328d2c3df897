"""
Utility modules for the crawler.
"""

from .config import Config, ConfigManager, CrawlerConfig, LoggingConfig, load_config
from .logger import setup_logging

__all__ = ['Config', 'ConfigManager', 'CrawlerConfig', 'LoggingConfig', 'load_config', 'setup_logging']
