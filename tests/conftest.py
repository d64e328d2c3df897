"""
Shared fixtures for crawler tests.
"""

from pathlib import Path

import pytest

FIXTURES = Path(__file__).parent / 'fixtures'

MONZO_SUBDOMAIN = 'community.monzo.com'

MONZO_URLS = [
    'https://community.monzo.com/',
    'https://community.monzo.com/c/monzo/5',
    'https://community.monzo.com/c/customersupport/10',
    'https://community.monzo.com/c/feedback/35',
    'https://community.monzo.com/c/usa/46',
    'https://community.monzo.com/c/developers/43',
    'https://community.monzo.com/c/community/19',
    'https://community.monzo.com/c/making-monzo/39',
    'https://community.monzo.com/c/foyer/24',
    'https://community.monzo.com/c/financial-chat/36',
    'https://community.monzo.com/categories',
    'https://community.monzo.com/guidelines',
    'https://community.monzo.com/tos',
    'https://community.monzo.com/privacy',
]


@pytest.fixture
def monzo_html() -> str:
    return (FIXTURES / 'community.monzo.com.html').read_text(encoding='utf-8')
