import pytest

import main


@pytest.fixture(autouse=True)
def restore_root_logger():
    import logging
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


def test_parser_defaults_leave_config_untouched():
    args = main.build_parser().parse_args(['https://community.monzo.com'])
    assert args.url == 'https://community.monzo.com'
    assert args.concurrency is None
    assert args.request_timeout is None
    assert args.config is None


def test_parser_short_flags():
    args = main.build_parser().parse_args(['https://community.monzo.com', '-c', '10', '-t', '2.5'])
    assert args.concurrency == 10
    assert args.request_timeout == 2.5


def test_seed_without_host_exits_non_zero():
    assert main.main(['community.monzo.com']) == 1


def test_missing_config_exits_non_zero(tmp_path):
    assert main.main(['https://community.monzo.com', '--config', str(tmp_path / 'missing.yaml')]) == 1


def test_invalid_concurrency_exits_non_zero():
    assert main.main(['https://community.monzo.com', '-c', '0']) == 1
