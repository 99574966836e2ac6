"""
Shared fixtures for the anyrouter-checkin test suite.

Everything runs without a browser, a database or the network.
"""

import pytest

from anyrouter_checkin.config.settings import Settings

from fakes import FakeBrowser, FakeLedger, FakeSite


@pytest.fixture
def settings():
    """Settings with every randomized pause collapsed to zero."""
    return Settings(
        _env_file=None,
        ledger_backend="remote",
        ledger_api_url="http://ledger.test",
        site_base_url="https://anyrouter.test",
        timezone="Asia/Shanghai",
        step_delay_min_ms=0,
        step_delay_max_ms=0,
        page_settle_min_ms=0,
        page_settle_max_ms=0,
        account_delay_min_ms=0,
        account_delay_max_ms=0,
        bot_token="",
        admin_ids_str="",
        log_level_str="INFO",
        headless=True,
        browser_proxy="",
        ledger_api_key="",
        database_url="",
    )


@pytest.fixture
def site():
    return FakeSite()


@pytest.fixture
def browser():
    return FakeBrowser()


@pytest.fixture
def browser_factory(browser):
    def factory(settings=None):
        return browser
    return factory


@pytest.fixture
def adapter_factory(site):
    def factory(page, settings=None):
        return site
    return factory


@pytest.fixture
def ledger():
    return FakeLedger()
