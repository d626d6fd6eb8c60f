"""
Tests for BrowserSession against a fake Playwright page.
"""

import asyncio

import pytest
from playwright.async_api import Error as PlaywrightError, TimeoutError as PlaywrightTimeoutError

from uibench.targets.base import ApiNotExposed, NavigationFailure
from uibench.targets.browser import BrowserSession


class FakePage:
    """Page double recording calls; ``evaluate`` answers from ``results``."""

    def __init__(self, results=None, error=None, wait_error=None, nav_error=None):
        self.results = results or {}
        self.error = error
        self.wait_error = wait_error
        self.nav_error = nav_error
        self.calls = []
        self.active = 0
        self.max_active = 0

    async def evaluate(self, script, arg=None):
        self.calls.append(("evaluate", arg))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0.01)
            if self.error:
                raise self.error
            key = arg["name"] if isinstance(arg, dict) else arg
            return self.results.get(key)
        finally:
            self.active -= 1

    async def wait_for_function(self, script, timeout=None):
        self.calls.append(("wait_for_function", timeout))
        if self.wait_error:
            raise self.wait_error

    async def reload(self, wait_until=None, timeout=None):
        self.calls.append(("reload", wait_until))
        if self.nav_error:
            raise self.nav_error

    async def goto(self, url, wait_until=None, timeout=None):
        self.calls.append(("goto", url))
        if self.nav_error:
            raise self.nav_error


class FakeClosable:
    def __init__(self):
        self.closed = 0

    async def close(self):
        self.closed += 1

    async def stop(self):
        self.closed += 1


def _session(page):
    session = BrowserSession(navigation_timeout_ms=500, api_timeout_ms=200)
    session._page = page
    return session


def test_invoke_returns_value():
    page = FakePage(results={"runBulkUpdates": {"total_ms": 12.5}})

    async def scenario():
        session = _session(page)
        return await session.invoke("runBulkUpdates", {"rowsCount": 10, "updatesCount": 2})

    assert asyncio.run(scenario()) == {"total_ms": 12.5}
    assert page.calls == [("evaluate", {"name": "runBulkUpdates", "args": {"rowsCount": 10, "updatesCount": 2}})]


def test_invoke_undefined_result_is_none():
    async def scenario():
        return await _session(FakePage()).invoke("runRenderBenchmark")

    assert asyncio.run(scenario()) is None


def test_invoke_page_error_is_none():
    async def scenario():
        return await _session(FakePage(error=PlaywrightError("fn is not a function"))).invoke("runMountUnmount")

    assert asyncio.run(scenario()) is None


def test_concurrent_invokes_never_overlap():
    page = FakePage(results={"runRenderBenchmark": {"10": 1.0}})

    async def scenario():
        session = _session(page)
        return await asyncio.gather(*(session.invoke("runRenderBenchmark") for _ in range(5)))

    results = asyncio.run(scenario())

    assert results == [{"10": 1.0}] * 5
    assert page.max_active == 1


def test_await_api_ready_timeout_raises_api_not_exposed():
    page = FakePage(wait_error=PlaywrightTimeoutError("Timeout 200ms exceeded"))

    with pytest.raises(ApiNotExposed, match="runRenderBenchmark"):
        asyncio.run(_session(page).await_api_ready())


def test_reload_rechecks_api_readiness():
    page = FakePage()
    asyncio.run(_session(page).reload())

    assert [name for name, _ in page.calls] == ["reload", "wait_for_function"]
    assert page.calls[0] == ("reload", "networkidle")


def test_reload_timeout_raises_navigation_failure():
    page = FakePage(nav_error=PlaywrightTimeoutError("Timeout 500ms exceeded"))

    with pytest.raises(NavigationFailure):
        asyncio.run(_session(page).reload())
    assert [name for name, _ in page.calls] == ["reload"]


def test_open_timeout_raises_navigation_failure():
    page = FakePage(nav_error=PlaywrightTimeoutError("Timeout 500ms exceeded"))
    session = _session(page)
    session._browser = FakeClosable()

    with pytest.raises(NavigationFailure, match="http://localhost:4173"):
        asyncio.run(session.open("http://localhost:4173"))


def test_dom_row_count():
    assert asyncio.run(_session(FakePage(results={"table tbody": 100})).dom_row_count("table tbody")) == 100
    assert asyncio.run(_session(FakePage(error=PlaywrightError("detached"))).dom_row_count("table tbody")) == 0


def test_close_is_idempotent():
    browser, playwright = FakeClosable(), FakeClosable()
    session = _session(FakePage())
    session._browser = browser
    session._playwright = playwright

    asyncio.run(session.close())
    asyncio.run(session.close())

    assert browser.closed == 1
    assert playwright.closed == 1
    with pytest.raises(RuntimeError):
        session.page
