"""
Headless browser session for benchmark pages.

A benchmark page exposes three entry points that the driver calls through
the page-automation boundary (the remote-invocation contract):

    runRenderBenchmark()                       -> {size: ms, ...}
    runBulkUpdates({rowsCount, updatesCount})   -> {rows, updates, total_ms, avg_ms}
    runMountUnmount({components, cycles})       -> {components, cycles, total_ms, avg_cycle_ms}
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from playwright.async_api import (
    async_playwright,
    Browser,
    Page,
    Playwright,
    Error as PlaywrightError,
    TimeoutError as PlaywrightTimeoutError,
)

from .base import NavigationFailure, ApiNotExposed

logger = logging.getLogger(__name__)


_INVOKE_SCRIPT = """
async ({ name, args }) => {
    const fn = window[name];
    if (typeof fn !== "function") {
        return null;
    }
    const result = args === null ? await fn() : await fn(args);
    return result === undefined ? null : result;
}
"""

_ROW_COUNT_SCRIPT = """
(selector) => {
    const body = document.querySelector(selector);
    if (!body) {
        return 0;
    }
    return body.querySelectorAll("tr").length;
}
"""


@dataclass(frozen=True)
class PageApi:
    """Names of the entry points a benchmark page must expose."""
    render: str = "runRenderBenchmark"
    bulk: str = "runBulkUpdates"
    churn: str = "runMountUnmount"

    @property
    def entry_points(self) -> Tuple[str, str, str]:
        return (self.render, self.bulk, self.churn)

    def readiness_script(self) -> str:
        checks = " && ".join(f"typeof window.{name} === 'function'" for name in self.entry_points)
        return f"() => {checks}"


class BrowserSession:
    """
    Drives one benchmark page in a headless Chromium.

    A single page is driven strictly sequentially: the measured entry
    points mutate shared in-page state, so ``invoke`` calls are serialized
    with a lock.

    Example:
        session = BrowserSession()
        await session.open("http://localhost:4173", timeout_ms=120000)
        await session.await_api_ready(timeout_ms=60000)
        samples = await session.invoke("runRenderBenchmark")
        await session.close()
    """

    def __init__(
        self,
        api: Optional[PageApi] = None,
        headless: bool = True,
        navigation_timeout_ms: int = 120000,
        api_timeout_ms: int = 60000,
    ):
        self.api = api or PageApi()
        self.headless = headless
        self.navigation_timeout_ms = navigation_timeout_ms
        self.api_timeout_ms = api_timeout_ms

        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self._page: Optional[Page] = None
        self._invoke_lock = asyncio.Lock()

    @property
    def page(self) -> Page:
        if self._page is None:
            raise RuntimeError("Browser session is not open")
        return self._page

    async def open(self, url: str, timeout_ms: Optional[int] = None) -> None:
        """
        Launch the browser and navigate to ``url``, waiting for network idleness.

        Raises:
            NavigationFailure: If the page does not load in time
        """
        timeout_ms = timeout_ms or self.navigation_timeout_ms

        if self._browser is None:
            self._playwright = await async_playwright().start()
            self._browser = await self._playwright.chromium.launch(
                headless=self.headless,
                args=["--no-sandbox", "--disable-setuid-sandbox"],
            )
            context = await self._browser.new_context()
            self._page = await context.new_page()

        logger.info(f"Opening {url}")
        try:
            await self.page.goto(url, wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationFailure(f"Timeout loading {url} after {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise NavigationFailure(f"Cannot load {url}: {e}") from e

    async def await_api_ready(self, timeout_ms: Optional[int] = None) -> None:
        """
        Wait until the page exposes all benchmark entry points.

        Raises:
            ApiNotExposed: If the entry points do not appear in time
        """
        timeout_ms = timeout_ms or self.api_timeout_ms
        try:
            await self.page.wait_for_function(self.api.readiness_script(), timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise ApiNotExposed(
                f"Page did not expose {', '.join(self.api.entry_points)} within {timeout_ms}ms"
            ) from e

    async def reload(
        self,
        timeout_ms: Optional[int] = None,
        api_timeout_ms: Optional[int] = None,
    ) -> None:
        """Force a full reload and re-validate API readiness (clean in-page state)."""
        timeout_ms = timeout_ms or self.navigation_timeout_ms
        try:
            await self.page.reload(wait_until="networkidle", timeout=timeout_ms)
        except PlaywrightTimeoutError as e:
            raise NavigationFailure(f"Timeout reloading page after {timeout_ms}ms") from e
        except PlaywrightError as e:
            raise NavigationFailure(f"Cannot reload page: {e}") from e

        await self.await_api_ready(api_timeout_ms)

    async def invoke(self, entry_point: str, args: Optional[Dict[str, Any]] = None) -> Any:
        """
        Call a named in-page entry point and return its resolved value.

        Returns None when the entry point is absent, resolves to undefined or
        the call fails.
        """
        async with self._invoke_lock:
            try:
                return await self.page.evaluate(
                    _INVOKE_SCRIPT,
                    {"name": entry_point, "args": args},
                )
            except PlaywrightError as e:
                logger.warning(f"{entry_point} failed in page: {e}")
                return None

    async def dom_row_count(self, selector: str) -> int:
        """Count ``tr`` elements under ``selector`` in the live DOM (0 if unreadable)."""
        try:
            count = await self.page.evaluate(_ROW_COUNT_SCRIPT, selector)
        except PlaywrightError as e:
            logger.warning(f"Cannot count rows under '{selector}': {e}")
            return 0
        return int(count or 0)

    async def close(self) -> None:
        """Release browser resources. Safe to call repeatedly."""
        if self._browser is not None:
            try:
                await self._browser.close()
            except PlaywrightError as e:
                logger.debug(f"Error closing browser: {e}")
        if self._playwright is not None:
            await self._playwright.stop()

        self._page = None
        self._browser = None
        self._playwright = None
