"""Browser session management using patchright.

One browser process, two isolated contexts:
  - the main context/page drives login and listing extraction;
  - the worker context/page is opened on demand for company enrichment and
    is seeded with a copy of the main context's cookies.
"""

import asyncio
import logging
from types import TracebackType
from typing import Any

from patchright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

from src.core.config import BrowserConfig

logger = logging.getLogger(__name__)

LAUNCH_ARGS = ["--no-sandbox", "--disable-dev-shm-usage"]


class BrowserSession:
    """Owns one patchright browser plus a main and an optional worker surface.

    Usage::

        async with BrowserSession(config) as session:
            page = session.page
            await page.goto("https://...")
            worker = await session.open_worker_page()
    """

    def __init__(self, config: BrowserConfig, *, log: logging.Logger | None = None) -> None:
        self._config = config
        self._log = log or logger
        self._playwright: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None
        self._worker_context: BrowserContext | None = None
        self._worker_page: Page | None = None
        self._closed = False

    @property
    def page(self) -> Page:
        """The main page for this session. Raises if not started."""
        if self._page is None:
            msg = "BrowserSession not started; call start() or use 'async with'"
            raise RuntimeError(msg)
        return self._page

    @property
    def context(self) -> BrowserContext:
        if self._context is None:
            msg = "BrowserSession not started; call start() or use 'async with'"
            raise RuntimeError(msg)
        return self._context

    @property
    def worker_page(self) -> Page | None:
        return self._worker_page

    @property
    def started(self) -> bool:
        return self._page is not None

    async def start(self) -> "BrowserSession":
        if self._closed:
            msg = "BrowserSession already closed"
            raise RuntimeError(msg)
        if self._page is not None:
            return self

        self._log.info("Initializing browser (headless=%s)", self._config.headless)
        pw = await async_playwright().start()
        self._playwright = pw
        self._browser = await pw.chromium.launch(
            headless=self._config.headless, args=LAUNCH_ARGS,
        )
        self._context = await self._new_context()
        self._page = await self._context.new_page()
        return self

    async def open_worker_page(self) -> Page:
        """Open (once) the enrichment surface, authenticated with the main cookies."""
        if self._worker_page is not None:
            return self._worker_page

        self._log.info("Initializing company details worker surface")
        self._worker_context = await self._new_context()
        cookies: list[Any] = await self.context.cookies()
        if cookies:
            await self._worker_context.add_cookies(cookies)
            self._log.info("Shared %d cookies with the worker surface", len(cookies))
        self._worker_page = await self._worker_context.new_page()
        return self._worker_page

    async def close(self) -> None:
        """Close worker surface, then main surface. Safe to call repeatedly."""
        if self._closed:
            return
        self._closed = True

        steps = (
            ("worker context", self._worker_context.close if self._worker_context else None),
            ("main context", self._context.close if self._context else None),
            ("browser", self._browser.close if self._browser else None),
            ("playwright driver", self._playwright.stop if self._playwright else None),
        )
        for name, step in steps:
            if step is None:
                continue
            try:
                await step()
            except Exception:
                self._log.debug("Closing %s failed", name, exc_info=True)

        self._worker_context = self._worker_page = None
        self._context = self._page = None
        self._browser = None
        self._playwright = None

    async def __aenter__(self) -> "BrowserSession":
        return await self.start()

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        await self.close()

    async def _new_context(self) -> BrowserContext:
        if self._browser is None:
            msg = "BrowserSession not started"
            raise RuntimeError(msg)
        context = await self._browser.new_context(user_agent=self._config.user_agent)
        context.set_default_timeout(self._config.timeout_ms)
        return context


async def capture_manual_login(
    config: BrowserConfig,
    store: Any,
    *,
    login_url: str = "https://www.linkedin.com/login",
    prompt: Any = input,
) -> int:
    """Open a visible browser, let a human log in, then save the cookies.

    Returns the number of cookies saved through ``store``.
    """
    visible = config.model_copy(update={"headless": False})
    async with BrowserSession(visible) as session:
        await session.page.goto(login_url)
        await asyncio.to_thread(
            prompt, "\n>>> Log in to LinkedIn, then press Enter here to save the session...",
        )
        cookies = await session.context.cookies()
        store.save(cookies)
    return len(cookies)
