"""Shared Playwright browser with one isolated context per story."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import Browser, Page, async_playwright


VIEWPORT = {"width": 1280, "height": 720}


@dataclass
class BrowserPool:
    """Lazily launched headless Chromium shared by every story in the process.

    Use `session()` to get a page in a fresh context; cookies and storage
    are never shared between sessions.
    """

    headless: bool = True
    _playwright: Any = field(default=None, repr=False)
    _browser: Browser | None = field(default=None, repr=False)
    _lock: asyncio.Lock = field(default_factory=asyncio.Lock, repr=False)

    async def __aenter__(self) -> "BrowserPool":
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()

    async def browser(self) -> Browser:
        async with self._lock:
            if self._browser is None:
                self._playwright = await async_playwright().start()
                self._browser = await self._playwright.chromium.launch(headless=self.headless)
                print(f"[browser] Launched chromium (headless={self.headless})")
            return self._browser

    @asynccontextmanager
    async def session(self) -> AsyncIterator[Page]:
        browser = await self.browser()
        context = await browser.new_context(viewport=VIEWPORT)
        try:
            yield await context.new_page()
        finally:
            await context.close()

    async def close(self) -> None:
        async with self._lock:
            if self._browser:
                await self._browser.close()
                self._browser = None
            if self._playwright:
                await self._playwright.stop()
                self._playwright = None
