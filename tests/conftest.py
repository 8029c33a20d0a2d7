"""Shared test fixtures."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any
from unittest.mock import AsyncMock, MagicMock

from storyrunner.models import Outcome, Step, Story, Verification


def make_mock_locator(visible: bool = True) -> MagicMock:
    """Create a mock Playwright Locator whose `.first` is itself."""
    loc = MagicMock()
    loc.first = loc
    loc.is_visible = AsyncMock(return_value=visible)
    loc.click = AsyncMock()
    loc.fill = AsyncMock()
    loc.hover = AsyncMock()
    loc.focus = AsyncMock()
    loc.check = AsyncMock()
    loc.uncheck = AsyncMock()
    loc.select_option = AsyncMock()
    loc.scroll_into_view_if_needed = AsyncMock()
    return loc


def make_mock_page(
    url: str = "https://app.example.test/",
    visible: set[str] | None = None,
) -> MagicMock:
    """Create a mock Playwright Page with common methods.

    With `visible=None` every locator is a single shared, visible mock.
    Otherwise each lookup gets its own locator, visible only if its key is
    in `visible`. Keys are the CSS selector for `page.locator(...)` and
    `"<strategy>:<text>"` for the get_by_* helpers (`label`, `placeholder`,
    `role=textbox`, `role=button`, `role=link`, `text`).
    """
    page = MagicMock()
    page.url = url

    page.goto = AsyncMock()
    page.fill = AsyncMock()
    page.click = AsyncMock()
    page.evaluate = AsyncMock(return_value=None)
    page.screenshot = AsyncMock(return_value=b"fake_png_data")
    page.wait_for_timeout = AsyncMock()
    page.wait_for_selector = AsyncMock()
    page.wait_for_load_state = AsyncMock()
    page.keyboard = MagicMock()
    page.keyboard.press = AsyncMock()
    page.on = MagicMock()

    page.locators = {}

    if visible is None:
        shared = make_mock_locator()
        lookup = lambda key: shared  # noqa: E731
    else:
        def lookup(key: str) -> MagicMock:
            if key not in page.locators:
                page.locators[key] = make_mock_locator(key in visible)
            return page.locators[key]

    page.locator = MagicMock(side_effect=lambda sel: lookup(sel))
    page.get_by_label = MagicMock(side_effect=lambda t, **kw: lookup(f"label:{t}"))
    page.get_by_placeholder = MagicMock(side_effect=lambda t, **kw: lookup(f"placeholder:{t}"))
    page.get_by_role = MagicMock(side_effect=lambda role, name=None, **kw: lookup(f"role={role}:{name}"))
    page.get_by_text = MagicMock(side_effect=lambda t, **kw: lookup(f"text:{t}"))
    return page


class FakeBrowserPool:
    """Stands in for BrowserPool; hands out one prepared page per session."""

    def __init__(self, page: MagicMock) -> None:
        self.page = page
        self.sessions_opened = 0
        self.sessions_closed = 0

    @asynccontextmanager
    async def session(self):
        self.sessions_opened += 1
        try:
            yield self.page
        finally:
            self.sessions_closed += 1


def make_story(
    steps: list[dict[str, Any]] | None = None,
    verifications: list[dict[str, Any]] | None = None,
    story_id: str = "story-1",
    required_role: str | None = None,
) -> Story:
    steps = steps if steps is not None else [{"action": "Click", "selector": "#go"}]
    return Story(
        id=story_id,
        steps=[Step(**s) for s in steps],
        outcome=Outcome(verifications=[Verification(**v) for v in verifications or []]),
        required_role=required_role,
        title=f"Title {story_id}",
        name=f"name-{story_id}",
        journey_name="checkout",
    )
