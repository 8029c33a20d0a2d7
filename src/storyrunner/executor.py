"""Step executor: runs one interpreted step against the page.

Every failure is caught at the step boundary and reported on the
StepResult. Nothing raised by Playwright escapes `run_step`.
"""

from __future__ import annotations

import time

from playwright.async_api import Locator, Page

from storyrunner.actions import Action, interpret
from storyrunner.models import Step, StepResult
from storyrunner.resolver import resolve


SETTLE_MS = 100
SCROLL_PX = 300


async def run(page: Page, action: Action) -> None:
    """Perform one action. Raises on resolution or action failure."""
    match action.kind:
        case "navigate":
            if action.value:
                await page.goto(action.value, wait_until="domcontentloaded")
        case "wait":
            await page.wait_for_timeout(action.amount)
        case "press":
            await page.keyboard.press(action.value)
        case "scroll":
            if action.target:
                loc = await resolve(page, action.target)
                await loc.scroll_into_view_if_needed()
            else:
                await page.evaluate(f"window.scrollBy(0, {SCROLL_PX})")
        case _:
            if not action.target:
                return
            loc = await resolve(page, action.target)
            await _interact(loc, action)


async def _interact(loc: Locator, action: Action) -> None:
    match action.kind:
        case "click":
            await loc.click()
        case "fill":
            await loc.fill(action.value)
        case "select":
            await loc.select_option(action.value)
        case "check":
            await loc.check()
        case "uncheck":
            await loc.uncheck()
        case "hover":
            await loc.hover()
        case "focus":
            await loc.focus()
        case _:
            raise ValueError(f"Unknown action kind: {action.kind}")


async def run_step(page: Page, step: Step, index: int) -> StepResult:
    """Execute a single story step and time it."""
    t0 = time.monotonic()
    try:
        action = interpret(step)
        if action is not None:
            await run(page, action)
        # Let the UI catch up with async updates
        await page.wait_for_timeout(SETTLE_MS)
        return StepResult(
            step=index,
            action=step.action,
            passed=True,
            duration_ms=_elapsed_ms(t0),
        )
    except Exception as e:
        print(f"[executor] Step {index} ({step.action}) failed: {e}")
        return StepResult(
            step=index,
            action=step.action,
            passed=False,
            duration_ms=_elapsed_ms(t0),
            error=str(e),
        )


def _elapsed_ms(t0: float) -> int:
    return int((time.monotonic() - t0) * 1000)
