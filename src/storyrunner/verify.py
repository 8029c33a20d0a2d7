"""Outcome verification against the final page state."""

from __future__ import annotations

from playwright.async_api import Page

from storyrunner.models import Verification


SUPPORTED_TYPES = ("url", "element", "content")


async def check(page: Page, verification: Verification) -> str | None:
    """Evaluate one verification. Returns a failure message or None."""
    if verification.type not in SUPPORTED_TYPES:
        print(f"[verify] Unsupported verification type '{verification.type}', not checked")
        return None
    match verification.type:
        case "url":
            current = page.url
            if verification.expected not in current:
                return (
                    f'Expected URL to contain "{verification.expected}", '
                    f'got "{current}"'
                )
        case "element":
            selector = verification.target or verification.expected
            if not await page.locator(selector).first.is_visible():
                return f'Element "{selector}" not visible'
        case "content":
            try:
                found = await page.locator(f"text={verification.expected}").first.is_visible()
            except Exception:
                found = False
            if not found:
                return f'Expected content "{verification.expected}" not found'
    return None


async def evaluate(page: Page, verifications: list[Verification]) -> str | None:
    """Check verifications in order and stop at the first failure."""
    for verification in verifications:
        try:
            error = await check(page, verification)
        except Exception as e:
            error = str(e)
        if error:
            print(f"[verify] {verification.type} failed: {error}")
            return error
    return None
