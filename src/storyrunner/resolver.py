"""Element resolver: fuzzy target strings to concrete Playwright locators.

CSS-looking targets are used verbatim. Anything else is tried against an
ordered cascade of locator strategies; the first one with a visible match
wins. When nothing matches, the raw target is returned as a selector so
the action fails with Playwright's own error.
"""

from __future__ import annotations

from collections.abc import Callable, Iterator

from playwright.async_api import Locator, Page


VISIBLE_TIMEOUT_MS = 1000

# Keyword -> CSS guesses, in the order they take precedence.
_SEEDED: list[tuple[tuple[str, ...], list[str]]] = [
    (("submit", "login", "sign in"), [
        'button[type="submit"]',
        'input[type="submit"]',
    ]),
    (("username",), [
        'input[name="username"]',
        "#username",
    ]),
    (("password",), [
        'input[type="password"]',
        'input[name="password"]',
        "#password",
    ]),
    (("email",), [
        'input[type="email"]',
        'input[name="email"]',
        'input[name="Email"]',
        "#email",
    ]),
]


def looks_like_selector(target: str) -> bool:
    return target.startswith(("#", ".", "[")) or "=" in target


def _semantic(page: Page, target: str) -> list[tuple[str, Callable[[], Locator]]]:
    return [
        ("label", lambda: page.get_by_label(target, exact=False)),
        ("placeholder", lambda: page.get_by_placeholder(target, exact=False)),
        ("role=textbox", lambda: page.get_by_role("textbox", name=target)),
        ("role=button", lambda: page.get_by_role("button", name=target)),
        ("role=link", lambda: page.get_by_role("link", name=target)),
        ("text", lambda: page.get_by_text(target, exact=False)),
    ]


def candidates(page: Page, target: str) -> Iterator[tuple[str, Locator]]:
    """Yield (strategy label, locator) pairs in evaluation order."""
    lowered = target.lower()
    for keywords, selectors in _SEEDED:
        if any(k in lowered for k in keywords):
            for selector in selectors:
                yield selector, page.locator(selector)
    for label, factory in _semantic(page, target):
        yield label, factory()


async def _is_visible(locator: Locator) -> bool:
    try:
        return await locator.first.is_visible(timeout=VISIBLE_TIMEOUT_MS)
    except Exception:
        return False


async def resolve(page: Page, target: str) -> Locator:
    """Turn a selector or description into a locator for one element."""
    if looks_like_selector(target):
        return page.locator(target)

    for label, locator in candidates(page, target):
        if await _is_visible(locator):
            print(f"[resolver] \"{target[:40]}\" -> {label}")
            return locator.first

    print(f"[resolver] No strategy matched \"{target[:40]}\", using it as a selector")
    return page.locator(target)
