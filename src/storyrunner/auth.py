"""Form login performed once before a story's steps run."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urljoin

from playwright.async_api import Page

from storyrunner.models import AuthConfig, Credentials


DEFAULT_USERNAME_SELECTOR = (
    'input[type="email"], input[name="email"], input[name="username"], #email, #username'
)
DEFAULT_PASSWORD_SELECTOR = 'input[type="password"], input[name="password"], #password'
DEFAULT_SUBMIT_SELECTOR = (
    'button[type="submit"], input[type="submit"], '
    'button:has-text("Login"), button:has-text("Sign in")'
)
SUCCESS_TIMEOUT_MS = 10_000


@dataclass
class AuthOutcome:
    success: bool
    error: str | None = None


def login_url(base_url: str, auth: AuthConfig) -> str:
    """Resolve the configured login URL (absolute or relative) against base_url."""
    return urljoin(base_url, auth.login_url or "/")


async def authenticate(
    page: Page,
    base_url: str,
    credentials: Credentials,
    auth: AuthConfig,
) -> AuthOutcome:
    """Log the page in via the login form. Never raises."""
    try:
        await page.goto(login_url(base_url, auth), wait_until="domcontentloaded")

        await page.fill(auth.username_selector or DEFAULT_USERNAME_SELECTOR, credentials.username)
        await page.fill(auth.password_selector or DEFAULT_PASSWORD_SELECTOR, credentials.password)
        await page.click(auth.submit_selector or DEFAULT_SUBMIT_SELECTOR)

        if auth.success_indicator:
            await page.wait_for_selector(auth.success_indicator, timeout=SUCCESS_TIMEOUT_MS)
        else:
            await page.wait_for_load_state("domcontentloaded")

        print(f"[auth] Authenticated as {credentials.username}")
        return AuthOutcome(success=True)
    except Exception as e:
        print(f"[auth] Authentication failed: {e}")
        return AuthOutcome(success=False, error=f"Authentication failed: {e}")
