"""Tests for form authentication."""

from __future__ import annotations

from unittest.mock import AsyncMock

import pytest

from storyrunner.auth import (
    DEFAULT_PASSWORD_SELECTOR,
    DEFAULT_SUBMIT_SELECTOR,
    DEFAULT_USERNAME_SELECTOR,
    SUCCESS_TIMEOUT_MS,
    authenticate,
    login_url,
)
from storyrunner.models import AuthConfig, AuthType, Credentials
from tests.conftest import make_mock_page


CREDS = Credentials(username="qa@x.test", password="s3cret")


class TestLoginUrl:
    def test_relative_path(self):
        auth = AuthConfig(type=AuthType.FORM, login_url="/login")
        assert login_url("https://x.test/app/", auth) == "https://x.test/login"

    def test_absolute_url(self):
        auth = AuthConfig(type=AuthType.FORM, login_url="https://sso.test/signin")
        assert login_url("https://x.test", auth) == "https://sso.test/signin"

    def test_default_root(self):
        assert login_url("https://x.test/app", AuthConfig(type=AuthType.FORM)) == "https://x.test/"


class TestAuthenticate:
    @pytest.mark.asyncio
    async def test_default_selectors(self):
        page = make_mock_page()
        outcome = await authenticate(page, "https://x.test", CREDS, AuthConfig(type=AuthType.FORM, login_url="/login"))
        assert outcome.success is True
        assert outcome.error is None
        page.goto.assert_called_once_with("https://x.test/login", wait_until="domcontentloaded")
        page.fill.assert_any_call(DEFAULT_USERNAME_SELECTOR, "qa@x.test")
        page.fill.assert_any_call(DEFAULT_PASSWORD_SELECTOR, "s3cret")
        page.click.assert_called_once_with(DEFAULT_SUBMIT_SELECTOR)
        page.wait_for_load_state.assert_called_once_with("domcontentloaded")
        page.wait_for_selector.assert_not_called()

    @pytest.mark.asyncio
    async def test_configured_selectors_and_indicator(self):
        page = make_mock_page()
        auth = AuthConfig(
            type=AuthType.FORM,
            username_selector="#user",
            password_selector="#pass",
            submit_selector="#go",
            success_indicator="[data-testid=avatar]",
        )
        outcome = await authenticate(page, "https://x.test", CREDS, auth)
        assert outcome.success is True
        page.fill.assert_any_call("#user", "qa@x.test")
        page.fill.assert_any_call("#pass", "s3cret")
        page.click.assert_called_once_with("#go")
        page.wait_for_selector.assert_called_once_with("[data-testid=avatar]", timeout=SUCCESS_TIMEOUT_MS)

    @pytest.mark.asyncio
    async def test_failure_reported_not_raised(self, capsys):
        page = make_mock_page()
        page.wait_for_selector = AsyncMock(side_effect=TimeoutError("Timeout 10000ms exceeded"))
        auth = AuthConfig(type=AuthType.FORM, success_indicator="#dashboard")
        outcome = await authenticate(page, "https://x.test", CREDS, auth)
        assert outcome.success is False
        assert outcome.error == "Authentication failed: Timeout 10000ms exceeded"
        assert "s3cret" not in capsys.readouterr().out

    @pytest.mark.asyncio
    async def test_missing_field(self):
        page = make_mock_page()
        page.fill = AsyncMock(side_effect=RuntimeError("waiting for locator"))
        outcome = await authenticate(page, "https://x.test", CREDS, AuthConfig(type=AuthType.FORM))
        assert outcome.success is False
        assert "waiting for locator" in outcome.error
        page.click.assert_not_called()
