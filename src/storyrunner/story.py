"""Story runner: one story end to end in its own browser context.

Init -> authenticate (optional) -> steps with retry -> verification ->
screenshot on failure -> teardown. The context is closed on every path.
"""

from __future__ import annotations

import time

from playwright.async_api import ConsoleMessage, Page

from storyrunner.artifacts import ArtifactUploader, artifact_timestamp
from storyrunner.auth import authenticate
from storyrunner.browser import BrowserPool
from storyrunner.executor import run_step
from storyrunner.models import ExecutionOptions, ExecutionResult, Step, StepResult, Story
from storyrunner.verify import evaluate


RETRY_DELAY_MS = 1000


class _StoryFailed(Exception):
    """Ends the story early with a message; no screenshot is attempted."""


class StoryRunner:
    """Executes stories on isolated contexts of a shared browser."""

    def __init__(self, browser: BrowserPool, uploader: ArtifactUploader | None = None) -> None:
        self.browser = browser
        self.uploader = uploader

    async def execute(
        self, story: Story, base_url: str, options: ExecutionOptions
    ) -> ExecutionResult:
        t0 = time.monotonic()
        async with self.browser.session() as page:
            result = await self._execute_on(page, story, base_url, options)
        result.duration_ms = int((time.monotonic() - t0) * 1000)
        status = "PASS" if result.passed else "FAIL"
        print(f"[story] {story.label}: [{status}] {result.duration_ms}ms retries={result.retries}")
        return result

    async def _execute_on(
        self, page: Page, story: Story, base_url: str, options: ExecutionOptions
    ) -> ExecutionResult:
        result = ExecutionResult(passed=True, duration_ms=0)

        def on_console(msg: ConsoleMessage) -> None:
            if msg.type == "error":
                result.console_errors.append(msg.text)

        page.on("console", on_console)

        try:
            await self._prepare(page, base_url, options)

            for i, step in enumerate(story.steps):
                step_result, failures = await self._attempt(page, step, i, options.retry_count)
                result.retries += failures
                result.steps.append(step_result)
                if not step_result.passed:
                    result.passed = False
                    result.error = step_result.error
                    if options.screenshot_on_failure:
                        result.screenshot_url = await self._capture(page, story.id)
                    break

            if result.passed and story.outcome.verifications:
                error = await evaluate(page, story.outcome.verifications)
                if error:
                    result.passed = False
                    result.error = error
                    if options.screenshot_on_failure and not result.screenshot_url:
                        result.screenshot_url = await self._capture(page, story.id)
        except _StoryFailed as e:
            result.passed = False
            result.error = str(e)
        except Exception as e:
            print(f"[story] {story.label} crashed: {e!r}")
            result.passed = False
            result.error = str(e)
            if options.screenshot_on_failure:
                result.screenshot_url = await self._capture(page, story.id)
        return result

    async def _prepare(self, page: Page, base_url: str, options: ExecutionOptions) -> None:
        auth = options.auth_config
        if options.credentials and auth and auth.is_form:
            outcome = await authenticate(page, base_url, options.credentials, auth)
            if not outcome.success:
                raise _StoryFailed(outcome.error or "Authentication failed")
        else:
            await page.goto(base_url, wait_until="domcontentloaded")

    async def _attempt(
        self, page: Page, step: Step, index: int, retry_count: int
    ) -> tuple[StepResult, int]:
        """Run a step up to retry_count + 1 times. Returns (last result, failed attempts)."""
        failures = 0
        while True:
            step_result = await run_step(page, step, index)
            if step_result.passed:
                return step_result, failures
            failures += 1
            if failures > retry_count:
                return step_result, failures
            print(f"[story] Step {index} retry {failures}/{retry_count}")
            await page.wait_for_timeout(RETRY_DELAY_MS)

    async def _capture(self, page: Page, story_id: str) -> str | None:
        """Best-effort screenshot upload."""
        if self.uploader is None:
            return None
        try:
            image = await page.screenshot()
            return await self.uploader.upload(image, story_id, artifact_timestamp())
        except Exception as e:
            print(f"[story] Screenshot capture failed: {e}")
            return None
