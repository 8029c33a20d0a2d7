"""Run orchestrator: executes a run's stories one after another.

Each story is gated on its required role, executed through the story
runner and persisted before the next one starts. Cancellation is checked
between stories only; a story in progress always finishes.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Mapping, Sequence

from storyrunner.config import RunnerConfig
from storyrunner.models import (
    Credentials,
    Environment,
    ExecutionOptions,
    ProgressUpdate,
    ResultRecord,
    RunStatus,
    Story,
)
from storyrunner.state import RunTracker, StoryOutcome, utc_now
from storyrunner.store import RunStore
from storyrunner.story import StoryRunner


ProgressCallback = Callable[[ProgressUpdate], None]


def gate(
    story: Story,
    environment: Environment,
    credentials: Mapping[str, Credentials],
) -> tuple[Credentials | None, str | None]:
    """Pick credentials for a story. Returns (credentials, skip reason)."""
    role = story.required_role
    if not role:
        return None, None
    auth = environment.auth_config
    if auth is None or not auth.is_form:
        return None, (
            f'Story requires role "{role}" but environment auth is not '
            f"configured for form login"
        )
    if role not in credentials:
        return None, f"Missing test user for required role: {role}"
    return credentials[role], None


class RunOrchestrator:
    """Drives runs through a StoryRunner and records progress in a RunStore."""

    def __init__(
        self,
        runner: StoryRunner,
        store: RunStore,
        config: RunnerConfig | None = None,
    ) -> None:
        self.runner = runner
        self.store = store
        self.config = config or RunnerConfig()
        self._tasks: dict[str, asyncio.Task] = {}
        self._cancel_events: dict[str, asyncio.Event] = {}

    # -- run lifecycle -----------------------------------------------------

    def spawn(
        self,
        run_id: str,
        stories: Sequence[Story],
        environment: Environment,
        credentials: Mapping[str, Credentials] | None = None,
        on_progress: ProgressCallback | None = None,
    ) -> asyncio.Task:
        """Start a run on its own task so several runs can proceed at once."""
        if run_id in self._tasks and not self._tasks[run_id].done():
            raise RuntimeError(f"Run {run_id} is already in progress")
        cancel_event = asyncio.Event()
        self._cancel_events[run_id] = cancel_event
        task = asyncio.create_task(
            self.execute_run(
                run_id, stories, environment, credentials, on_progress, cancel_event
            ),
            name=f"run-{run_id}",
        )
        self._tasks[run_id] = task
        task.add_done_callback(lambda _: self._forget(run_id, task))
        return task

    async def cancel(self, run_id: str) -> None:
        """Request cancellation. Takes effect before the run's next story."""
        event = self._cancel_events.get(run_id)
        if event is not None:
            event.set()
        await self.store.update_run(run_id, status=RunStatus.CANCELLED)

    def _forget(self, run_id: str, task: asyncio.Task) -> None:
        if self._tasks.get(run_id) is task:
            del self._tasks[run_id]
            self._cancel_events.pop(run_id, None)

    async def _is_cancelled(self, run_id: str, cancel_event: asyncio.Event | None) -> bool:
        if cancel_event is not None and cancel_event.is_set():
            return True
        return await self.store.get_run_status(run_id) == RunStatus.CANCELLED

    # -- execution ---------------------------------------------------------

    async def execute_run(
        self,
        run_id: str,
        stories: Sequence[Story],
        environment: Environment,
        credentials: Mapping[str, Credentials] | None = None,
        on_progress: ProgressCallback | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> RunTracker:
        creds = credentials or {}
        tracker = RunTracker(total=len(stories))
        report = on_progress or (lambda _: None)

        if not stories:
            await self.store.update_run(
                run_id,
                status=RunStatus.COMPLETED,
                started_at=tracker.started_at,
                completed_at=utc_now(),
                duration_ms=0,
                stories_total=0,
                **tracker.counters(),
            )
            report(tracker.progress(0))
            return tracker

        await self.store.update_run(
            run_id,
            status=RunStatus.RUNNING,
            started_at=tracker.started_at,
            stories_total=len(stories),
        )

        for i, story in enumerate(stories):
            if await self._is_cancelled(run_id, cancel_event):
                print(f"[orchestrator] Run {run_id} was cancelled")
                await self.store.update_run(
                    run_id, current_story_id=None, current_story_name=None
                )
                return tracker

            report(tracker.progress(i, current=story.label))
            try:
                await self.store.update_run(
                    run_id, current_story_id=story.id, current_story_name=story.label
                )
                outcome = await self._run_story(run_id, story, environment, creds)
                await self.store.update_story_last_run(story.id, outcome.status, utc_now())
            except Exception as e:
                print(f"[orchestrator] Story {story.id} could not be persisted: {e!r}")
                outcome = StoryOutcome(story.id, story.label, "failed", error=str(e))
            tracker.record(outcome)
            try:
                await self.store.update_run(run_id, **tracker.counters())
            except Exception as e:
                print(f"[orchestrator] Run {run_id} counters not saved: {e!r}")

        await self.store.update_run(
            run_id,
            status=RunStatus.COMPLETED,
            completed_at=utc_now(),
            duration_ms=tracker.elapsed_ms(),
            current_story_id=None,
            current_story_name=None,
            **tracker.counters(),
        )
        report(tracker.progress(len(stories)))
        print(f"[orchestrator] Run {run_id} completed: {tracker.summary()}")
        return tracker

    async def _run_story(
        self,
        run_id: str,
        story: Story,
        environment: Environment,
        credentials: Mapping[str, Credentials],
    ) -> StoryOutcome:
        """Execute or skip one story and persist its result.

        Runner failures become failed outcomes; store errors propagate.
        """
        story_creds, skip_reason = gate(story, environment, credentials)
        if skip_reason:
            print(f"[orchestrator] Skipped story {story.id}: {skip_reason}")
            await self.store.insert_result(ResultRecord(
                run_id=run_id,
                story_id=story.id,
                journey_name=story.journey_name,
                story_name=story.name,
                passed=False,
                skipped=True,
                error=skip_reason,
            ))
            return StoryOutcome(story.id, story.label, "skipped", error=skip_reason)

        options = ExecutionOptions(
            retry_count=self.config.retry_count,
            screenshot_on_failure=self.config.screenshot_on_failure,
            credentials=story_creds,
            auth_config=environment.auth_config,
        )
        try:
            execution = self.runner.execute(story, environment.base_url, options)
            if self.config.story_timeout:
                result = await asyncio.wait_for(execution, self.config.story_timeout)
            else:
                result = await execution
        except Exception as e:
            if isinstance(e, asyncio.TimeoutError):
                error = f"Story timed out after {self.config.story_timeout}s"
            else:
                error = str(e)
            print(f"[orchestrator] Story {story.id} execution error: {e!r}")
            await self.store.insert_result(ResultRecord(
                run_id=run_id,
                story_id=story.id,
                journey_name=story.journey_name,
                story_name=story.name,
                passed=False,
                error=error,
            ))
            return StoryOutcome(story.id, story.label, "failed", error=error)

        await self.store.insert_result(ResultRecord.from_execution(run_id, story, result))
        return StoryOutcome(
            story.id,
            story.label,
            "passed" if result.passed else "failed",
            duration_ms=result.duration_ms,
            error=result.error or "",
        )
