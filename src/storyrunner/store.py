"""Persistence contract for run progress and story results."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from storyrunner.models import ResultRecord, Run, RunStatus


class RunStore(Protocol):
    async def get_run_status(self, run_id: str) -> RunStatus | None: ...

    async def update_run(self, run_id: str, **fields: Any) -> None: ...

    async def insert_result(self, record: ResultRecord) -> None: ...

    async def update_story_last_run(self, story_id: str, result: str, at: str) -> None: ...


@dataclass
class InMemoryRunStore:
    """Dict-backed RunStore for the local worker and tests."""

    runs: dict[str, Run] = field(default_factory=dict)
    results: list[ResultRecord] = field(default_factory=list)
    story_last_run: dict[str, tuple[str, str]] = field(default_factory=dict)

    def add_run(self, run_id: str) -> Run:
        run = Run(id=run_id)
        self.runs[run_id] = run
        return run

    async def get_run_status(self, run_id: str) -> RunStatus | None:
        run = self.runs.get(run_id)
        return run.status if run else None

    async def update_run(self, run_id: str, **fields: Any) -> None:
        run = self.runs.get(run_id)
        if run is None:
            raise KeyError(f"Run not found: {run_id}")
        for name, value in fields.items():
            if not hasattr(run, name):
                raise AttributeError(f"Run has no field {name!r}")
            setattr(run, name, value)

    async def insert_result(self, record: ResultRecord) -> None:
        self.results.append(record)

    async def update_story_last_run(self, story_id: str, result: str, at: str) -> None:
        self.story_last_run[story_id] = (result, at)
