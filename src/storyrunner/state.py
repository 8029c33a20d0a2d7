"""Run tracker: pass/fail/skip counters, timing and the console report."""

from __future__ import annotations

import time
from dataclasses import dataclass, field
from datetime import datetime, timezone

from storyrunner.models import ProgressUpdate


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass
class StoryOutcome:
    """Final status of one story in a run."""

    story_id: str
    name: str
    status: str  # passed, failed, skipped
    duration_ms: int = 0
    error: str = ""


@dataclass
class RunTracker:
    """Tracks progress through a run's stories."""

    total: int = 0
    passed: int = 0
    failed: int = 0
    skipped: int = 0
    outcomes: list[StoryOutcome] = field(default_factory=list)
    start_time: float = field(default_factory=time.time)
    started_at: str = field(default_factory=utc_now)

    @property
    def completed(self) -> int:
        return self.passed + self.failed + self.skipped

    def elapsed_ms(self) -> int:
        return int((time.time() - self.start_time) * 1000)

    def record(self, outcome: StoryOutcome) -> None:
        match outcome.status:
            case "passed":
                self.passed += 1
            case "failed":
                self.failed += 1
            case "skipped":
                self.skipped += 1
            case _:
                raise ValueError(f"Unknown story status: {outcome.status}")
        self.outcomes.append(outcome)

    def counters(self) -> dict[str, int]:
        return {
            "stories_passed": self.passed,
            "stories_failed": self.failed,
            "stories_skipped": self.skipped,
        }

    def progress(self, completed: int, current: str | None = None) -> ProgressUpdate:
        return ProgressUpdate(
            total=self.total,
            completed=completed,
            passed=self.passed,
            failed=self.failed,
            skipped=self.skipped,
            current=current,
        )

    def summary(self) -> dict:
        return {
            "total": self.total,
            "passed": self.passed,
            "failed": self.failed,
            "skipped": self.skipped,
            "total_time": round(self.elapsed_ms() / 1000, 1),
        }

    def print_report(self) -> None:
        print("\n" + "=" * 60)
        print("  RUN RESULTS")
        print("=" * 60)
        for o in self.outcomes:
            err_info = f" err={o.error[:80]}" if o.error else ""
            print(f"  [{o.status.upper():7s}] {o.duration_ms / 1000:5.1f}s {o.name}{err_info}")
        print("-" * 60)
        print(f"  Passed: {self.passed}/{self.total}")
        print(f"  Failed: {self.failed}  Skipped: {self.skipped}")
        print(f"  Total time: {self.elapsed_ms() / 1000:.1f}s")
        print("=" * 60 + "\n")
