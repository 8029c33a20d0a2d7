"""Runner configuration, read from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class RunnerConfig:
    """Configuration for the story execution worker."""

    headless: bool = True
    retry_count: int = 3
    screenshot_on_failure: bool = True
    story_timeout: float | None = None  # seconds; None disables
    encryption_key: str | None = None
    storage_url: str | None = None
    storage_key: str | None = None
    storage_bucket: str = "screenshots"
    artifact_dir: str | None = None

    @classmethod
    def from_env(cls) -> "RunnerConfig":
        timeout = os.environ.get("STORY_TIMEOUT")
        return cls(
            headless=os.environ.get("HEADLESS", "true").lower() not in ("0", "false", "no"),
            retry_count=int(os.environ.get("STORY_RETRY_COUNT", "3")),
            story_timeout=float(timeout) if timeout else None,
            encryption_key=os.environ.get("ENCRYPTION_KEY"),
            storage_url=os.environ.get("SUPABASE_URL") or os.environ.get("NEXT_PUBLIC_SUPABASE_URL"),
            storage_key=os.environ.get("SUPABASE_SERVICE_ROLE_KEY"),
            storage_bucket=os.environ.get("SCREENSHOT_BUCKET", "screenshots"),
            artifact_dir=os.environ.get("ARTIFACT_DIR"),
        )
