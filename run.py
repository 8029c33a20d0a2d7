"""Entry point: uv run run.py job.json"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
import uuid
from pathlib import Path

# Ensure src/ is on the path for direct execution
sys.path.insert(0, str(Path(__file__).parent / "src"))

from dotenv import load_dotenv


def load_job(path: Path) -> dict:
    with path.open(encoding="utf-8") as f:
        return json.load(f)


async def main(job_path: Path, headless: bool = True, artifacts_dir: str | None = None) -> int:
    load_dotenv()

    from storyrunner.artifacts import LocalArtifactStore, StorageBucketUploader
    from storyrunner.browser import BrowserPool
    from storyrunner.config import RunnerConfig
    from storyrunner.crypto import credentials_by_role
    from storyrunner.models import Credentials, Environment, Story
    from storyrunner.orchestrator import RunOrchestrator
    from storyrunner.store import InMemoryRunStore
    from storyrunner.story import StoryRunner

    config = RunnerConfig.from_env()
    config.headless = headless
    if artifacts_dir:
        config.artifact_dir = artifacts_dir

    job = load_job(job_path)
    environment = Environment.from_dict(job["environment"])
    stories = [Story.from_dict(s) for s in job.get("stories", [])]
    credentials = {
        role: Credentials(username=c["username"], password=c["password"])
        for role, c in job.get("credentials", {}).items()
    }
    if job.get("test_users"):
        credentials.update(credentials_by_role(job["test_users"], config.encryption_key))

    if config.storage_url and config.storage_key:
        uploader = StorageBucketUploader(config.storage_url, config.storage_key, config.storage_bucket)
    else:
        uploader = LocalArtifactStore(config.artifact_dir or "artifacts")

    store = InMemoryRunStore()
    run_id = job.get("run_id") or str(uuid.uuid4())
    store.add_run(run_id)

    def on_progress(p) -> None:
        current = f" -> {p.current}" if p.current else ""
        print(f"[run] {p.completed}/{p.total} passed={p.passed} failed={p.failed} skipped={p.skipped}{current}")

    async with BrowserPool(headless=config.headless) as browser:
        orchestrator = RunOrchestrator(StoryRunner(browser, uploader), store, config)
        tracker = await orchestrator.spawn(run_id, stories, environment, credentials, on_progress)

    tracker.print_report()
    return 0 if tracker.failed == 0 else 1


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Run UI test stories against an environment")
    parser.add_argument("job", type=Path, help="JSON file with environment, stories and credentials")
    parser.add_argument("--no-headless", action="store_true", help="Run with visible browser")
    parser.add_argument("--artifacts-dir", type=str, default=None, help="Directory for failure screenshots")
    args = parser.parse_args()

    exit_code = asyncio.run(
        main(args.job, headless=not args.no_headless, artifacts_dir=args.artifacts_dir)
    )
    sys.exit(exit_code)
