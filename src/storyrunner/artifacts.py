"""Failure screenshot uploaders.

An uploader takes raw PNG bytes, the story id and a filesystem-safe
timestamp, stores the image under `<story_id>/<timestamp>.png` and returns
a URL. Uploaders never raise: any failure means no artifact.
"""

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

import httpx


class ArtifactUploader(Protocol):
    async def upload(self, image: bytes, story_id: str, timestamp: str) -> str | None: ...


def artifact_timestamp(now: datetime | None = None) -> str:
    """ISO-8601 UTC time with ':' and '.' replaced by '-'."""
    now = now or datetime.now(timezone.utc)
    iso = now.astimezone(timezone.utc).isoformat(timespec="milliseconds")
    iso = iso.replace("+00:00", "Z")
    return iso.replace(":", "-").replace(".", "-")


def artifact_path(story_id: str, timestamp: str) -> str:
    return f"{story_id}/{timestamp}.png"


class LocalArtifactStore:
    """Writes screenshots below a local directory."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    async def upload(self, image: bytes, story_id: str, timestamp: str) -> str | None:
        root = self.root.resolve()
        path = (root / artifact_path(story_id, timestamp)).resolve()
        if not path.is_relative_to(root):
            print(f"[artifacts] Refusing screenshot path outside {root}: {story_id!r}")
            return None
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(image)
        except OSError as e:
            print(f"[artifacts] Screenshot write failed: {e}")
            return None
        return path.as_uri()


class StorageBucketUploader:
    """Uploads screenshots to a Supabase-style storage bucket over HTTP."""

    def __init__(
        self,
        base_url: str,
        service_key: str,
        bucket: str = "screenshots",
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.service_key = service_key
        self.bucket = bucket
        self.timeout = timeout
        self._client = client

    def public_url(self, path: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{path}"

    async def upload(self, image: bytes, story_id: str, timestamp: str) -> str | None:
        path = artifact_path(story_id, timestamp)
        url = f"{self.base_url}/storage/v1/object/{self.bucket}/{path}"
        headers = {
            "Authorization": f"Bearer {self.service_key}",
            "apikey": self.service_key,
            "Content-Type": "image/png",
            "x-upsert": "true",
        }
        try:
            if self._client is not None:
                response = await self._client.post(url, content=image, headers=headers)
            else:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    response = await client.post(url, content=image, headers=headers)
            response.raise_for_status()
        except httpx.HTTPError as e:
            print(f"[artifacts] Screenshot upload failed: {e}")
            return None
        return self.public_url(path)
