"""S3 storage helpers for call recordings."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from botocore.exceptions import BotoCoreError, ClientError
from fastapi.concurrency import run_in_threadpool

from callscope.config.settings import settings
from callscope.pipelines.analysis.ingestion import sanitize_filename
from callscope.services.aws import create_s3_client


class StorageError(RuntimeError):
    """Raised when S3 recording persistence fails."""


def build_recording_key(
    organization_id: Optional[str],
    actor_id: str,
    filename: Optional[str],
    *,
    now: Optional[datetime] = None,
) -> str:
    """``{organization}/{actor}/{timestamp}_{filename}`` with unsafe characters replaced."""

    moment = now or datetime.now(timezone.utc)
    timestamp = int(moment.timestamp() * 1000)
    organization = sanitize_filename(organization_id, fallback="no-organization")
    actor = sanitize_filename(actor_id, fallback="anonymous")
    return f"{organization}/{actor}/{timestamp}_{sanitize_filename(filename)}"


class RecordingStorage:
    """Upload raw call recordings to the configured bucket."""

    def __init__(self, client: Any = None, bucket: Optional[str] = None) -> None:
        self._client = client
        self._bucket = bucket if bucket is not None else settings.s3.bucket_name

    def _get_client(self) -> Any:
        if self._client is None:
            self._client = create_s3_client()
        return self._client

    async def upload_recording(
        self,
        audio_bytes: bytes,
        *,
        organization_id: Optional[str],
        actor_id: str,
        filename: Optional[str],
        content_type: str,
    ) -> str:
        """Upload the recording and return its object key."""

        if not audio_bytes:
            raise StorageError("Audio payload for upload was empty.")
        if not self._bucket:
            raise StorageError("S3 bucket name is not configured.")

        object_key = build_recording_key(organization_id, actor_id, filename)
        try:
            await run_in_threadpool(
                self._get_client().put_object,
                Bucket=self._bucket,
                Key=object_key,
                Body=audio_bytes,
                ContentType=content_type,
            )
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Failed to upload call recording: {exc}") from exc

        return object_key


__all__ = ["RecordingStorage", "StorageError", "build_recording_key"]
