"""Persistence and storage adapters, exercised without a database or S3."""

from __future__ import annotations

import json
from datetime import datetime, timezone

import pytest
from botocore.exceptions import ClientError
from sqlalchemy import Column, Integer, MetaData, Table

from callscope.database import bind_schema, resolve_schema
from callscope.models.organization import Organization
from callscope.pipelines.analysis import normalize_audio, normalize_result
from callscope.services.analysis_repository import SqlAlchemyAnalysisStore, build_record
from callscope.services.organization_repository import to_profile
from callscope.services.storage import RecordingStorage, StorageError, build_recording_key

from conftest import VALID_ANALYSIS


class FakeS3Client:
    def __init__(self, error=None):
        self.error = error
        self.objects = []

    def put_object(self, **kwargs):
        if self.error is not None:
            raise self.error
        self.objects.append(kwargs)


def test_corrupt_ai_settings_resolve_to_empty_settings():
    row = Organization(
        id="org-1",
        name="Acme",
        industry="banking",
        ai_settings={"scoringPreferences": {"strictness": "brutal"}},
    )

    profile = to_profile(row)

    assert profile.industry == "banking"
    assert profile.ai_settings.scoring_preferences.strictness is None
    assert profile.ai_settings.compliance_scripts == []


def test_ai_settings_document_is_read_in_camel_case():
    row = Organization(
        id="org-2",
        name="Acme",
        industry=None,
        ai_settings={"complianceScripts": ["Disclose recording"], "products": "Gold card"},
    )

    profile = to_profile(row)

    assert profile.industry == "general"
    assert profile.ai_settings.compliance_scripts == ["Disclose recording"]
    assert profile.ai_settings.products == ["Gold card"]


def test_build_record_copies_summary_fields(actor, organization):
    analysis = normalize_result(json.dumps(VALID_ANALYSIS), "model-a")
    audio = normalize_audio(b"abc", "audio/wav", "call.wav")

    record = build_record(analysis, audio, actor, organization, file_path="org-1/user-42/1_call.wav")

    assert record.organization_id == "org-1"
    assert record.uploaded_by == "user-42"
    assert record.file_size_bytes == 3
    assert record.mime_type == "audio/wav"
    assert record.overall_score == 64
    assert record.sentiment == "Positive"
    assert record.model_used == "model-a"
    assert record.analysis_json["coaching"]["weaknesses"] == ["No needs discovery", "Rushed close"]
    assert record.file_path == "org-1/user-42/1_call.wav"


def test_recording_key_layout():
    moment = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)

    key = build_recording_key(None, "203.0.113.9", "my call?.mp3", now=moment)

    assert key == f"no-organization/203.0.113.9/{int(moment.timestamp() * 1000)}_my_call_.mp3"


async def test_upload_recording_puts_object():
    client = FakeS3Client()
    storage = RecordingStorage(client=client, bucket="recordings")

    key = await storage.upload_recording(
        b"audio",
        organization_id="org-1",
        actor_id="user-42",
        filename="call.mp3",
        content_type="audio/mpeg",
    )

    assert key.startswith("org-1/user-42/")
    assert client.objects[0]["Bucket"] == "recordings"
    assert client.objects[0]["ContentType"] == "audio/mpeg"


async def test_upload_failure_raises_storage_error():
    error = ClientError({"Error": {"Code": "AccessDenied", "Message": "denied"}}, "PutObject")
    storage = RecordingStorage(client=FakeS3Client(error=error), bucket="recordings")

    with pytest.raises(StorageError):
        await storage.upload_recording(
            b"audio",
            organization_id=None,
            actor_id="user-42",
            filename=None,
            content_type="audio/mpeg",
        )


async def test_failed_upload_does_not_block_analysis_store(actor):
    class FailingRecordings:
        async def upload_recording(self, *args, **kwargs):
            raise StorageError("bucket missing")

    store = SqlAlchemyAnalysisStore(session_factory=None, recordings=FailingRecordings())
    audio = normalize_audio(b"abc", "audio/wav", "call.wav")

    assert await store._upload(audio, actor, None) is None


def test_schema_name_must_be_a_plain_identifier():
    assert resolve_schema(" analytics ") == "analytics"
    assert resolve_schema("") is None
    assert resolve_schema('bad"; DROP TABLE x; --') is None


def test_bind_schema_moves_unqualified_tables():
    metadata = MetaData()
    Table("calls", metadata, Column("id", Integer, primary_key=True))
    Table("other", metadata, Column("id", Integer, primary_key=True), schema="kept")

    bind_schema(metadata, "analytics")

    assert metadata.tables["calls"].schema == "analytics"
    assert metadata.tables["kept.other"].schema == "kept"
