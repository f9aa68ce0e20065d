"""HTTP surface of the call analysis backend."""

from __future__ import annotations

import json

import pytest
from fastapi.testclient import TestClient

from callscope.application.interfaces import OrganizationRepositoryInterface
from callscope.controllers.dependencies import (
    get_catalog,
    get_orchestrator,
    get_organization_repository,
)
from callscope.main import app
from callscope.utils import create_access_token

from conftest import VALID_ANALYSIS


class FakeOrganizationRepository(OrganizationRepositoryInterface):
    def __init__(self, organizations):
        self.organizations = {org.id: org for org in organizations}
        self.lookups = []

    async def get_by_id(self, organization_id):
        self.lookups.append(organization_id)
        return self.organizations.get(organization_id)


@pytest.fixture
def wired(make_orchestrator, catalog, organization):
    """Route the app's dependencies to in-process fakes."""

    orchestrator, backend, store, audit = make_orchestrator(
        {"model-a": json.dumps(VALID_ANALYSIS)}, max_requests=2
    )
    repository = FakeOrganizationRepository([organization])
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_organization_repository] = lambda: repository
    app.dependency_overrides[get_catalog] = lambda: catalog

    yield backend, store, repository

    app.dependency_overrides.clear()


@pytest.fixture
def client():
    return TestClient(app)


def _upload(client, data=None, headers=None, audio=b"fake-audio", content_type="audio/x-m4a"):
    return client.post(
        "/analysis/transcribe",
        data=data or {},
        files={"audio": ("call.m4a", audio, content_type)},
        headers=headers or {},
    )


def test_transcribe_returns_camel_case_report_with_record_id(client, wired):
    backend, store, _ = wired

    response = _upload(client, data={"call_type": "Sales"})

    assert response.status_code == 200
    payload = response.json()
    assert payload["recordId"] == "record-1"
    assert payload["modelUsed"] == "model-a"
    assert payload["coaching"]["overallScore"] == 64
    assert payload["coaching"]["redFlags"] == []
    assert payload["predictions"]["churnRisk"] == "medium"
    assert store.saved[0][1].mime_type == "audio/mp4"
    assert "--- SALES CALL ANALYSIS ---" in backend.prompts[0]


def test_bearer_subject_identifies_the_actor(client, wired):
    _, store, _ = wired
    token = create_access_token("user-77")

    response = _upload(client, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    saved_actor = store.saved[0][2]
    assert saved_actor.identifier == "user-77"
    assert saved_actor.is_authenticated


def test_forwarded_ip_identifies_anonymous_actor(client, wired):
    _, store, _ = wired

    response = _upload(
        client,
        headers={
            "Authorization": "Bearer not-a-token",
            "X-Forwarded-For": "203.0.113.9, 10.0.0.1",
        },
    )

    assert response.status_code == 200
    saved_actor = store.saved[0][2]
    assert saved_actor.identifier == "203.0.113.9"
    assert not saved_actor.is_authenticated


def test_organization_is_loaded_and_passed_through(client, wired):
    backend, store, repository = wired

    response = _upload(client, data={"organization_id": "org-1", "language": "Hindi"})

    assert response.status_code == 200
    assert repository.lookups == ["org-1"]
    assert store.saved[0][3].name == "Acme Health"
    assert "Hinglish (Hindi-English mix), or Hindi." in backend.prompts[0]


def test_unknown_organization_is_analysed_without_settings(client, wired):
    _, store, _ = wired

    response = _upload(client, data={"organization_id": "missing"})

    assert response.status_code == 200
    assert store.saved[0][3] is None


def test_empty_upload_is_rejected(client, wired):
    backend, _, _ = wired

    response = _upload(client, audio=b"")

    assert response.status_code == 400
    assert backend.calls == []


def test_rate_limit_maps_to_429_with_retry_after(client, wired):
    headers = {"X-Real-IP": "198.51.100.4"}
    assert _upload(client, headers=headers).status_code == 200
    assert _upload(client, headers=headers).status_code == 200

    response = _upload(client, headers=headers)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "60"
    assert response.json()["code"] == "admission_rejected"
    assert "debug" not in response.json()


def test_all_candidates_failing_maps_to_502(client, make_orchestrator, catalog):
    orchestrator, *_ = make_orchestrator({})
    app.dependency_overrides[get_orchestrator] = lambda: orchestrator
    app.dependency_overrides[get_organization_repository] = lambda: FakeOrganizationRepository([])
    try:
        response = _upload(client)
    finally:
        app.dependency_overrides.clear()

    assert response.status_code == 502
    body = response.json()
    assert body["code"] == "all_candidates_failed"
    assert "model-a" not in body["detail"]


def test_list_industries(client, wired):
    response = client.get("/analysis/industries")

    assert response.status_code == 200
    assert {item["id"] for item in response.json()} == {"general", "healthcare"}


def test_health_and_metrics(client):
    assert client.get("/health").json()["status"] == "healthy"

    metrics = client.get("/metrics")
    assert metrics.status_code == 200
    assert "analysis_results_total" in metrics.text


def test_embedded_user_id_takes_precedence_over_subject(client, wired):
    _, store, _ = wired
    token = create_access_token("someone@example.com", user_id="user-99")

    response = _upload(client, headers={"Authorization": f"Bearer {token}"})

    assert response.status_code == 200
    assert store.saved[0][2].identifier == "user-99"


def test_request_id_is_echoed(client):
    generated = client.get("/health")
    forwarded = client.get("/health", headers={"X-Request-ID": "req-123"})

    assert len(generated.headers["X-Request-ID"]) == 32
    assert forwarded.headers["X-Request-ID"] == "req-123"
