"""Tests for POST /migrate."""

import time

from fastapi import FastAPI
from fastapi.testclient import TestClient

from tunemigrate.api.dependencies import (
    get_migration_orchestrator,
    get_progress_store,
)
from tunemigrate.application.services.progress_tracker import (
    ProgressRecord,
    ProgressStore,
)
from tunemigrate.application.workers.migration_runner import CancellationToken
from tunemigrate.domain.value_objects import MigrationRequest


class RecordingOrchestrator:
    def __init__(self) -> None:
        self.requests: list[MigrationRequest] = []

    async def run(
        self,
        request: MigrationRequest,
        progress: ProgressRecord,
        cancel_token: CancellationToken | None = None,
    ) -> None:
        self.requests.append(request)
        progress.start("done")
        progress.finish()


def _wait_until(predicate, timeout: float = 2.0) -> bool:
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return False


class TestStartMigration:
    def test_accepted_run_returns_uuid_and_runs_in_background(
        self, app: FastAPI, authed_client: TestClient
    ) -> None:
        orchestrator = RecordingOrchestrator()
        app.dependency_overrides[get_migration_orchestrator] = lambda: orchestrator

        response = authed_client.post(
            "/migrate", json={"options": {"tracks": True, "orderedWrites": True}}
        )

        assert response.status_code == 202
        body = response.json()
        assert body["message"] == "Migration started"
        store: ProgressStore = app.state.progress_store
        record = store.get(body["uuid"])
        assert record is not None
        assert _wait_until(lambda: record.finished)
        request = orchestrator.requests[0]
        assert request.options.migrate_tracks is True
        assert request.options.use_ordered_writes is True
        assert request.source_token == "spotify-token"
        assert request.destination_token == "tidal-token"

    def test_unsupported_option_is_400_plain_text(
        self, app: FastAPI, authed_client: TestClient
    ) -> None:
        response = authed_client.post(
            "/migrate", json={"options": {"tracks": True, "albums": True}}
        )

        assert response.status_code == 400
        assert response.headers["content-type"].startswith("text/plain")
        assert "albums" in response.text
        assert len(app.state.progress_store) == 0

    def test_unknown_option_is_400(self, authed_client: TestClient) -> None:
        response = authed_client.post("/migrate", json={"options": {"videos": True}})

        assert response.status_code == 400
        assert "videos" in response.text

    def test_missing_cookie_is_401(self, client: TestClient) -> None:
        response = client.post("/migrate", json={"options": {"tracks": True}})

        assert response.status_code == 401
        assert response.json() == {"message": "No Spotify access token"}

    def test_malformed_body_is_422(self, authed_client: TestClient) -> None:
        response = authed_client.post("/migrate", json={"options": "everything"})

        assert response.status_code == 422
        assert response.json()["message"] == "Invalid request body"

    def test_allocation_failure_is_500(
        self, app: FastAPI, authed_client: TestClient
    ) -> None:
        app.dependency_overrides[get_progress_store] = lambda: ProgressStore(
            max_records=0
        )

        response = authed_client.post("/migrate", json={"options": {"tracks": True}})

        assert response.status_code == 500
        assert "message" in response.json()

    def test_full_run_against_mock_providers(
        self, app: FastAPI, authed_client: TestClient, fake_tidal
    ) -> None:
        fake_tidal.catalog = {"ISRC1": "t1", "ISRC2": "t2"}

        response = authed_client.post("/migrate", json={"options": {"tracks": True}})

        record = app.state.progress_store.get(response.json()["uuid"])
        assert _wait_until(lambda: record.finished)
        assert record.text == "Migration finished"
        assert fake_tidal.favorites == ["t2", "t1"]
