"""
Integration tests for the REST API using FastAPI TestClient.

Each test gets its own SQLite file; the app lifespan applies the schema
on startup, so requests go router → ops → engine → repository for real.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from rookie_guide.api.app import create_app
from rookie_guide.api.settings import GuideAPISettings

ALICE = {"X-User-ID": "alice"}
BOB = {"X-User-ID": "bob"}

TEMPLATE_BODY = {
    "title": "Moving to Beijing",
    "description": "Everything a newcomer needs in the first month",
    "location_tag": "CN-BJ",
    "steps": [
        {"title": "Get a SIM card", "description": "Bring your passport"},
        {"title": "Open a bank account"},
        {"title": "Register residence"},
    ],
}


def _settings(tmp_path, **overrides) -> GuideAPISettings:
    return GuideAPISettings(
        database_url=f"sqlite:///{tmp_path / 'test.db'}",
        data_dir=str(tmp_path),
        **overrides,
    )


@pytest.fixture()
def client(tmp_path):
    app = create_app(settings=_settings(tmp_path))
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def template_id(client) -> str:
    resp = client.post("/api/templates", json=TEMPLATE_BODY, headers=ALICE)
    assert resp.status_code == 201
    return resp.json()["data"]["id"]


@pytest.fixture()
def checklist_id(client, template_id) -> str:
    resp = client.post("/api/checklists", json={"template_id": template_id}, headers=ALICE)
    assert resp.status_code == 201
    return resp.json()["data"]["id"]


def _put_step(client, checklist_id, body, headers=ALICE, **params):
    return client.put(
        f"/api/checklists/{checklist_id}/steps", json=body, headers=headers, params=params
    )


# ── Health ────────────────────────────────────────────────────────────


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")

        assert resp.status_code == 200
        body = resp.json()
        assert body["status"] == "healthy"
        assert body["checks"]["database"]["status"] == "healthy"

    def test_unreachable_database_is_503(self, client, monkeypatch):
        from rookie_guide.api.routers import health

        def _down(settings):
            raise OSError("disk gone")

        monkeypatch.setattr(health, "_select_one", _down)

        resp = client.get("/health")

        assert resp.status_code == 503
        check = resp.json()["checks"]["database"]
        assert check["status"] == "unhealthy"
        assert check["error"] == "disk gone"

    def test_liveness(self, client):
        assert client.get("/health/live").json() == {"status": "alive"}


# ── Templates ─────────────────────────────────────────────────────────


class TestTemplates:
    def test_create_and_get(self, client, template_id):
        resp = client.get(f"/api/templates/{template_id}")

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["created_by"] == "alice"
        assert [s["order"] for s in data["steps"]] == [0, 1, 2]
        assert "elapsed_ms" in resp.json()

    def test_create_requires_user(self, client):
        resp = client.post("/api/templates", json=TEMPLATE_BODY)

        assert resp.status_code == 401
        assert resp.headers["content-type"].startswith("application/problem+json")
        assert resp.json()["detail"] == "UNAUTHORIZED"

    def test_create_invalid_location(self, client):
        resp = client.post(
            "/api/templates", json={**TEMPLATE_BODY, "location_tag": "US"}, headers=ALICE
        )

        assert resp.status_code == 400
        body = resp.json()
        assert body["detail"] == "VALIDATION_FAILED"
        assert body["errors"][0]["field"] == "location_tag"

    def test_create_missing_field(self, client):
        body = {k: v for k, v in TEMPLATE_BODY.items() if k != "steps"}

        resp = client.post("/api/templates", json=body, headers=ALICE)

        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "steps"

    def test_create_dry_run(self, client):
        resp = client.post("/api/templates?dry_run=true", json=TEMPLATE_BODY, headers=ALICE)

        assert resp.status_code == 201
        assert resp.json()["data"]["dry_run"] is True
        assert client.get("/api/templates").json()["data"] == []

    def test_list_filter(self, client, template_id):
        client.post("/api/templates", json={**TEMPLATE_BODY, "location_tag": "CN-SH"}, headers=ALICE)

        resp = client.get("/api/templates", params={"location_tag": "CN-BJ"})

        assert [t["id"] for t in resp.json()["data"]] == [template_id]
        assert resp.json()["data"][0]["step_count"] == 3

    def test_get_missing(self, client):
        resp = client.get("/api/templates/nope")

        assert resp.status_code == 404
        assert resp.json()["instance"] == "/api/templates/nope"

    def test_update_by_author(self, client, template_id):
        resp = client.patch(
            f"/api/templates/{template_id}", json={"title": "Settling in"}, headers=ALICE
        )

        assert resp.status_code == 200
        assert resp.json()["data"]["title"] == "Settling in"

    def test_update_by_other_user(self, client, template_id):
        resp = client.patch(f"/api/templates/{template_id}", json={"title": "x"}, headers=BOB)

        assert resp.status_code == 403


# ── Checklists ────────────────────────────────────────────────────────


class TestChecklists:
    def test_fork(self, client, template_id):
        resp = client.post("/api/checklists", json={"template_id": template_id}, headers=ALICE)

        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["user_id"] == "alice"
        assert data["progress"] == {"completed_count": 0, "total_count": 3, "percentage": 0.0}

    def test_fork_unknown_template(self, client):
        resp = client.post("/api/checklists", json={"template_id": "nope"}, headers=ALICE)

        assert resp.status_code == 404

    def test_fork_requires_user(self, client, template_id):
        resp = client.post("/api/checklists", json={"template_id": template_id})

        assert resp.status_code == 401

    def test_update_step(self, client, checklist_id):
        resp = _put_step(client, checklist_id, {"step_index": 0, "completed": True})

        assert resp.status_code == 200
        data = resp.json()["data"]
        assert data["steps"][0]["completed"] is True
        assert data["steps"][0]["completed_at"] is not None
        assert data["progress"]["completed_count"] == 1

    def test_update_step_is_idempotent(self, client, checklist_id):
        first = _put_step(client, checklist_id, {"step_index": 1, "completed": True}).json()
        second = _put_step(client, checklist_id, {"step_index": 1, "completed": True}).json()

        assert second["data"] == first["data"]

    def test_update_step_out_of_range(self, client, checklist_id):
        resp = _put_step(client, checklist_id, {"step_index": 3, "completed": True})

        assert resp.status_code == 400
        assert resp.json()["errors"][0]["field"] == "step_index"

    @pytest.mark.parametrize(
        "body",
        [
            {"step_index": 0, "completed": "true"},
            {"step_index": 0, "completed": 1},
            {"step_index": "0", "completed": True},
            {"step_index": 0},
        ],
    )
    def test_update_step_rejects_loose_types(self, client, checklist_id, body):
        resp = _put_step(client, checklist_id, body)

        assert resp.status_code == 400
        assert resp.json()["detail"] == "VALIDATION_FAILED"

    def test_update_step_other_user(self, client, checklist_id):
        resp = _put_step(client, checklist_id, {"step_index": 0, "completed": True}, headers=BOB)

        assert resp.status_code == 403

    def test_update_step_dry_run(self, client, checklist_id):
        resp = _put_step(client, checklist_id, {"step_index": 0, "completed": True}, dry_run="true")

        assert resp.json()["data"]["dry_run"] is True
        stored = client.get(f"/api/checklists/{checklist_id}", headers=ALICE).json()["data"]
        assert stored["steps"][0]["completed"] is False

    def test_list(self, client, template_id, checklist_id):
        client.post("/api/checklists", json={"template_id": template_id}, headers=BOB)

        resp = client.get("/api/checklists", headers=ALICE)

        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()["data"]] == [checklist_id]

    def test_get_other_user(self, client, checklist_id):
        assert client.get(f"/api/checklists/{checklist_id}", headers=BOB).status_code == 403

    def test_delete_then_404(self, client, checklist_id):
        resp = client.delete(f"/api/checklists/{checklist_id}", headers=ALICE)

        assert resp.status_code == 204
        assert resp.content == b""
        assert client.get(f"/api/checklists/{checklist_id}", headers=ALICE).status_code == 404
        assert client.delete(f"/api/checklists/{checklist_id}", headers=ALICE).status_code == 404

    def test_blank_user_header_is_anonymous(self, client):
        assert client.get("/api/checklists", headers={"X-User-ID": "  "}).status_code == 401


# ── Middleware ────────────────────────────────────────────────────────


class TestMiddleware:
    def test_request_id_echoed(self, client):
        resp = client.get("/api/templates", headers={"X-Request-ID": "req-123"})

        assert resp.headers["X-Request-ID"] == "req-123"

    def test_request_id_generated(self, client):
        assert client.get("/api/templates").headers["X-Request-ID"]

    def test_process_time_header(self, client):
        assert float(client.get("/api/templates").headers["X-Process-Time-Ms"]) >= 0


class TestApiKey:
    @pytest.fixture()
    def keyed_client(self, tmp_path):
        app = create_app(settings=_settings(tmp_path, api_key="s3cret"))
        with TestClient(app) as c:
            yield c

    def test_missing_key_rejected(self, keyed_client):
        resp = keyed_client.get("/api/templates")

        assert resp.status_code == 401
        assert resp.json()["title"] == "Unauthorized"

    def test_header_key_accepted(self, keyed_client):
        assert keyed_client.get("/api/templates", headers={"X-API-Key": "s3cret"}).status_code == 200

    def test_query_key_accepted(self, keyed_client):
        assert keyed_client.get("/api/templates?api_key=s3cret").status_code == 200

    def test_health_bypasses_key(self, keyed_client):
        assert keyed_client.get("/health/live").status_code == 200


def test_startup_fails_on_unsupported_database():
    app = create_app(settings=GuideAPISettings(database_url="postgresql://db/guide"))

    with pytest.raises(Exception):
        with TestClient(app):
            pass


class TestInMemoryDatabase:
    def test_requests_share_one_database(self):
        app = create_app(settings=GuideAPISettings(database_url=":memory:"))

        with TestClient(app) as client:
            created = client.post("/api/templates", json=TEMPLATE_BODY, headers=ALICE)
            assert created.status_code == 201
            template_id = created.json()["data"]["id"]

            forked = client.post(
                "/api/checklists", json={"template_id": template_id}, headers=ALICE
            )
            assert forked.status_code == 201
            checklist_id = forked.json()["data"]["id"]

            assert _put_step(client, checklist_id, {"step_index": 0, "completed": True}).status_code == 200
            listed = client.get("/api/checklists", headers=ALICE).json()["data"]

        assert [item["id"] for item in listed] == [checklist_id]
        assert listed[0]["progress"]["completed_count"] == 1
        assert app.state.shared_conn is None

    def test_file_database_keeps_per_request_connections(self, client):
        assert client.app.state.shared_conn is None
