"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

import studio.src.routes.runs as runs_routes
from studio.src.db.database import get_db
from studio.src.main import app
from studio.src.services.workspace import Workspace, get_workspace, sample_pipelines

class FakeSession:
    """Stands in for the database session used by the save endpoint."""

    def __init__(self):
        self.added = []
        self.commits = 0

    async def get(self, model, key):
        return None

    def add(self, obj):
        self.added.append(obj)

    async def commit(self):
        self.commits += 1

@pytest.fixture
def workspace():
    return Workspace(sample_pipelines())

@pytest.fixture
def session():
    return FakeSession()

@pytest.fixture
def client(workspace, session, monkeypatch):
    async def fake_db():
        yield session

    published = {}

    async def fake_set_live_status(pipeline_id, run_id, status):
        published[pipeline_id] = {"run_id": run_id, "status": status}

    async def fake_get_live_status(pipeline_id):
        return published.get(pipeline_id)

    monkeypatch.setattr(runs_routes, "set_live_status", fake_set_live_status)
    monkeypatch.setattr(runs_routes, "get_live_status", fake_get_live_status)

    app.dependency_overrides[get_workspace] = lambda: workspace
    app.dependency_overrides[get_db] = fake_db
    yield TestClient(app)
    app.dependency_overrides.clear()

def open_java_draft(client):
    response = client.post("/api/editor/drafts", json={"pipeline_id": "p-001"})
    assert response.status_code == 201
    return response.json()

def test_health(client):
    response = client.get("/health")
    assert response.json()["status"] == "healthy"

def test_list_pipelines(client):
    response = client.get("/api/pipelines")
    assert response.status_code == 200
    assert [p["id"] for p in response.json()] == ["p-001", "p-002"]

def test_get_pipeline(client):
    response = client.get("/api/pipelines/p-001")
    assert response.status_code == 200
    assert [s["id"] for s in response.json()["stages"]] == ["stage-test", "stage-build", "stage-deploy"]

def test_get_missing_pipeline(client):
    assert client.get("/api/pipelines/p-404").status_code == 404

def test_list_templates(client):
    response = client.get("/api/pipelines/templates")
    assert response.status_code == 200
    assert response.json()[0] == {"name": "Java", "desc": "Java Spring Boot", "icon": "☕", "stages": 3}

def test_draft_from_template(client):
    response = client.post("/api/editor/drafts", json={"template": "go"})
    assert response.status_code == 201

    draft = response.json()
    assert draft["id"].startswith("p-new-")
    assert draft["name"] == "My Go Pipeline"
    assert [s["name"] for s in draft["stages"]] == ["Build", "Test"]

def test_draft_requires_source(client):
    assert client.post("/api/editor/drafts", json={}).status_code == 400

def test_serial_insert_and_layout(client):
    open_java_draft(client)
    base = "/api/editor/drafts/p-001/stages/stage-test"

    response = client.post(f"{base}/tasks/job-scan/serial", json={"name": "Report", "side": "after"})
    assert response.status_code == 201
    new_id = response.json()["id"]
    assert response.json()["dependencies"] == ["job-scan"]

    layout = client.get(f"{base}/layout").json()
    assert layout["chains"] == [["job-scan", new_id], ["job-unit"]]
    assert layout["min_width"] == 496
    assert layout["width"] == 496

def test_delete_task(client):
    open_java_draft(client)
    base = "/api/editor/drafts/p-001/stages/stage-test"

    assert client.delete(f"{base}/tasks/job-unit").status_code == 204
    assert client.delete(f"{base}/tasks/job-unit").status_code == 404

    draft = client.get("/api/editor/drafts/p-001").json()
    assert [t["id"] for t in draft["stages"][0]["jobs"]] == ["job-scan"]

def test_invalid_dependency(client):
    open_java_draft(client)
    response = client.patch(
        "/api/editor/drafts/p-001/stages/stage-test/tasks/job-unit",
        json={"dependencies": ["job-deploy"]},
    )
    assert response.status_code == 400

def test_move_task_between_stages(client):
    open_java_draft(client)
    client.patch(
        "/api/editor/drafts/p-001/stages/stage-test/tasks/job-unit",
        json={"dependencies": ["job-scan"]},
    )
    response = client.post(
        "/api/editor/drafts/p-001/stages/stage-test/tasks/job-unit/move",
        json={"target_stage_id": "stage-build"},
    )
    assert response.status_code == 200
    assert response.json()["dependencies"] == []

def test_resize_and_auto_fit(client):
    open_java_draft(client)
    base = "/api/editor/drafts/p-001/stages/stage-build"

    assert client.post(f"{base}/resize", json={"width": 10}).json()["width"] == 250
    assert client.post(f"{base}/auto-fit").json()["width"] == 320

def test_stage_crud(client):
    open_java_draft(client)
    response = client.post("/api/editor/drafts/p-001/stages", json={})
    assert response.status_code == 201
    stage_id = response.json()["id"]
    assert response.json()["name"] == "New Stage"

    response = client.patch(f"/api/editor/drafts/p-001/stages/{stage_id}", json={"name": "Release"})
    assert response.json()["name"] == "Release"

    assert client.delete(f"/api/editor/drafts/p-001/stages/{stage_id}").status_code == 204
    assert client.delete(f"/api/editor/drafts/p-001/stages/{stage_id}").status_code == 404

def test_edits_stay_in_draft_until_saved(client, workspace, session):
    open_java_draft(client)
    client.patch("/api/editor/drafts/p-001", json={"name": "Renamed"})

    assert client.get("/api/pipelines/p-001").json()["name"] == "My-Java-Pipeline-01"

    response = client.post("/api/editor/drafts/p-001/save")
    assert response.status_code == 200
    assert client.get("/api/pipelines/p-001").json()["name"] == "Renamed"
    assert session.commits == 1
    assert session.added[0].name == "Renamed"

def test_missing_draft(client):
    assert client.get("/api/editor/drafts/p-002").status_code == 404

def test_run_lifecycle(client):
    response = client.post("/api/pipelines/p-001/runs")
    assert response.status_code == 200
    assert response.json()["status"] == "running"
    assert response.json()["run_id"] == 3

    assert client.post("/api/pipelines/p-001/runs").status_code == 409

    client.post("/api/pipelines/p-001/runs/advance", json={"failed_task_ids": []})
    response = client.post("/api/pipelines/p-001/runs/advance", json={"failed_task_ids": ["job-build-java"]})
    assert response.json()["status"] == "failed"

    status = client.get("/api/pipelines/p-001/runs/status").json()
    assert status["live_status"] == {"run_id": 3, "status": "failed"}
    assert status["stages"][2]["tasks"] == {"job-deploy": "skipped"}
    assert status["stages"][0]["summary"]["success"] == 2

def test_reopen_draft_keeps_edits(client):
    open_java_draft(client)
    client.patch("/api/editor/drafts/p-001", json={"name": "Unsaved"})

    assert open_java_draft(client)["name"] == "Unsaved"

def test_template_draft_stage_fits_chain(client):
    draft = client.post("/api/editor/drafts", json={"template": "java"}).json()
    for stage in draft["stages"]:
        layout = client.get(f"/api/editor/drafts/{draft['id']}/stages/{stage['id']}/layout").json()
        assert layout["width"] >= layout["min_width"]

def test_sources(client):
    draft = open_java_draft(client)
    assert [s["id"] for s in draft["sources"]] == ["src-1"]

    response = client.post(
        "/api/editor/drafts/p-001/sources",
        json={"type": "Github", "repo": "acme/app", "branch": "main"},
    )
    assert response.status_code == 201
    source = response.json()
    assert source["name"] == "acme/app"
    assert source["branch"] == "main"

    assert client.delete("/api/editor/drafts/p-001/sources/src-1").status_code == 204
    assert client.delete("/api/editor/drafts/p-001/sources/src-1").status_code == 404

    sources = client.get("/api/editor/drafts/p-001").json()["sources"]
    assert [s["id"] for s in sources] == [source["id"]]

def test_unknown_source_type(client):
    open_java_draft(client)
    response = client.post("/api/editor/drafts/p-001/sources", json={"type": "Subversion"})
    assert response.status_code == 400

def test_run_history(client):
    history = client.get("/api/pipelines/p-001/runs").json()
    assert [r["run_id"] for r in history] == [2, 1]

    client.post("/api/pipelines/p-001/runs", json={"message": "Merge pull request #42"})
    history = client.get("/api/pipelines/p-001/runs").json()
    assert history[0]["run_id"] == 3
    assert history[0]["status"] == "running"
    assert history[0]["message"] == "Merge pull request #42"

    for _ in range(3):
        client.post("/api/pipelines/p-001/runs/advance")
    latest = client.get("/api/pipelines/p-001/runs").json()[0]
    assert latest["status"] == "success"
    assert latest["duration"] != "Running"

def test_run_history_of_missing_pipeline(client):
    assert client.get("/api/pipelines/p-404/runs").status_code == 404

def test_save_persists_run_metadata(client, session):
    open_java_draft(client)
    client.post("/api/editor/drafts/p-001/save")

    record = session.added[0]
    assert record.last_run_time == "2025-12-06 19:35"
    assert record.duration == "1m 5s"
    assert [s["id"] for s in record.sources] == ["src-1"]
