from fastapi.testclient import TestClient

from evalq.config.settings import settings
from evalq.core.errors import StoreError
from evalq.core.state import JobStatus
from evalq.panel import api


def _client(store):
    api.app.dependency_overrides[api.get_store] = lambda: store
    return TestClient(api.app)


def test_health():
    r = TestClient(api.app).get("/health")
    assert r.status_code == 200 and r.json()["ok"] is True


def test_submit_and_list(store):
    c = _client(store)
    try:
        r = c.post("/jobs", json={"name": "ana", "code": "print(1)", "timestamp": "01-01-2024 10:00"})
        assert r.status_code == 201
        jid = r.json()["id"]
        assert store.get(jid).status is JobStatus.PENDING

        store.update_verdict(jid, JobStatus.SUCCESS, 92.0)
        body = c.get("/jobs", params={"status": "Success"}).json()
        assert body["counts"]["Success"] == 1
        assert body["items"][0]["id"] == jid
        assert "payload" not in body["items"][0]

        detail = c.get(f"/jobs/{jid}").json()
        assert detail["job"]["score"] == 92.0
        assert detail["events"][0]["payload"]["status"] == "Success"

        assert c.get("/jobs/missing").status_code == 404
        assert c.post("/jobs", json={"name": " ", "code": "x"}).status_code == 422
    finally:
        api.app.dependency_overrides.clear()


def test_token_required_when_configured(store, monkeypatch):
    monkeypatch.setattr(settings, "PANEL_TOKEN", "s3cret")
    c = _client(store)
    try:
        assert c.get("/jobs").status_code == 401
        assert c.get("/jobs", headers={"X-Panel-Token": "s3cret"}).status_code == 200
    finally:
        api.app.dependency_overrides.clear()


def test_job_detail_store_down_is_503(store, monkeypatch):
    def down(job_id):
        raise StoreError("database is locked")

    monkeypatch.setattr(store, "get", down)
    c = _client(store)
    try:
        assert c.get("/jobs/abc").status_code == 503
    finally:
        api.app.dependency_overrides.clear()
