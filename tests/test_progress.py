from fastapi.testclient import TestClient

from db import SessionLocal
from main import app
from models import ProgressRecord
from progress import SqlProgressSink
from schemas.progress import ProgressEntry

client = TestClient(app)


def _record(score: int = 50, activity_type: str = "coding_test") -> int:
    sink = SqlProgressSink(SessionLocal)
    return sink.record(
        ProgressEntry(
            activity_type=activity_type,
            language="python",
            difficulty="easy",
            score=score,
            activity_data={"question": "Two Sum", "passed": 1, "total": 2},
        )
    )


def test_sink_persists_entry():
    rid = _record(score=73)
    with SessionLocal() as db:
        row = db.get(ProgressRecord, rid)
        assert row is not None
        assert row.score == 73
        assert row.activity_type == "coding_test"
        assert row.activity_data["question"] == "Two Sum"
        assert row.created_at is not None


def test_get_progress_record():
    rid = _record(score=40)
    r = client.get(f"/progress/{rid}")
    assert r.status_code == 200
    b = r.json()
    assert b["id"] == rid
    assert b["score"] == 40
    assert b["activity_data"]["total"] == 2


def test_get_missing_progress_record():
    r = client.get("/progress/999999")
    assert r.status_code == 404
    assert r.json()["detail"] == "Progress record not found"


def test_recent_list_requires_key(monkeypatch):
    monkeypatch.setenv("GRADING_API_KEY", "k")
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    assert client.get("/progress/recent-list").status_code == 401
    assert client.get("/progress/recent-list", headers={"x-api-key": "wrong"}).status_code == 401


def test_recent_list_without_configured_key(monkeypatch):
    monkeypatch.delenv("GRADING_API_KEY", raising=False)
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    assert client.get("/progress/recent-list").status_code == 500


def test_recent_list_filters_and_hides_activity_data(monkeypatch):
    monkeypatch.setenv("GRADING_API_KEY", "k")
    _record(activity_type="coding_test")
    _record(activity_type="aptitude_test")
    r = client.get(
        "/progress/recent-list",
        params={"activity_type": "aptitude_test", "limit": 5},
        headers={"x-api-key": "k"},
    )
    assert r.status_code == 200
    b = r.json()
    assert b["ok"] is True
    assert b["count"] == len(b["items"]) >= 1
    assert all(i["activity_type"] == "aptitude_test" for i in b["items"])
    assert all("activity_data" not in i for i in b["items"])


def test_admin_token_also_reads_history(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "root")
    monkeypatch.delenv("GRADING_API_KEY", raising=False)
    r = client.get("/progress/recent-list", headers={"x-admin-token": "root"})
    assert r.status_code == 200
