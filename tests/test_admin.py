from fastapi.testclient import TestClient

from catalog import ChallengeCatalog
from deps.pipeline import get_catalog
from main import app
from tests.fakes import tiny_config

client = TestClient(app)


def test_admin_reload_unauthorized(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    r = client.post("/admin/reload")
    assert r.status_code == 401
    r = client.post("/admin/reload", headers={"x-admin-token": "nope"})
    assert r.status_code == 401


def test_admin_reload_without_token_configured(monkeypatch):
    monkeypatch.delenv("ADMIN_TOKEN", raising=False)
    r = client.post("/admin/reload", headers={"x-admin-token": "secret"})
    assert r.status_code == 500


def test_admin_reload_ok(monkeypatch):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    r = client.post("/admin/reload", headers={"x-admin-token": "secret"})
    assert r.status_code == 200
    b = r.json()
    assert b["ok"] is True and b["count"] >= 6


def test_admin_reload_rejects_broken_catalog(monkeypatch, tmp_path):
    monkeypatch.setenv("ADMIN_TOKEN", "secret")
    (tmp_path / "challenges").mkdir()
    (tmp_path / "challenges" / "easy.json").write_text(
        '[{"id": "bad", "title": "Bad", "difficulty": "easy", "description": "d", "testCases": []}]'
    )
    catalog = ChallengeCatalog(tiny_config(), data_dir=tmp_path)
    app.dependency_overrides[get_catalog] = lambda: catalog
    r = client.post("/admin/reload", headers={"x-admin-token": "secret"})
    assert r.json()["ok"] is False
    # previous catalog keeps serving
    assert catalog.get_static("easy-a") is not None


def test_catalog_health():
    r = client.get("/health/catalog")
    assert r.status_code == 200
    b = r.json()
    assert b["ok"] is True
    assert set(b["coding"]) == {"easy", "medium", "hard"}
    assert b["generation_enabled"] is False
