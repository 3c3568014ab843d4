from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

import cjklint.api as api


def test_healthz_ok():
    client = TestClient(api.app)
    r = client.get("/healthz")
    assert r.status_code == 200
    assert r.json() == {"ok": True}


def test_list_rules_in_default_order():
    client = TestClient(api.app)
    r = client.get("/api/v1/rules")
    assert r.status_code == 200
    rules = r.json()["rules"]
    assert rules[0] == {"name": "unify-punctuation", "option": "unify_punctuation", "default_enabled": True}
    assert [x["name"] for x in rules][-1] == "case-datetime"
    assert len(rules) == 7


def test_lint_returns_text_changed_and_stats():
    client = TestClient(api.app)
    r = client.post("/api/v1/lint", json={"text": "汉字和English之间"})
    assert r.status_code == 200, r.text
    data = r.json()
    assert data["text"] == "汉字和 English 之间"
    assert data["changed"] is True
    assert data["stats"]["space-full-width-content"] == 2


def test_lint_unchanged_text():
    client = TestClient(api.app)
    r = client.post("/api/v1/lint", json={"text": "## 访问元素 & 组件"})
    assert r.status_code == 200
    assert r.json()["changed"] is False


def test_lint_options_disable_rules_and_markdown():
    client = TestClient(api.app)
    r = client.post(
        "/api/v1/lint",
        json={"text": "中文`code`中文", "options": {"markdown": False}},
    )
    assert r.status_code == 200
    assert r.json()["text"] == "中文`code`中文"

    r = client.post(
        "/api/v1/lint",
        json={"text": "汉字和English之间", "options": {"space_full_width_content": False}},
    )
    assert r.json()["text"] == "汉字和English之间"
    assert "space-full-width-content" not in r.json()["stats"]


def test_validation_errors_use_error_envelope():
    client = TestClient(api.app)
    r = client.post("/api/v1/lint", json={"options": {}})
    assert r.status_code == 400
    err = r.json()["error"]
    assert err["code"] == "bad_request"
    assert err["message"]


def test_text_over_limit_is_rejected(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.setenv("CJKLINT_MAX_TEXT_CHARS", "5")
    client = TestClient(api.app)
    r = client.post("/api/v1/lint", json={"text": "汉字和English"})
    assert r.status_code == 413
    assert r.json()["error"]["code"] == "bad_request"


def test_unknown_route_is_not_found():
    client = TestClient(api.app)
    r = client.get("/api/v1/nope")
    assert r.status_code == 404
    assert r.json()["error"]["code"] == "not_found"


def test_unhandled_errors_become_internal_error(monkeypatch: pytest.MonkeyPatch):
    def boom(*_args, **_kwargs):
        raise RuntimeError("boom")

    monkeypatch.setattr(api, "run_lint", boom)
    client = TestClient(api.app, raise_server_exceptions=False)
    r = client.post("/api/v1/lint", json={"text": "x"})
    assert r.status_code == 500
    assert r.json() == {"error": {"code": "internal_error", "message": "boom"}}


def test_lifespan_attaches_file_logging(monkeypatch: pytest.MonkeyPatch, tmp_path):
    seen = {}

    def fake_ensure(*, log_dir):
        seen["log_dir"] = log_dir
        return log_dir / "cjklint.log"

    monkeypatch.setattr(api, "ensure_file_logging", fake_ensure)
    monkeypatch.setenv("CJKLINT_LOG_DIR", str(tmp_path))
    with TestClient(api.app) as client:
        assert client.get("/healthz").status_code == 200
    assert seen["log_dir"] == tmp_path
