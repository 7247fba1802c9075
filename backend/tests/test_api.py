"""API integration tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from repo_chat.api.dependencies import AppContext, set_context
from repo_chat.app import app
from repo_chat.core.config import Settings
from repo_chat.ingest import clone


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        embedding_backend="hashed",
        embedding_dim=128,
        qdrant_url=":memory:",
        analysis_root=tmp_path,
        clone_dir=tmp_path / "public" / "repo",
    )


@pytest.fixture
def context(settings, fake_loader, fake_search, fake_generator) -> AppContext:
    ctx = AppContext(settings, loader=fake_loader, search_client=fake_search, generator=fake_generator)
    set_context(ctx)
    return ctx


@pytest.fixture
def client(context) -> TestClient:
    with TestClient(app) as test_client:
        yield test_client


def test_health(client: TestClient) -> None:
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["ok"] is True


def test_ingest_and_chat_flow(client: TestClient, fake_generator) -> None:
    ingest_resp = client.post("/api/process", json={"url": "owner/repo"})
    assert ingest_resp.status_code == 200
    data = ingest_resp.json()
    assert data["message"] == "Repository processed successfully"
    assert data["repoName"] == "repo"
    assert data["documentsProcessed"] > 0

    chat_resp = client.post(
        "/api/chat",
        json={"messages": [{"role": "user", "content": "List main features"}]},
    )
    assert chat_resp.status_code == 200
    assert chat_resp.headers["content-type"].startswith("text/plain")
    assert chat_resp.text.startswith("## Main features")
    assert "- Streaming chat" in chat_resp.text

    prompt = fake_generator.prompts[-1]
    assert "File: " in prompt
    assert "- Docs: https://example.com" in prompt
    assert "Code analysis for: List main features" in prompt
    assert "List main features" in prompt


def test_ingest_validation_and_not_found(client: TestClient) -> None:
    resp = client.post("/api/process", json={})
    assert resp.status_code == 400
    assert resp.json() == {"error": "Repository URL is required"}

    resp = client.post("/api/process", json={"url": "owner/missing"})
    assert resp.status_code == 404
    assert resp.json()["error"]


def test_malformed_body_is_400(client: TestClient) -> None:
    resp = client.post("/api/process", content=b"{not json", headers={"Content-Type": "application/json"})
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid request body"


@pytest.mark.parametrize(
    "messages, error",
    [
        ([], "Messages are required"),
        ([{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}], "Last message must be from user"),
    ],
)
def test_chat_validation(client: TestClient, messages, error: str) -> None:
    resp = client.post("/api/chat", json={"messages": messages})
    assert resp.status_code == 400
    assert resp.json() == {"error": error}


def test_chat_survives_failing_search(client: TestClient, fake_search, fake_generator) -> None:
    fake_search.error = RuntimeError("search offline")
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "What does it do?"}]})
    assert resp.status_code == 200
    assert resp.text
    assert "No search results available." in fake_generator.prompts[-1]


def test_chat_generation_failure_is_500(client: TestClient, fake_generator) -> None:
    fake_generator.error = RuntimeError("model overloaded")
    resp = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to process chat query"
    assert body["message"] == "model overloaded"
    assert body["details"]["name"] == "RuntimeError"


def test_clear_db_list_and_delete(client: TestClient) -> None:
    client.post("/api/process", json={"url": "owner/repo"})

    resp = client.get("/api/clear-db")
    assert resp.status_code == 200
    assert resp.json() == {"collections": [{"name": "github_files"}]}

    resp = client.delete("/api/clear-db")
    assert resp.status_code == 200
    assert resp.json() == {"message": "All collections deleted successfully"}
    assert client.get("/api/clear-db").json() == {"collections": []}


def test_download_route(client: TestClient, settings: Settings, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(clone, "remote_exists", lambda url: True)
    monkeypatch.setattr(clone.Repo, "clone_from", staticmethod(lambda url, target: target.mkdir()))

    resp = client.post("/api/download", json={"url": "https://github.com/owner/demo.git"})
    assert resp.status_code == 200
    assert resp.json() == {"message": "Repository downloaded successfully", "repoName": "demo"}
    assert (settings.clone_dir / "demo").is_dir()

    assert client.post("/api/download", json={"url": ""}).status_code == 400


def test_metrics_endpoint(client: TestClient) -> None:
    client.get("/health")
    resp = client.get("/metrics")
    assert resp.status_code == 200
    assert "repochat_requests_total" in resp.text


def test_missing_configuration_is_500() -> None:
    set_context(AppContext(Settings()))
    with TestClient(app) as test_client:
        resp = test_client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
        assert resp.status_code == 500
        assert "not initialized" in resp.json()["error"]

        resp = test_client.post("/api/process", json={"url": "owner/repo"})
        assert resp.status_code == 500


def test_metrics_use_route_templates(client: TestClient) -> None:
    client.get("/no/such/path/123")
    client.get("/health")
    text = client.get("/metrics").text
    assert 'endpoint="unmatched"' in text
    assert 'endpoint="/health"' in text
    assert "/no/such/path/123" not in text
