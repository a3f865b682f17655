import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from sitegen.agent.artifacts import UploadResult
from sitegen.agent.orchestrator import PipelineOptions
from sitegen.api.routes.pipeline import stream_pipeline_events
from sitegen.core.config import settings
from sitegen.main import app
from sitegen.storage import StorageError, get_site_storage
from sitegen.utils import parse_task_file

VALID_BUSINESS = {
    "business_name": "Sharma Optics",
    "address": "12 MG Road, Sector 14",
    "city": "Gurugram",
    "state": "Haryana",
    "business_category": "Optician",
    "description": "Family-run optical store offering eye tests, frames and contact lenses since 1998.",
}


@pytest.fixture
def storage():
    fake = MagicMock()
    fake.bucket_exists.return_value = True
    app.dependency_overrides[get_site_storage] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(storage):
    return TestClient(app)


@pytest.fixture
def local_roots(tmp_path, monkeypatch):
    monkeypatch.setattr(settings, "OUTPUT_ROOT", str(tmp_path / "output"))
    monkeypatch.setattr(settings, "TASKS_ROOT", str(tmp_path / "tasks"))
    return tmp_path


def test_generate_mock_without_upload(client, storage):
    response = client.post("/generate?mock=true&skip_upload=true", json=VALID_BUSINESS)

    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "success"
    assert body["business_slug"] == "sharma-optics"
    assert body["html_size_bytes"] > 0
    assert "public_url" not in body
    assert "storage_path" not in body
    storage.upload_website.assert_not_called()


def test_generate_returns_400_with_field_errors(client):
    response = client.post("/generate?mock=true", json={**VALID_BUSINESS, "business_name": "A"})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["error_phase"] == "validation"
    assert body["validation_errors"] == [
        {"field": "business_name", "message": "Business name must be at least 2 characters"}
    ]


def test_generate_storage_failure_is_400_upload(client, storage):
    storage.upload_website.side_effect = StorageError("Bucket not found")

    response = client.post("/generate?mock=true", json=VALID_BUSINESS)

    assert response.status_code == 400
    body = response.json()
    assert body["error_phase"] == "upload"
    assert body["error_message"] == "Bucket not found"


def test_generate_with_upload_returns_public_url(client, storage):
    storage.upload_website.return_value = UploadResult(
        storage_path="sharma-optics/1700000000000/index.html",
        public_url="https://cdn.example.com/websites/sharma-optics/1700000000000/index.html",
        size_bytes=2048,
    )

    response = client.post("/generate?mock=true", json=VALID_BUSINESS)

    assert response.status_code == 200
    body = response.json()
    assert body["public_url"].endswith("/sharma-optics/1700000000000/index.html")
    assert body["html_size_bytes"] == 2048


def test_generate_save_local_writes_markup(client, local_roots):
    response = client.post("/generate?mock=true&skip_upload=true&save_local=true", json=VALID_BUSINESS)

    body = response.json()
    saved = local_roots / "output" / "sharma-optics" / body["run_id"] / "index.html"
    assert saved.is_file()
    assert len(saved.read_bytes()) == body["html_size_bytes"]


def test_generate_spec_writes_handoff_files(client, local_roots):
    response = client.post("/generate/spec?mock=true", json=VALID_BUSINESS)

    assert response.status_code == 200
    body = response.json()
    run_id = body["run_id"]
    task_path = local_roots / "tasks" / f"{run_id}.md"
    assert body["task_path"] == str(task_path)
    assert body["expected_output_path"] == str(
        local_roots / "output" / "sharma-optics" / run_id / "index.html"
    )

    metadata, instructions = parse_task_file(task_path.read_text(encoding="utf-8"))
    assert metadata["run_id"] == run_id
    assert metadata["business_slug"] == "sharma-optics"
    assert metadata["business_name"] == "Sharma Optics"
    assert "Sharma Optics" in instructions
    assert (local_roots / "tasks" / f"{run_id}.spec.json").is_file()
    assert sorted(p.name for p in (local_roots / "tasks").iterdir()) == [f"{run_id}.md", f"{run_id}.spec.json"]


def test_generate_spec_rejects_invalid_input(client, local_roots):
    response = client.post("/generate/spec?mock=true", json={"business_name": "Sharma Optics"})

    assert response.status_code == 400
    assert response.json()["error_phase"] == "validation"
    assert not (local_roots / "tasks").exists()


def test_upload_missing_local_file_is_404_with_expected_path(client, local_roots, storage):
    response = client.post("/upload", json={"run_id": "run-1-abcdef", "business_slug": "sharma-optics"})

    assert response.status_code == 404
    body = response.json()
    assert body["status"] == "error"
    assert body["expected_path"] == str(local_roots / "output" / "sharma-optics" / "run-1-abcdef" / "index.html")
    storage.upload_website.assert_not_called()


def test_upload_publishes_existing_local_file(client, local_roots, storage):
    html_path = local_roots / "output" / "sharma-optics" / "run-1-abcdef" / "index.html"
    html_path.parent.mkdir(parents=True)
    html_path.write_text("<!DOCTYPE html><p>hi</p>", encoding="utf-8")
    storage.upload_website.return_value = UploadResult(
        storage_path="sharma-optics/1/index.html",
        public_url="https://cdn.example.com/websites/sharma-optics/1/index.html",
        size_bytes=24,
    )

    response = client.post("/upload", json={"run_id": "run-1-abcdef", "business_slug": "sharma-optics"})

    assert response.status_code == 200
    assert response.json()["public_url"] == "https://cdn.example.com/websites/sharma-optics/1/index.html"
    storage.upload_website.assert_called_once_with("sharma-optics", "<!DOCTYPE html><p>hi</p>", "run-1-abcdef")


def test_upload_storage_failure_is_400(client, local_roots, storage):
    html_path = local_roots / "output" / "sharma-optics" / "run-1-abcdef" / "index.html"
    html_path.parent.mkdir(parents=True)
    html_path.write_text("<p>hi</p>", encoding="utf-8")
    storage.upload_website.side_effect = StorageError("Access Denied")

    response = client.post("/upload", json={"run_id": "run-1-abcdef", "business_slug": "sharma-optics"})

    assert response.status_code == 400
    assert response.json()["error_phase"] == "upload"
    assert response.json()["error_message"] == "Access Denied"


def test_upload_rejects_unsafe_identifiers(client, local_roots):
    response = client.post("/upload", json={"run_id": "../../etc", "business_slug": "sharma-optics"})

    assert response.status_code == 400
    assert response.json()["error_phase"] == "upload"


def test_validate_endpoint(client):
    ok = client.post("/validate", json={**VALID_BUSINESS, "category": "Optician"})
    assert ok.status_code == 200
    assert ok.json()["valid"] is True
    assert ok.json()["data"]["business_category"] == "Optician"

    bad = client.post("/validate", json=["not", "an", "object"])
    assert bad.status_code == 400
    assert bad.json() == {
        "valid": False,
        "errors": [{"field": "__root__", "message": "Input must be a JSON object"}],
    }


def test_health_endpoints(client, monkeypatch):
    monkeypatch.setattr(settings, "LLM_API_KEY", "")
    monkeypatch.setattr(settings, "GEMINI_API_KEY", "gemini-key")

    body = client.get("/health").json()
    assert body["status"] == "ok"
    assert body["llm_configured"] is True
    assert body["bucket"] == settings.STORAGE_BUCKET
    assert "storage_configured" in body

    assert client.get("/utils/health-check/").json() is True


def test_unexpected_errors_are_500_unknown(storage):
    client = TestClient(app, raise_server_exceptions=False)
    with patch("sitegen.api.routes.pipeline.run_pipeline", AsyncMock(side_effect=RuntimeError("boom"))):
        response = client.post("/generate?mock=true", json=VALID_BUSINESS)

    assert response.status_code == 500
    assert response.json()["error_phase"] == "unknown"
    assert response.json()["error_message"] == "boom"


def test_upload_body_missing_field_is_400_validation(client, local_roots):
    response = client.post("/upload", json={"run_id": "run-1-abcdef"})

    assert response.status_code == 400
    body = response.json()
    assert body["status"] == "error"
    assert body["error_phase"] == "validation"
    assert {"field": "business_slug", "message": "Business slug is required"} in body["validation_errors"]
    assert "business_slug" in body["error_message"]


def test_malformed_json_body_is_400_validation(client):
    response = client.post(
        "/generate?mock=true",
        content='{"business_name": "Sh',
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    body = response.json()
    assert body["error_phase"] == "validation"
    assert body["validation_errors"] == [{"field": "__root__", "message": "Request body is not valid JSON"}]


async def _broken_generator(*args, **kwargs):
    yield json.dumps({"status": "validating", "message": "Validating input"})
    raise RuntimeError("stream broke")


@pytest.mark.asyncio
async def test_stream_ends_with_error_event_when_generator_raises():
    with patch("sitegen.api.routes.pipeline.run_pipeline_generator", _broken_generator):
        events = [
            json.loads(event)
            async for event in stream_pipeline_events(VALID_BUSINESS, PipelineOptions(use_mock=True, skip_upload=True))
        ]

    assert events[0]["status"] == "validating"
    assert events[-1]["status"] == "error"
    result = events[-1]["result"]
    assert result["status"] == "error"
    assert result["error_phase"] == "unknown"
    assert result["error_message"] == "stream broke"
    assert result["run_id"].startswith("run-")
