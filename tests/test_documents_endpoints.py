import base64
import contextlib
import uuid
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from media_context.main import create_app
from media_context.api.dependencies import get_document_store, get_pipeline, get_ingestor
from media_context.annotation.models import PipelineReport, SegmentFailure, DocumentDraft
from media_context.annotation.pipeline import ChunkedAnnotationPipeline
from media_context.db import DocumentStore
from media_context.db.models import MediaDocument, AnalysisChunk
from media_context.ingest import MediaIngestor, IngestResult, FileTooLargeError
from media_context.llm.client import GenerationError


DOCUMENT_ID = uuid.UUID("12345678-1234-5678-1234-567812345678")


def make_document(**overrides) -> MediaDocument:
    fields = dict(
        id=DOCUMENT_ID,
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
        name="notes.txt",
        media_type="text/plain",
        kind="text",
        size=42,
    )
    fields.update(overrides)
    return MediaDocument(**fields)


def make_segment(index: int) -> AnalysisChunk:
    return AnalysisChunk(
        id=index + 1,
        document_id=DOCUMENT_ID,
        chunk_index=index,
        chunk_content=f"chunk {index}",
        summary=f"summary {index}",
        key_insights="",
        suggested_tags="",
        notable_features="",
        created_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
    )


@pytest.fixture
def mock_store():
    return AsyncMock(spec=DocumentStore)


@pytest.fixture
def mock_pipeline():
    mock = AsyncMock(spec=ChunkedAnnotationPipeline)
    mock.run.return_value = PipelineReport(
        document_id=DOCUMENT_ID,
        segment_count=3,
        succeeded=[0, 2],
        failed=[SegmentFailure(index=1, reason="Generation request failed: HTTPStatusError")],
    )
    return mock


@pytest.fixture
def mock_ingestor():
    return AsyncMock(spec=MediaIngestor)


@pytest.fixture
def client(mock_store, mock_pipeline, mock_ingestor):
    app = create_app()
    app.dependency_overrides[get_document_store] = lambda: mock_store
    app.dependency_overrides[get_pipeline] = lambda: mock_pipeline
    app.dependency_overrides[get_ingestor] = lambda: mock_ingestor

    # Mock lifespan to avoid DB connection
    @contextlib.asynccontextmanager
    async def mock_lifespan(app):
        yield

    app.router.lifespan_context = mock_lifespan

    with TestClient(app) as c:
        yield c

    app.dependency_overrides = {}


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "ok"


def test_create_text_document(client, mock_pipeline):
    payload = {"name": "notes.txt", "content": "Some long text", "user_tags": "work"}

    resp = client.post("/documents/text", json=payload)

    assert resp.status_code == 200
    data = resp.json()
    assert data["document_id"] == str(DOCUMENT_ID)
    assert data["succeeded"] == [0, 2]
    assert data["failed"][0]["index"] == 1

    draft, content = mock_pipeline.run.await_args.args
    assert draft == DocumentDraft(name="notes.txt", media_type="text/plain", user_tags="work")
    assert content == "Some long text"


def test_create_text_document_requires_content(client, mock_pipeline):
    resp = client.post("/documents/text", json={"name": "empty.txt", "content": ""})

    assert resp.status_code == 422
    mock_pipeline.run.assert_not_called()


def test_upload_decodes_base64(client, mock_ingestor):
    mock_ingestor.ingest.return_value = IngestResult(
        document_id=str(DOCUMENT_ID),
        kind="image",
    )
    payload = {
        "filename": "photo.png",
        "content_type": "image/png",
        "data": base64.b64encode(b"\x89PNG").decode("ascii"),
    }

    resp = client.post("/documents/upload", json=payload)

    assert resp.status_code == 200
    assert resp.json()["kind"] == "image"
    kwargs = mock_ingestor.ingest.await_args.kwargs
    assert kwargs["data"] == b"\x89PNG"
    assert kwargs["content_type"] == "image/png"


def test_upload_rejects_invalid_base64(client, mock_ingestor):
    payload = {"filename": "photo.png", "content_type": "image/png", "data": "not base64!!"}

    resp = client.post("/documents/upload", json=payload)

    assert resp.status_code == 422
    mock_ingestor.ingest.assert_not_called()


def test_upload_too_large(client, mock_ingestor):
    mock_ingestor.ingest.side_effect = FileTooLargeError("big.txt is too large. Maximum size is 50MB.")
    payload = {"filename": "big.txt", "content_type": "text/plain", "data": "eHl6"}

    resp = client.post("/documents/upload", json=payload)

    assert resp.status_code == 413
    assert "too large" in resp.json()["detail"]


def test_upload_generation_failure_maps_to_bad_gateway(client, mock_ingestor):
    mock_ingestor.ingest.side_effect = GenerationError("Generation request failed: ConnectError")
    payload = {"filename": "photo.png", "content_type": "image/png", "data": "eHl6"}

    resp = client.post("/documents/upload", json=payload)

    assert resp.status_code == 502
    assert resp.json()["error"] == "upstream_generation_failed"


def test_list_documents(client, mock_store):
    mock_store.list_documents.return_value = [make_document(), make_document(id=uuid.uuid4(), name="b.txt")]

    resp = client.get("/documents", params={"kind": "text", "limit": 10})

    assert resp.status_code == 200
    assert [doc["name"] for doc in resp.json()] == ["notes.txt", "b.txt"]
    mock_store.list_documents.assert_awaited_once_with(kind="text", limit=10, offset=0)


def test_list_documents_rejects_unknown_kind(client, mock_store):
    resp = client.get("/documents", params={"kind": "spreadsheet"})

    assert resp.status_code == 422
    mock_store.list_documents.assert_not_called()


def test_get_document(client, mock_store):
    mock_store.get_document.return_value = make_document(summary="single pass")

    resp = client.get(f"/documents/{DOCUMENT_ID}")

    assert resp.status_code == 200
    data = resp.json()
    assert data["id"] == str(DOCUMENT_ID)
    assert data["summary"] == "single pass"


def test_get_missing_document(client, mock_store):
    mock_store.get_document.return_value = None

    resp = client.get(f"/documents/{DOCUMENT_ID}")

    assert resp.status_code == 404


def test_update_document(client, mock_store):
    mock_store.update_document.return_value = make_document(name="renamed.txt", user_tags="a, b")

    resp = client.patch(f"/documents/{DOCUMENT_ID}", json={"name": "renamed.txt", "user_tags": "a, b"})

    assert resp.status_code == 200
    assert resp.json()["name"] == "renamed.txt"
    mock_store.update_document.assert_awaited_once_with(
        DOCUMENT_ID, name="renamed.txt", user_tags="a, b", clear_user_tags=False
    )


def test_update_with_null_tags_clears_them(client, mock_store):
    mock_store.update_document.return_value = make_document(user_tags=None)

    resp = client.patch(f"/documents/{DOCUMENT_ID}", json={"user_tags": None})

    assert resp.status_code == 200
    assert resp.json()["user_tags"] is None
    mock_store.update_document.assert_awaited_once_with(
        DOCUMENT_ID, name=None, user_tags=None, clear_user_tags=True
    )


def test_update_name_only_keeps_tags(client, mock_store):
    mock_store.update_document.return_value = make_document(name="renamed.txt", user_tags="keep")

    resp = client.patch(f"/documents/{DOCUMENT_ID}", json={"name": "renamed.txt"})

    assert resp.status_code == 200
    mock_store.update_document.assert_awaited_once_with(
        DOCUMENT_ID, name="renamed.txt", user_tags=None, clear_user_tags=False
    )


def test_update_missing_document(client, mock_store):
    mock_store.update_document.return_value = None

    resp = client.patch(f"/documents/{DOCUMENT_ID}", json={"user_tags": "x"})

    assert resp.status_code == 404


def test_delete_document(client, mock_store):
    mock_store.delete_document.return_value = True

    resp = client.delete(f"/documents/{DOCUMENT_ID}")

    assert resp.status_code == 200
    assert resp.json()["status"] == "deleted"


def test_delete_missing_document(client, mock_store):
    mock_store.delete_document.return_value = False

    resp = client.delete(f"/documents/{DOCUMENT_ID}")

    assert resp.status_code == 404


def test_get_segments_with_gap(client, mock_store):
    mock_store.get_document.return_value = make_document()
    mock_store.get_segments.return_value = [make_segment(0), make_segment(2)]

    resp = client.get(f"/documents/{DOCUMENT_ID}/segments")

    assert resp.status_code == 200
    assert [segment["chunk_index"] for segment in resp.json()] == [0, 2]
    assert resp.json()[1]["summary"] == "summary 2"


def test_get_segments_for_missing_document(client, mock_store):
    mock_store.get_document.return_value = None

    resp = client.get(f"/documents/{DOCUMENT_ID}/segments")

    assert resp.status_code == 404
    mock_store.get_segments.assert_not_called()


def test_stats(client, mock_store):
    mock_store.get_stats.return_value = {
        "total_documents": 3,
        "total_bytes": 300,
        "total_segments": 7,
        "by_kind": {"text": 2, "image": 1},
    }

    resp = client.get("/stats")

    assert resp.status_code == 200
    assert resp.json()["total_segments"] == 7
    assert resp.json()["by_kind"] == {"text": 2, "image": 1}
