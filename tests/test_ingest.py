import pytest

from media_context.annotation.pipeline import ChunkedAnnotationPipeline
from media_context.chunking.splitter import BoundarySplitter
from media_context.ingest import (
    MediaIngestor,
    FileTooLargeError,
    is_text_file,
    media_kind,
)
from media_context.llm.client import GenerationError


def _ingestor(client, store, throttle, **kwargs) -> MediaIngestor:
    pipeline = ChunkedAnnotationPipeline(
        client=client,
        store=store,
        splitter=BoundarySplitter(max_length=20),
        throttle=throttle,
    )
    return MediaIngestor(client=client, store=store, pipeline=pipeline, **kwargs)


@pytest.mark.parametrize(
    "filename, content_type, expected",
    [
        ("notes.txt", "text/plain", True),
        ("README.md", "", True),
        ("doc.markdown", "text/markdown", True),
        ("data.CSV", "", True),
        ("payload.json", "application/json", True),
        ("feed.xml", "application/xml", True),
        ("photo.png", "image/png", False),
        ("report.pdf", "application/pdf", False),
    ],
)
def test_is_text_file(filename, content_type, expected):
    assert is_text_file(filename, content_type) is expected


@pytest.mark.parametrize(
    "filename, content_type, expected",
    [
        ("photo.png", "image/png", "image"),
        ("clip.mp4", "video/mp4", "video"),
        ("notes.txt", "text/plain", "text"),
        ("README.md", "", "text"),
        ("report.pdf", "application/pdf", "document"),
    ],
)
def test_media_kind(filename, content_type, expected):
    assert media_kind(filename, content_type) == expected


@pytest.mark.asyncio
async def test_text_upload_goes_through_chunked_pipeline(store, make_client, no_throttle):
    client = make_client()
    ingestor = _ingestor(client, store, no_throttle, auto_analysis=True)
    data = "\n\n".join(f"segment number {i}" for i in range(3)).encode("utf-8")

    result = await ingestor.ingest("notes.txt", "text/plain", data)

    assert result.kind == "text"
    assert result.report is not None
    assert result.report.succeeded == [0, 1, 2]
    assert client.media_calls == []
    segments = await store.get_segments(result.report.document_id)
    assert len(segments) == 3


@pytest.mark.asyncio
async def test_media_upload_is_annotated_in_one_pass(store, make_client, no_throttle):
    client = make_client()
    ingestor = _ingestor(client, store, no_throttle, auto_analysis=True)

    result = await ingestor.ingest("photo.png", "image/png", b"\x89PNG\r\n")

    assert result.kind == "image"
    assert result.report is None
    assert result.annotation.summary == "A short summary of the chunk."
    assert client.prompts == []
    prompt, data, mime_type = client.media_calls[0]
    assert data == b"\x89PNG\r\n"
    assert mime_type == "image/png"
    assert "1) A brief summary" in prompt

    documents = await store.list_documents(kind="image")
    assert len(documents) == 1
    assert documents[0].summary == "A short summary of the chunk."
    assert documents[0].size == 6
    assert await store.get_segments(documents[0].id) == []


@pytest.mark.asyncio
async def test_media_failure_propagates_without_storing(store, make_client, no_throttle):
    client = make_client(media_error=GenerationError("Generation request failed: ReadTimeout"))
    ingestor = _ingestor(client, store, no_throttle, auto_analysis=True)

    with pytest.raises(GenerationError):
        await ingestor.ingest("photo.png", "image/png", b"data")

    assert await store.list_documents() == []


@pytest.mark.asyncio
async def test_oversized_file_rejected(store, make_client, no_throttle):
    client = make_client()
    ingestor = _ingestor(client, store, no_throttle, max_file_size_mb=1)

    with pytest.raises(FileTooLargeError):
        await ingestor.ingest("big.txt", "text/plain", b"x" * (1024 * 1024 + 1))

    assert await store.list_documents() == []
    assert client.prompts == []


@pytest.mark.asyncio
async def test_auto_analysis_disabled_stores_plain_document(store, make_client, no_throttle):
    client = make_client()
    ingestor = _ingestor(client, store, no_throttle, auto_analysis=False)

    result = await ingestor.ingest("notes.md", "", "# Title\n\nBody", user_tags="draft")

    assert result.report is None
    assert result.annotation is None
    assert client.prompts == []
    assert client.media_calls == []

    documents = await store.list_documents()
    assert len(documents) == 1
    assert documents[0].media_type == "text/plain"
    assert documents[0].user_tags == "draft"
