"""
Media Ingestion

Routes an uploaded file to the right annotation path:

- Text files are decoded and run through the chunked annotation pipeline.
- Everything else (images, video, binary documents) is annotated in a
  single pass with the file sent inline, and the annotation is stored on
  the document row itself.
"""

from __future__ import annotations

import logging
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict

from .config import settings
from .annotation.models import Annotation, DocumentDraft, PipelineReport
from .annotation.parser import parse_annotation
from .annotation.pipeline import ChunkedAnnotationPipeline
from .annotation.prompts import build_media_prompt
from .db.document_store import DocumentStore
from .llm.client import GeminiClient

logger = logging.getLogger("mctx.ingest")


# ---------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------

TEXT_EXTENSIONS = (".md", ".txt", ".csv", ".json", ".xml")

BYTES_PER_MB = 1024 * 1024


# ---------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------

class FileTooLargeError(ValueError):
    """Raised when an upload exceeds the configured maximum size."""


# ---------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------

def is_text_file(filename: str, content_type: str) -> bool:
    """
    Decide whether a file should go through chunked text annotation.
    """
    content_type = content_type or ""
    return (
        "text" in content_type
        or "markdown" in content_type
        or filename.lower().endswith(TEXT_EXTENSIONS)
    )


def media_kind(filename: str, content_type: str) -> str:
    """
    Map a file to one of: text, image, video, document.
    """
    content_type = content_type or ""
    if content_type.startswith("image/"):
        return "image"
    if content_type.startswith("video/"):
        return "video"
    if is_text_file(filename, content_type):
        return "text"
    return "document"


# ---------------------------------------------------------------------
# Result Model
# ---------------------------------------------------------------------

class IngestResult(BaseModel):
    """
    Outcome of ingesting one file.

    `report` is set for chunked text documents, `annotation` for
    single-pass documents. Both are None when analysis is disabled.
    """
    document_id: str
    kind: str
    report: Optional[PipelineReport] = None
    annotation: Optional[Annotation] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Ingestor
# ---------------------------------------------------------------------

class MediaIngestor:
    def __init__(
        self,
        client: GeminiClient,
        store: DocumentStore,
        pipeline: Optional[ChunkedAnnotationPipeline] = None,
        auto_analysis: Optional[bool] = None,
        max_file_size_mb: Optional[int] = None,
    ) -> None:
        self.client = client
        self.store = store
        self.pipeline = pipeline or ChunkedAnnotationPipeline(client=client, store=store)
        self.auto_analysis = settings.auto_analysis if auto_analysis is None else auto_analysis
        self.max_file_size_mb = max_file_size_mb or settings.max_file_size_mb

    async def ingest(
        self,
        filename: str,
        content_type: str,
        data: Union[bytes, str],
        user_tags: Optional[str] = None,
    ) -> IngestResult:
        """
        Store and annotate one uploaded file.

        Raises
        ------
        FileTooLargeError
            If the file exceeds max_file_size_mb.
        GenerationError
            If single-pass media annotation fails. No document is stored.
        """
        raw = data.encode("utf-8") if isinstance(data, str) else data

        if len(raw) > self.max_file_size_mb * BYTES_PER_MB:
            raise FileTooLargeError(
                f"{filename} is too large. Maximum size is {self.max_file_size_mb}MB."
            )

        kind = media_kind(filename, content_type)
        default_type = "text/plain" if kind == "text" else "application/octet-stream"
        draft = DocumentDraft(
            name=filename,
            media_type=content_type or default_type,
            size=len(raw),
            user_tags=user_tags,
        )

        if not self.auto_analysis:
            document = await self._store_plain(draft, kind)
            return IngestResult(document_id=str(document.id), kind=kind)

        if is_text_file(filename, content_type):
            text = raw.decode("utf-8", errors="replace")
            report = await self.pipeline.run(draft, text)
            return IngestResult(document_id=str(report.document_id), kind=kind, report=report)

        annotation = await self.analyze_media(raw, draft.media_type)
        document = await self._store_plain(draft, kind, annotation=annotation)
        return IngestResult(document_id=str(document.id), kind=kind, annotation=annotation)

    async def analyze_media(self, data: bytes, mime_type: str) -> Annotation:
        """
        Single-pass annotation of a media file sent inline.
        """
        json_mode = self.pipeline.json_mode
        response = await self.client.generate_with_media(
            build_media_prompt(json_mode),
            data,
            mime_type,
            json_mode=json_mode,
        )
        return parse_annotation(response, self.pipeline.fallback_length)

    async def _store_plain(
        self,
        draft: DocumentDraft,
        kind: str,
        annotation: Optional[Annotation] = None,
    ):
        document = await self.store.create_document(
            name=draft.name,
            media_type=draft.media_type,
            kind=kind,
            size=draft.size or 0,
            file_url=draft.file_url,
            user_tags=draft.user_tags,
            annotation=annotation,
        )
        logger.info("Stored %s document %s (%s)", kind, document.id, draft.name)
        return document
