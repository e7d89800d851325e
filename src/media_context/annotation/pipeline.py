"""
Chunked Annotation Pipeline

Turns one long text body into an ordered set of annotated segments.

Workflow
--------
1. Persist the document row (failure here is fatal to the run).
2. Split the text into boundary-aligned segments.
3. Annotate each segment strictly one at a time, paced by a token bucket.
4. Persist each successful segment under its split-order index.

A failed segment (service error, malformed response, insert failure) is
logged and reported, and leaves a gap in the stored indices. It never
aborts the remaining segments.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import List, Optional

from ..config import settings
from ..chunking.splitter import BoundarySplitter
from ..db.document_store import DocumentStore
from ..llm.client import GeminiClient, GenerationError
from .models import (
    Annotation,
    DocumentDraft,
    PipelineReport,
    SegmentFailure,
    SegmentOutcome,
)
from .parser import parse_annotation
from .prompts import build_chunk_prompt
from .throttle import RequestThrottle

logger = logging.getLogger("mctx.pipeline")

ELLIPSIS = "..."

TEXT_KIND = "text"


def make_preview(text: str, limit: int) -> str:
    """
    Truncate text to `limit` characters, marking truncation with an ellipsis.
    """
    if len(text) <= limit:
        return text
    return text[:limit] + ELLIPSIS


class ChunkedAnnotationPipeline:
    """
    Sequential, partial-success annotation of long text documents.
    """

    def __init__(
        self,
        client: GeminiClient,
        store: DocumentStore,
        splitter: Optional[BoundarySplitter] = None,
        throttle: Optional[RequestThrottle] = None,
        max_attempts: Optional[int] = None,
        preview_length: Optional[int] = None,
        fallback_length: Optional[int] = None,
        json_mode: Optional[bool] = None,
    ) -> None:
        """
        Parameters
        ----------
        client : GeminiClient
            Text-understanding service client.
        store : DocumentStore
            Insert-only persistence for documents and segments.
        splitter : Optional[BoundarySplitter]
            Defaults to a splitter using settings.chunk_size.
        throttle : Optional[RequestThrottle]
            Shared throttle. If None, each run gets its own bucket built
            from settings.
        max_attempts : Optional[int]
            Attempts per segment for service failures (1 means no retry).
        preview_length : Optional[int]
            Characters of segment text kept in the stored preview.
        fallback_length : Optional[int]
            Characters of raw response used when no summary section exists.
        json_mode : Optional[bool]
            Request a JSON object instead of numbered sections.
        """
        self.client = client
        self.store = store
        self.splitter = splitter or BoundarySplitter(settings.chunk_size)
        self._throttle = throttle
        self.max_attempts = max_attempts or settings.annotation_max_attempts
        self.preview_length = preview_length or settings.chunk_preview_length
        self.fallback_length = (
            fallback_length if fallback_length is not None else settings.summary_fallback_length
        )
        self.json_mode = json_mode if json_mode is not None else settings.annotation_json_mode

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def split(self, text: str) -> List[str]:
        return self.splitter.split(text)

    async def annotate_segment(
        self,
        document_id: uuid.UUID,
        index: int,
        text: str,
        document_name: str,
        throttle: Optional[RequestThrottle] = None,
    ) -> SegmentOutcome:
        """
        Annotate one segment and persist it.

        Never raises for service or persistence failures; they are logged
        and returned as a failed outcome.
        """
        prompt = build_chunk_prompt(text, index, document_name, json_mode=self.json_mode)

        try:
            annotation = await self._request_annotation(prompt, throttle)
        except GenerationError as exc:
            logger.warning(
                "Annotation failed for document %s segment %d: %s",
                document_id,
                index,
                exc,
            )
            return SegmentOutcome(index=index, ok=False, error=str(exc))
        except Exception as exc:
            logger.exception(
                "Unexpected annotation error for document %s segment %d",
                document_id,
                index,
            )
            return SegmentOutcome(
                index=index,
                ok=False,
                error=f"Annotation failed: {type(exc).__name__}",
            )

        try:
            await self.store.add_segment(
                document_id=document_id,
                chunk_index=index,
                chunk_content=make_preview(text, self.preview_length),
                annotation=annotation,
            )
        except Exception as exc:
            logger.exception(
                "Failed to store segment %d for document %s",
                index,
                document_id,
            )
            return SegmentOutcome(
                index=index,
                ok=False,
                error=f"Segment insert failed: {type(exc).__name__}",
            )

        return SegmentOutcome(index=index, ok=True)

    async def run(
        self,
        document: DocumentDraft,
        full_text: str,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> PipelineReport:
        """
        Persist the document, then annotate every segment of `full_text`.

        Parameters
        ----------
        document : DocumentDraft
            Document attributes. Size defaults to the UTF-8 byte length of
            the text.
        full_text : str
            Text to split and annotate.
        cancel_event : Optional[asyncio.Event]
            Checked before each segment; once set, remaining segments are
            skipped.

        Returns
        -------
        PipelineReport
            Document id plus per-index outcome once every segment has been
            attempted or skipped.

        Raises
        ------
        Exception
            Any failure creating the document row propagates.
        """
        size = document.size
        if size is None:
            size = len(full_text.encode("utf-8"))

        record = await self.store.create_document(
            name=document.name,
            media_type=document.media_type,
            kind=TEXT_KIND,
            size=size,
            file_url=document.file_url,
            user_tags=document.user_tags,
        )
        document_id = record.id

        segments = self.split(full_text)
        report = PipelineReport(document_id=document_id, segment_count=len(segments))
        logger.info(
            "Annotating %s in %d segment(s) (document %s)",
            document.name,
            len(segments),
            document_id,
        )

        throttle = self._throttle or RequestThrottle(
            rate=settings.annotation_requests_per_second,
            burst=settings.annotation_burst,
        )

        for index, segment in enumerate(segments):
            if cancel_event is not None and cancel_event.is_set():
                report.cancelled = True
                report.skipped.extend(range(index, len(segments)))
                logger.info(
                    "Annotation of document %s cancelled before segment %d",
                    document_id,
                    index,
                )
                break

            outcome = await self.annotate_segment(
                document_id,
                index,
                segment,
                document.name,
                throttle=throttle,
            )
            if outcome.ok:
                report.succeeded.append(index)
            else:
                report.failed.append(SegmentFailure(index=index, reason=outcome.error or "unknown"))

        logger.info(
            "Finished document %s: %d succeeded, %d failed, %d skipped",
            document_id,
            len(report.succeeded),
            len(report.failed),
            len(report.skipped),
        )
        return report

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    async def _request_annotation(
        self,
        prompt: str,
        throttle: Optional[RequestThrottle],
    ) -> Annotation:
        attempt = 0
        while True:
            attempt += 1
            if throttle is not None:
                await throttle.acquire()
            try:
                response = await self.client.generate(prompt, json_mode=self.json_mode)
            except GenerationError:
                if attempt >= self.max_attempts:
                    raise
                logger.info("Retrying annotation request (attempt %d)", attempt + 1)
                continue
            return parse_annotation(response, self.fallback_length)
