"""
Document Routes

This module exposes endpoints for:
- Submitting text for chunked annotation
- Uploading files (text is chunked, other media annotated in one pass)
- Browsing, editing and deleting documents
- Reading back a document's segment annotations
"""

import base64
import binascii
import uuid
from typing import List, Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from .models import (
    TextDocumentRequest,
    UploadRequest,
    DocumentUpdateRequest,
    DocumentResponse,
    SegmentResponse,
    OperationResult,
)
from .dependencies import get_document_store, get_pipeline, get_ingestor
from ..annotation.models import DocumentDraft, PipelineReport
from ..annotation.pipeline import ChunkedAnnotationPipeline
from ..db.document_store import DocumentStore
from ..ingest import MediaIngestor, IngestResult, FileTooLargeError

router = APIRouter(prefix="/documents", tags=["documents"])


# ---------------------------------------------------------------------
# Helper Functions
# ---------------------------------------------------------------------

def _not_found(document_id: uuid.UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Document {document_id} not found",
    )


def _decode_upload(data: str) -> bytes:
    try:
        return base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise HTTPException(
            status_code=422,
            detail="Upload data is not valid base64",
        )


# ---------------------------------------------------------------------
# Annotation Routes
# ---------------------------------------------------------------------

@router.post(
    "/text",
    response_model=PipelineReport,
    summary="Annotate a text document chunk by chunk",
)
async def create_text_document(
    req: TextDocumentRequest,
    pipeline: Annotated[ChunkedAnnotationPipeline, Depends(get_pipeline)],
) -> PipelineReport:
    """
    Store a text document and annotate each of its segments.

    Returns once every segment has been attempted. Failed segments are
    listed in the report and leave gaps in the stored segment indices.
    """
    draft = DocumentDraft(
        name=req.name,
        media_type=req.media_type,
        user_tags=req.user_tags,
    )
    return await pipeline.run(draft, req.content)


@router.post(
    "/upload",
    response_model=IngestResult,
    summary="Upload and annotate a file",
)
async def upload_document(
    req: UploadRequest,
    ingestor: Annotated[MediaIngestor, Depends(get_ingestor)],
) -> IngestResult:
    raw = _decode_upload(req.data)

    try:
        return await ingestor.ingest(
            filename=req.filename,
            content_type=req.content_type,
            data=raw,
            user_tags=req.user_tags,
        )
    except FileTooLargeError as exc:
        raise HTTPException(
            status_code=413,
            detail=str(exc),
        )


# ---------------------------------------------------------------------
# Browse / Edit Routes
# ---------------------------------------------------------------------

@router.get(
    "",
    response_model=List[DocumentResponse],
    summary="List documents, newest first",
)
async def list_documents(
    store: Annotated[DocumentStore, Depends(get_document_store)],
    kind: Optional[str] = Query(None, pattern="^(text|image|video|document)$"),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
) -> List[DocumentResponse]:
    documents = await store.list_documents(kind=kind, limit=limit, offset=offset)
    return [DocumentResponse.model_validate(doc) for doc in documents]


@router.get(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Get a single document",
)
async def get_document(
    document_id: uuid.UUID,
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> DocumentResponse:
    document = await store.get_document(document_id)
    if document is None:
        raise _not_found(document_id)
    return DocumentResponse.model_validate(document)


@router.patch(
    "/{document_id}",
    response_model=DocumentResponse,
    summary="Rename a document or edit its user tags",
)
async def update_document(
    document_id: uuid.UUID,
    req: DocumentUpdateRequest,
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> DocumentResponse:
    """
    Omitted fields are left unchanged. An explicit `"user_tags": null`
    clears the tags.
    """
    document = await store.update_document(
        document_id,
        name=req.name,
        user_tags=req.user_tags,
        clear_user_tags="user_tags" in req.model_fields_set and req.user_tags is None,
    )
    if document is None:
        raise _not_found(document_id)
    return DocumentResponse.model_validate(document)


@router.delete(
    "/{document_id}",
    response_model=OperationResult,
    summary="Delete a document and its segments",
)
async def delete_document(
    document_id: uuid.UUID,
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> OperationResult:
    deleted = await store.delete_document(document_id)
    if not deleted:
        raise _not_found(document_id)
    return OperationResult(status="deleted", count=1)


@router.get(
    "/{document_id}/segments",
    response_model=List[SegmentResponse],
    summary="Get a document's segment annotations in order",
)
async def get_segments(
    document_id: uuid.UUID,
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> List[SegmentResponse]:
    """
    Return stored segments ordered by index. Indices of failed segments
    are absent.
    """
    document = await store.get_document(document_id)
    if document is None:
        raise _not_found(document_id)

    segments = await store.get_segments(document_id)
    return [SegmentResponse.model_validate(segment) for segment in segments]
