"""
Library Statistics

Aggregate counts over the stored documents and segment annotations,
used by dashboard views.
"""

from typing import Annotated

from fastapi import APIRouter, Depends

from .models import StatsResponse
from .dependencies import get_document_store
from ..db.document_store import DocumentStore

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsResponse, summary="Get library statistics")
async def get_stats(
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> StatsResponse:
    return StatsResponse(**await store.get_stats())
