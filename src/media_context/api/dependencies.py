from functools import lru_cache
from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from ..db import get_async_session, DocumentStore
from ..llm.client import GeminiClient
from ..annotation.pipeline import ChunkedAnnotationPipeline
from ..ingest import MediaIngestor

@lru_cache
def get_gemini_client() -> GeminiClient:
    return GeminiClient()

def get_document_store(
    session: Annotated[AsyncSession, Depends(get_async_session)],
) -> DocumentStore:
    return DocumentStore(session)

def get_pipeline(
    client: Annotated[GeminiClient, Depends(get_gemini_client)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
) -> ChunkedAnnotationPipeline:
    # One throttle per request; concurrent uploads are paced independently.
    return ChunkedAnnotationPipeline(client=client, store=store)

def get_ingestor(
    client: Annotated[GeminiClient, Depends(get_gemini_client)],
    store: Annotated[DocumentStore, Depends(get_document_store)],
    pipeline: Annotated[ChunkedAnnotationPipeline, Depends(get_pipeline)],
) -> MediaIngestor:
    return MediaIngestor(client=client, store=store, pipeline=pipeline)
