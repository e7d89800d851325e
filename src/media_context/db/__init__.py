"""
Database Package

Provides SQLAlchemy async session management and model definitions
for media documents and their segment annotations.
"""

from .session import get_async_session, async_engine, AsyncSessionLocal, init_models
from .models import Base, MediaDocument, AnalysisChunk
from .document_store import DocumentStore

__all__ = [
    "get_async_session",
    "async_engine",
    "AsyncSessionLocal",
    "init_models",
    "Base",
    "MediaDocument",
    "AnalysisChunk",
    "DocumentStore",
]
