"""
SQLAlchemy Models

Defines the database schema for:
- Media documents (uploaded or imported content, optional single-pass annotation)
- Analysis chunks (per-segment annotations of long text documents)
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    BigInteger,
    String,
    Integer,
    Text,
    DateTime,
    ForeignKey,
    Index,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all models."""
    pass


# ---------------------------------------------------------------------
# Media Document Model
# ---------------------------------------------------------------------

class MediaDocument(Base):
    """
    An uploaded or imported unit of content.

    The four annotation columns hold a single-pass annotation and are left
    empty for documents annotated chunk by chunk.
    """
    __tablename__ = "media_context"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid.uuid4,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )
    name: Mapped[str] = mapped_column(Text, nullable=False)
    media_type: Mapped[str] = mapped_column(String(255), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)  # text | image | video | document
    size: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    file_url: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    user_tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_insights: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suggested_tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notable_features: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_media_context_created", "created_at"),
    )


# ---------------------------------------------------------------------
# Analysis Chunk Model
# ---------------------------------------------------------------------

class AnalysisChunk(Base):
    """
    Annotation of one segment of a document. Insert-only.
    """
    __tablename__ = "media_analysis_chunk"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("media_context.id", ondelete="CASCADE"),
        nullable=False,
    )
    chunk_index: Mapped[int] = mapped_column(Integer, nullable=False)
    chunk_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    summary: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    key_insights: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    suggested_tags: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    notable_features: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=_utcnow,
    )

    __table_args__ = (
        UniqueConstraint("document_id", "chunk_index", name="uq_chunk_document_index"),
        Index("idx_chunk_document", "document_id", "chunk_index"),
    )
