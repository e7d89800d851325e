"""
Document Store

Persistence for media documents and their per-segment annotations.

Each write method commits its own transaction so that a failed segment
insert never takes the document row or earlier segments with it.
"""

from __future__ import annotations

import uuid
from typing import Dict, List, Optional

from sqlalchemy import select, delete, func
from sqlalchemy.ext.asyncio import AsyncSession

from .models import MediaDocument, AnalysisChunk
from ..annotation.models import Annotation


class DocumentStore:
    """
    Async SQLAlchemy store for MediaDocument and AnalysisChunk rows.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize with an async database session.

        Parameters
        ----------
        session : AsyncSession
            SQLAlchemy async session for database operations.
        """
        self._session = session

    async def _commit(self) -> None:
        try:
            await self._session.commit()
        except Exception:
            await self._session.rollback()
            raise

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def create_document(
        self,
        name: str,
        media_type: str,
        kind: str,
        size: int,
        file_url: Optional[str] = None,
        user_tags: Optional[str] = None,
        annotation: Optional[Annotation] = None,
    ) -> MediaDocument:
        """
        Insert a document row and return it with its generated id.
        """
        document = MediaDocument(
            name=name,
            media_type=media_type,
            kind=kind,
            size=size,
            file_url=file_url,
            user_tags=user_tags,
        )
        if annotation is not None:
            document.summary = annotation.summary
            document.key_insights = annotation.key_insights
            document.suggested_tags = annotation.suggested_tags
            document.notable_features = annotation.notable_features

        self._session.add(document)
        await self._commit()
        return document

    async def add_segment(
        self,
        document_id: uuid.UUID,
        chunk_index: int,
        chunk_content: str,
        annotation: Annotation,
    ) -> AnalysisChunk:
        """
        Insert one segment annotation.
        """
        segment = AnalysisChunk(
            document_id=document_id,
            chunk_index=chunk_index,
            chunk_content=chunk_content,
            summary=annotation.summary,
            key_insights=annotation.key_insights,
            suggested_tags=annotation.suggested_tags,
            notable_features=annotation.notable_features,
        )
        self._session.add(segment)
        await self._commit()
        return segment

    async def update_document(
        self,
        document_id: uuid.UUID,
        name: Optional[str] = None,
        user_tags: Optional[str] = None,
        clear_user_tags: bool = False,
    ) -> Optional[MediaDocument]:
        """
        Edit the user-editable fields of a document.

        `None` leaves a field unchanged; pass `clear_user_tags` to remove
        existing tags. Returns None if the document does not exist.
        """
        document = await self.get_document(document_id)
        if document is None:
            return None

        if name is not None:
            document.name = name
        if clear_user_tags:
            document.user_tags = None
        elif user_tags is not None:
            document.user_tags = user_tags

        await self._commit()
        return document

    async def delete_document(self, document_id: uuid.UUID) -> bool:
        """
        Remove a document and all of its segments.

        Returns True if a document row was deleted.
        """
        await self._session.execute(
            delete(AnalysisChunk).where(AnalysisChunk.document_id == document_id)
        )
        result = await self._session.execute(
            delete(MediaDocument).where(MediaDocument.id == document_id)
        )
        await self._commit()
        return result.rowcount > 0

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_document(self, document_id: uuid.UUID) -> Optional[MediaDocument]:
        result = await self._session.execute(
            select(MediaDocument).where(MediaDocument.id == document_id)
        )
        return result.scalar_one_or_none()

    async def list_documents(
        self,
        kind: Optional[str] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[MediaDocument]:
        """
        Return documents newest first, optionally filtered by media kind.
        """
        stmt = select(MediaDocument).order_by(MediaDocument.created_at.desc())

        if kind is not None:
            stmt = stmt.where(MediaDocument.kind == kind)

        result = await self._session.execute(stmt.limit(limit).offset(offset))
        return list(result.scalars().all())

    async def get_segments(self, document_id: uuid.UUID) -> List[AnalysisChunk]:
        """
        Return a document's segments ordered by chunk index.

        Indices may have gaps where annotation failed.
        """
        result = await self._session.execute(
            select(AnalysisChunk)
            .where(AnalysisChunk.document_id == document_id)
            .order_by(AnalysisChunk.chunk_index)
        )
        return list(result.scalars().all())

    async def get_stats(self) -> dict:
        """
        Return aggregate counts across all documents.
        """
        kind_result = await self._session.execute(
            select(
                MediaDocument.kind,
                func.count(MediaDocument.id),
                func.coalesce(func.sum(MediaDocument.size), 0),
            ).group_by(MediaDocument.kind)
        )

        by_kind: Dict[str, int] = {}
        total_documents = 0
        total_bytes = 0
        for kind, count, size in kind_result.all():
            by_kind[kind] = count
            total_documents += count
            total_bytes += int(size)

        segments_result = await self._session.execute(
            select(func.count()).select_from(AnalysisChunk)
        )
        total_segments = segments_result.scalar() or 0

        return {
            "total_documents": total_documents,
            "total_bytes": total_bytes,
            "total_segments": total_segments,
            "by_kind": by_kind,
        }
