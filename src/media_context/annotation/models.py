"""
Annotation Data Models

Pydantic models shared by the annotation pipeline, the ingestor and the
HTTP layer.
"""

from __future__ import annotations

import uuid
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict, field_validator


class Annotation(BaseModel):
    """
    Four-field structured annotation derived from a model response.

    Fields are positional in the numbered response format, so a model that
    reorders or omits sections yields fields that do not match their names.
    """

    summary: str = ""
    key_insights: str = ""
    suggested_tags: str = ""
    notable_features: str = ""

    model_config = ConfigDict(extra="forbid", frozen=True)

    @field_validator(
        "summary", "key_insights", "suggested_tags", "notable_features", mode="before"
    )
    @classmethod
    def _join_lists(cls, value):
        # JSON replies often carry tags or insights as arrays
        if isinstance(value, list):
            return ", ".join(str(item).strip() for item in value if str(item).strip())
        if value is None:
            return ""
        return value


class DocumentDraft(BaseModel):
    """
    Attributes of a Document before it is persisted.
    """

    name: str = Field(..., min_length=1)
    media_type: str = Field(default="text/plain", min_length=1)
    size: Optional[int] = Field(default=None, ge=0)
    file_url: Optional[str] = None
    user_tags: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class SegmentOutcome(BaseModel):
    """Result of annotating a single segment."""

    index: int = Field(..., ge=0)
    ok: bool
    error: Optional[str] = None

    model_config = ConfigDict(extra="forbid", frozen=True)


class SegmentFailure(BaseModel):
    index: int = Field(..., ge=0)
    reason: str

    model_config = ConfigDict(extra="forbid")


class PipelineReport(BaseModel):
    """
    Aggregate result of one pipeline run.

    `succeeded`, `failed` and `skipped` together cover every index in
    ``range(segment_count)``.
    """

    document_id: uuid.UUID
    segment_count: int = Field(..., ge=0)
    succeeded: List[int] = Field(default_factory=list)
    failed: List[SegmentFailure] = Field(default_factory=list)
    skipped: List[int] = Field(default_factory=list)
    cancelled: bool = False

    model_config = ConfigDict(extra="forbid")

    @property
    def complete(self) -> bool:
        return not self.failed and not self.skipped
