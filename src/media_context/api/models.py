"""
API Models

Pydantic models used for request/response validation across the
document, segment and statistics endpoints.

Design Goals
------------
- Strong typing
- Safe defaults (no shared mutable state)
- Direct mapping from ORM rows via from_attributes
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional, Dict, Any, Literal
from pydantic import BaseModel, Field, ConfigDict


class OperationResult(BaseModel):
    """
    Standardized mutation operation result.
    """
    status: Literal["updated", "deleted", "created", "ok"]
    count: Optional[int] = Field(default=None, ge=0)
    details: Optional[Dict[str, Any]] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Document Requests
# ---------------------------------------------------------------------

class TextDocumentRequest(BaseModel):
    """
    Submit raw text for chunked annotation.
    """
    name: str = Field(..., min_length=1)
    content: str = Field(..., min_length=1)
    media_type: str = Field(default="text/plain", min_length=1)
    user_tags: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class UploadRequest(BaseModel):
    """
    Upload a file as base64 data.
    """
    filename: str = Field(..., min_length=1)
    content_type: str = ""
    data: str = Field(..., description="Base64-encoded file contents.")
    user_tags: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


class DocumentUpdateRequest(BaseModel):
    """
    Edit user-owned document fields. Omitted fields are left unchanged;
    an explicit null `user_tags` clears the tags.
    """
    name: Optional[str] = Field(default=None, min_length=1)
    user_tags: Optional[str] = None

    model_config = ConfigDict(extra="forbid")


# ---------------------------------------------------------------------
# Responses
# ---------------------------------------------------------------------

class DocumentResponse(BaseModel):
    id: uuid.UUID
    created_at: datetime
    name: str
    media_type: str
    kind: str
    size: int
    file_url: Optional[str] = None
    user_tags: Optional[str] = None
    summary: Optional[str] = None
    key_insights: Optional[str] = None
    suggested_tags: Optional[str] = None
    notable_features: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class SegmentResponse(BaseModel):
    document_id: uuid.UUID
    chunk_index: int
    chunk_content: Optional[str] = None
    summary: Optional[str] = None
    key_insights: Optional[str] = None
    suggested_tags: Optional[str] = None
    notable_features: Optional[str] = None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class StatsResponse(BaseModel):
    total_documents: int = Field(..., ge=0)
    total_bytes: int = Field(..., ge=0)
    total_segments: int = Field(..., ge=0)
    by_kind: Dict[str, int] = Field(default_factory=dict)

    model_config = ConfigDict(extra="forbid")

