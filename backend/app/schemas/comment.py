"""Schemas for standalone (table-backed) comments"""
from typing import Optional, List
from datetime import datetime

from app.schemas.base import CamelModel, DocumentModel
from app.schemas.auth import UserSummary


class CommentResponse(DocumentModel):
    issue_id: str
    author: Optional[UserSummary] = None
    content: str
    created_at: datetime
    updated_at: Optional[datetime] = None


class CommentEnvelope(CamelModel):
    success: bool = True
    data: CommentResponse


class CommentListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: List[CommentResponse]
