"""Pydantic schemas for issues and their comment threads"""
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional, List
from datetime import datetime

from app.core.exceptions import ValidationError
from app.models.issue import IssueCategory, IssueStatus
from app.models.user import UserRole
from app.schemas.base import CamelModel, DocumentModel
from app.schemas.auth import UserSummary


# ==================== Requests ====================

class IssueCreate(BaseModel):
    """Form fields of POST /issues (the image travels separately)"""
    title: Optional[str] = None
    description: Optional[str] = None
    category: Optional[str] = None
    department: Optional[str] = None


class StatusUpdate(BaseModel):
    status: Optional[str] = None


class IssueCommentCreate(BaseModel):
    """``text`` is the thread comment; a body with only ``content`` is a standalone comment"""
    text: Optional[str] = None
    content: Optional[str] = None

    @property
    def is_standalone(self) -> bool:
        return self.text is None and self.content is not None


class IssueFilters(BaseModel):
    """Immutable list criteria. Unset fields do not filter."""

    model_config = ConfigDict(frozen=True)

    status: Optional[IssueStatus] = None
    category: Optional[IssueCategory] = None
    department: Optional[str] = None

    @classmethod
    def from_query(
        cls,
        status: Optional[str] = None,
        category: Optional[str] = None,
        department: Optional[str] = None,
    ) -> "IssueFilters":
        """Build filters from raw query strings; blank means unset."""
        status = (status or "").strip() or None
        category = (category or "").strip() or None
        department = (department or "").strip() or None

        if status is not None:
            try:
                status = IssueStatus(status)
            except ValueError:
                raise ValidationError(f"Invalid status filter: {status}", field="status")
        if category is not None:
            try:
                category = IssueCategory(category)
            except ValueError:
                raise ValidationError(f"Invalid category filter: {category}", field="category")

        return cls(status=status, category=category, department=department)


# ==================== Responses ====================

class CommentAuthor(DocumentModel):
    name: str
    email: str
    role: UserRole


class IssueCommentResponse(DocumentModel):
    user: Optional[CommentAuthor] = None
    text: str
    created_at: datetime


class IssueResponse(DocumentModel):
    title: str
    description: str
    category: IssueCategory
    status: IssueStatus
    reporter: Optional[UserSummary] = None
    department: Optional[str] = None
    image_url: Optional[str] = None
    comments: List[IssueCommentResponse] = []
    created_at: datetime
    updated_at: Optional[datetime] = None


class IssueEnvelope(CamelModel):
    success: bool = True
    data: IssueResponse


class IssueListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: List[IssueResponse]


class DeleteEnvelope(CamelModel):
    success: bool = True
    message: str
    data: dict = Field(default_factory=dict)
