"""
Issue API Endpoints

Endpoints:
- POST /issues - Report an issue (multipart, optional ``image``)
- GET /issues - List issues; authorities only see their categories
- GET /issues/my-issues - Issues reported by the caller
- GET /issues/{issue_id} - One issue
- PUT /issues/{issue_id}/status - Change status (authority, own categories only)
- DELETE /issues/{issue_id} - Delete (authority)
- POST /issues/{issue_id}/comments - Comment on an issue
"""

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional, Union

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user, get_current_authority
from app.schemas.comment import CommentEnvelope, CommentResponse
from app.schemas.issue import (
    IssueCreate,
    StatusUpdate,
    IssueCommentCreate,
    IssueFilters,
    IssueResponse,
    IssueEnvelope,
    IssueListEnvelope,
    DeleteEnvelope,
)
from app.services.comment_service import comment_service
from app.services.issue_service import issue_service

router = APIRouter(prefix="/issues", tags=["Issues"])


@router.post("", response_model=IssueEnvelope, status_code=status.HTTP_201_CREATED)
async def create_issue(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    category: Optional[str] = Form(None),
    department: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Report a new issue. Department defaults to the reporter's."""
    data = IssueCreate(title=title, description=description, category=category, department=department)
    issue = await issue_service.create_issue(db, current_user, data, image)
    return IssueEnvelope(data=IssueResponse.model_validate(issue))


@router.get("", response_model=IssueListEnvelope)
async def list_issues(
    status_filter: Optional[str] = Query(None, alias="status"),
    category: Optional[str] = Query(None),
    department: Optional[str] = Query(None),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    List issues, newest first.

    Authorities only get issues in categories they handle, and nothing at
    all if they handle none.
    """
    filters = IssueFilters.from_query(status=status_filter, category=category, department=department)
    issues = await issue_service.list_issues(db, current_user, filters)
    return IssueListEnvelope(count=len(issues), data=[IssueResponse.model_validate(i) for i in issues])


@router.get("/my-issues", response_model=IssueListEnvelope)
async def list_my_issues(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Issues reported by the caller, newest first"""
    issues = await issue_service.list_my_issues(db, current_user)
    return IssueListEnvelope(count=len(issues), data=[IssueResponse.model_validate(i) for i in issues])


@router.get("/{issue_id}", response_model=IssueEnvelope)
async def get_issue(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    issue = await issue_service.get_issue(db, issue_id)
    return IssueEnvelope(data=IssueResponse.model_validate(issue))


@router.put("/{issue_id}/status", response_model=IssueEnvelope)
async def update_issue_status(
    issue_id: str,
    payload: StatusUpdate,
    current_user: User = Depends(get_current_authority),
    db: AsyncSession = Depends(get_db)
):
    """Change status; authorities are limited to their own categories"""
    issue = await issue_service.update_status(db, current_user, issue_id, payload.status)
    return IssueEnvelope(data=IssueResponse.model_validate(issue))


@router.delete("/{issue_id}", response_model=DeleteEnvelope)
async def delete_issue(
    issue_id: str,
    current_user: User = Depends(get_current_authority),
    db: AsyncSession = Depends(get_db)
):
    """Delete an issue. Any authority may delete any issue."""
    await issue_service.delete_issue(db, current_user, issue_id)
    return DeleteEnvelope(message="Issue deleted successfully")


@router.post(
    "/{issue_id}/comments",
    response_model=Union[IssueEnvelope, CommentEnvelope],
    status_code=status.HTTP_201_CREATED,
)
async def add_comment(
    issue_id: str,
    payload: IssueCommentCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """
    Comment on an issue.

    ``{"text": ...}`` appends to the issue's thread and returns the whole
    issue. A body with only ``{"content": ...}`` creates a standalone
    comment and returns that comment.
    """
    if payload.is_standalone:
        comment = await comment_service.add_comment(db, current_user, issue_id, payload.content)
        return CommentEnvelope(data=CommentResponse.model_validate(comment))

    issue = await issue_service.add_comment(db, current_user, issue_id, payload.text)
    return IssueEnvelope(data=IssueResponse.model_validate(issue))
