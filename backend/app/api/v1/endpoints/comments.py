"""
Standalone Comment Endpoints

- GET /issues/{issue_id}/comments - Comments stored for an issue, oldest first
- DELETE /comments/{comment_id} - Delete own comment

Adding one goes through POST /issues/{issue_id}/comments with a
``content`` body (see issues.py).
"""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.models.user import User
from app.modules.auth.dependencies import get_current_user
from app.schemas.comment import CommentListEnvelope, CommentResponse
from app.schemas.issue import DeleteEnvelope
from app.services.comment_service import comment_service

router = APIRouter(tags=["Comments"])


@router.get("/issues/{issue_id}/comments", response_model=CommentListEnvelope)
async def list_comments(
    issue_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    comments = await comment_service.list_comments(db, issue_id)
    return CommentListEnvelope(
        count=len(comments),
        data=[CommentResponse.model_validate(c) for c in comments],
    )


@router.delete("/comments/{comment_id}", response_model=DeleteEnvelope)
async def delete_comment(
    comment_id: str,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Only the comment's author may delete it"""
    await comment_service.delete_comment(db, current_user, comment_id)
    return DeleteEnvelope(message="Comment deleted successfully")
