"""
Admin User Management endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update

from app.core.database import get_db
from app.core.exceptions import UserNotFoundError, ValidationError
from app.core.logging_config import logger
from app.models import User, Issue, IssueComment, Comment
from app.modules.auth.dependencies import get_current_user
from app.schemas.admin import UserListEnvelope, MessageResponse
from app.schemas.auth import UserResponse

router = APIRouter()


@router.get("", response_model=UserListEnvelope)
async def list_users(db: AsyncSession = Depends(get_db)):
    """All users, newest first"""
    result = await db.execute(select(User).order_by(User.created_at.desc()))
    users = result.scalars().all()
    return UserListEnvelope(
        count=len(users),
        data=[UserResponse.model_validate(u) for u in users],
    )


@router.delete("/{user_id}", response_model=MessageResponse)
async def delete_user(
    user_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    """
    Delete a user account.

    Their issues and comments stay and show no author afterwards.
    """
    user = await db.get(User, user_id)
    if not user:
        raise UserNotFoundError()

    if str(user.id) == str(current_user.id):
        raise ValidationError("Cannot delete your own account")

    await db.execute(update(Issue).where(Issue.reporter_id == user.id).values(reporter_id=None))
    await db.execute(update(IssueComment).where(IssueComment.user_id == user.id).values(user_id=None))
    await db.execute(update(Comment).where(Comment.author_id == user.id).values(author_id=None))
    await db.delete(user)
    await db.commit()

    logger.info(
        f"[Admin] {current_user.email} deleted user {user.email}",
        extra={"event_type": "admin_user_deleted", "target_user": str(user_id)}
    )

    return MessageResponse(message="User deleted successfully")
