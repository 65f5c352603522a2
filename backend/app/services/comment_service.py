"""
Comment Service - standalone comments stored in their own table
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Optional, List

from app.core.exceptions import (
    CommentNotFoundError,
    ForbiddenError,
    IssueNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.comment import Comment
from app.models.issue import Issue
from app.models.user import User


class CommentService:
    """Service for the standalone comment collection"""

    async def _ensure_issue(self, db: AsyncSession, issue_id: str) -> None:
        result = await db.execute(select(Issue.id).where(Issue.id == str(issue_id)))
        if result.scalar_one_or_none() is None:
            raise IssueNotFoundError()

    async def add_comment(self, db: AsyncSession, author: User, issue_id: str, content: Optional[str]) -> Comment:
        """Store a trimmed comment on an existing issue"""
        if not content or not content.strip():
            raise ValidationError("Please provide comment content", field="content")

        await self._ensure_issue(db, issue_id)

        comment = Comment(
            issue_id=str(issue_id),
            author_id=author.id,
            author=author,
            content=content.strip(),
        )
        db.add(comment)
        await db.commit()

        logger.log_issue_event("comment_added", str(issue_id), comment_id=str(comment.id), actor=str(author.id))
        return comment

    async def list_comments(self, db: AsyncSession, issue_id: str) -> List[Comment]:
        """Comments on an issue, oldest first"""
        await self._ensure_issue(db, issue_id)

        result = await db.execute(
            select(Comment)
            .where(Comment.issue_id == str(issue_id))
            .order_by(Comment.created_at.asc())
        )
        return list(result.scalars().all())

    async def delete_comment(self, db: AsyncSession, user: User, comment_id: str) -> None:
        """Only the author may delete a comment"""
        result = await db.execute(select(Comment).where(Comment.id == str(comment_id)))
        comment = result.scalar_one_or_none()
        if comment is None:
            raise CommentNotFoundError()

        if comment.author_id != user.id:
            raise ForbiddenError("Not authorized to delete this comment")

        await db.delete(comment)
        await db.commit()

        logger.log_issue_event("comment_deleted", str(comment.issue_id), comment_id=str(comment_id), actor=str(user.id))


# Singleton instance
comment_service = CommentService()
