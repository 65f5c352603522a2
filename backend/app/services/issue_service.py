"""
Issue Service - Business logic for campus issues

Handles:
- Creating issues (with an optional photo)
- Listing with filters; authorities only see their own categories
- Status changes, limited for authorities to their categories
- The per-issue comment thread
- Deletion
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, false, Select
from typing import Optional, List

from fastapi import UploadFile

from app.core.exceptions import (
    ForbiddenError,
    IssueNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.models.comment import Comment
from app.models.issue import Issue, IssueCategory, IssueStatus
from app.models.user import User
from app.schemas.issue import IssueCreate, IssueFilters
from app.services.upload_service import upload_service


STATUS_CHOICES_MESSAGE = "Please provide a valid status: pending, in-progress, or resolved"


def build_issue_query(filters: IssueFilters, viewer: Optional[User] = None) -> Select:
    """
    Query for the issues ``viewer`` may see under ``filters``, newest first.

    For an authority the category criterion is intersected with the
    categories they handle. An authority with no categories gets a query
    that matches nothing whatever the other filters say.
    """
    query = select(Issue)

    if filters.status is not None:
        query = query.where(Issue.status == filters.status)
    if filters.department is not None:
        query = query.where(Issue.department == filters.department)

    if viewer is not None and viewer.is_authority:
        allowed = [IssueCategory(c) for c in (viewer.categories or []) if c in IssueCategory._value2member_map_]
        if filters.category is not None:
            allowed = [c for c in allowed if c == filters.category]
        if not allowed:
            query = query.where(false())
        else:
            query = query.where(Issue.category.in_(allowed))
    elif filters.category is not None:
        query = query.where(Issue.category == filters.category)

    return query.order_by(Issue.created_at.desc())


class IssueService:
    """Service for issues and their comment threads"""

    async def _get(self, db: AsyncSession, issue_id: str, fresh: bool = False) -> Issue:
        query = select(Issue).where(Issue.id == str(issue_id))
        if fresh:
            query = query.execution_options(populate_existing=True)
        result = await db.execute(query)
        issue = result.scalar_one_or_none()
        if issue is None:
            raise IssueNotFoundError()
        return issue

    # ==================== CREATE ====================

    async def create_issue(
        self,
        db: AsyncSession,
        reporter: User,
        data: IssueCreate,
        image: Optional[UploadFile] = None,
    ) -> Issue:
        """
        Create an issue reported by ``reporter``.

        Department falls back to the reporter's; status always starts as
        pending.
        """
        title = (data.title or "").strip()
        description = (data.description or "").strip()
        category = (data.category or "").strip()
        if not title or not description or not category:
            raise ValidationError("Please provide title, description, and category")

        try:
            category = IssueCategory(category.lower())
        except ValueError:
            raise ValidationError(f"Invalid category: {category}", field="category")

        image_url = None
        if image is not None and image.filename:
            image_url = await upload_service.save_issue_image(image)

        issue = Issue(
            title=title,
            description=description,
            category=category,
            status=IssueStatus.PENDING,
            reporter_id=reporter.id,
            department=(data.department or "").strip() or reporter.department,
            image_url=image_url,
        )
        db.add(issue)
        try:
            await db.commit()
        except Exception:
            await db.rollback()
            # nothing will reference the stored photo
            await upload_service.delete_public_file(image_url)
            raise

        logger.log_issue_event("created", str(issue.id), category=category.value, reporter=str(reporter.id))
        return await self._get(db, issue.id, fresh=True)

    # ==================== READ ====================

    async def list_issues(self, db: AsyncSession, viewer: User, filters: IssueFilters) -> List[Issue]:
        """Issues visible to ``viewer`` matching ``filters``, newest first"""
        result = await db.execute(build_issue_query(filters, viewer))
        return list(result.scalars().all())

    async def list_my_issues(self, db: AsyncSession, user: User) -> List[Issue]:
        """Everything ``user`` reported, regardless of category"""
        result = await db.execute(
            select(Issue)
            .where(Issue.reporter_id == user.id)
            .order_by(Issue.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_issue(self, db: AsyncSession, issue_id: str) -> Issue:
        return await self._get(db, issue_id)

    # ==================== UPDATE ====================

    async def update_status(self, db: AsyncSession, user: User, issue_id: str, status: Optional[str]) -> Issue:
        """
        Set an issue's status.

        Any status may follow any other. Authorities may only touch issues
        in categories they handle.
        """
        try:
            new_status = IssueStatus((status or "").strip())
        except ValueError:
            raise ValidationError(STATUS_CHOICES_MESSAGE, field="status")

        issue = await self._get(db, issue_id)

        if user.is_authority and not user.handles(issue.category):
            logger.warning(
                f"[Issues] {user.email} denied status change on {issue.id} ({issue.category.value})",
                extra={"event_type": "issue_forbidden", "issue_id": str(issue.id)}
            )
            raise ForbiddenError("Not authorized to update issues from other categories")

        previous = issue.status
        issue.status = new_status
        await db.commit()

        logger.log_issue_event(
            "status_changed", str(issue.id),
            from_status=previous.value, to_status=new_status.value, actor=str(user.id)
        )
        return await self._get(db, issue.id, fresh=True)

    async def add_comment(self, db: AsyncSession, user: User, issue_id: str, text: Optional[str]) -> Issue:
        """Append to the issue's thread and return the whole issue"""
        if not text or not text.strip():
            raise ValidationError("Comment text is required", field="text")

        issue = await self._get(db, issue_id)
        issue.add_comment(user, text)
        await db.commit()

        logger.log_issue_event("commented", str(issue.id), actor=str(user.id), comments=len(issue.comments))
        return await self._get(db, issue.id, fresh=True)

    # ==================== DELETE ====================

    async def delete_issue(self, db: AsyncSession, user: User, issue_id: str) -> None:
        """
        Remove an issue, its thread, its standalone comments and its photo.

        Only role-gated at the route: there is no category check here,
        unlike update_status.
        """
        issue = await self._get(db, issue_id)
        image_url = issue.image_url

        await db.execute(delete(Comment).where(Comment.issue_id == issue.id))
        await db.delete(issue)
        await db.commit()

        await upload_service.delete_public_file(image_url)
        logger.log_issue_event("deleted", str(issue_id), actor=str(user.id))


# Singleton instance
issue_service = IssueService()
