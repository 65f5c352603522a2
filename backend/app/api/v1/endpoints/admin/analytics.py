"""
Admin Analytics endpoints.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func
from typing import Dict

from app.core.database import get_db
from app.models import User, Issue
from app.schemas.admin import AnalyticsData, AnalyticsEnvelope
from app.schemas.issue import IssueResponse

router = APIRouter()

RECENT_ISSUES_LIMIT = 10


async def _count_by(db: AsyncSession, column) -> Dict[str, int]:
    """Row counts grouped by ``column``, keyed by the enum value"""
    result = await db.execute(select(column, func.count()).group_by(column))
    counts = {}
    for key, count in result.all():
        counts[key.value if hasattr(key, "value") else str(key)] = count
    return counts


@router.get("", response_model=AnalyticsEnvelope)
async def get_analytics(db: AsyncSession = Depends(get_db)):
    """Issue and user totals, breakdowns and the latest issues"""
    total_issues = await db.scalar(select(func.count(Issue.id)))
    total_users = await db.scalar(select(func.count(User.id)))

    recent = await db.execute(
        select(Issue).order_by(Issue.created_at.desc()).limit(RECENT_ISSUES_LIMIT)
    )

    return AnalyticsEnvelope(
        data=AnalyticsData(
            total_issues=total_issues or 0,
            total_users=total_users or 0,
            issues_by_status=await _count_by(db, Issue.status),
            issues_by_category=await _count_by(db, Issue.category),
            users_by_role=await _count_by(db, User.role),
            recent_issues=[IssueResponse.model_validate(i) for i in recent.scalars().all()],
        )
    )
