from typing import Dict, List

from app.schemas.base import CamelModel
from app.schemas.auth import UserResponse
from app.schemas.issue import IssueResponse


# ==================== Analytics Schemas ====================

class AnalyticsData(CamelModel):
    """Counts across the whole campus"""
    total_issues: int
    total_users: int
    issues_by_status: Dict[str, int]
    issues_by_category: Dict[str, int]
    users_by_role: Dict[str, int]
    recent_issues: List[IssueResponse]


class AnalyticsEnvelope(CamelModel):
    success: bool = True
    data: AnalyticsData


# ==================== User Management Schemas ====================

class UserListEnvelope(CamelModel):
    success: bool = True
    count: int
    data: List[UserResponse]


class MessageResponse(CamelModel):
    success: bool = True
    message: str
