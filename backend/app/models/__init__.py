# Re-export all models for convenient imports
from app.models.user import User, UserRole, LEGACY_ROLE_ALIASES
from app.models.otp import OTP
from app.models.issue import Issue, IssueComment, IssueCategory, IssueStatus
from app.models.comment import Comment

__all__ = [
    # User
    "User",
    "UserRole",
    "LEGACY_ROLE_ALIASES",
    # Registration
    "OTP",
    # Issues
    "Issue",
    "IssueComment",
    "IssueCategory",
    "IssueStatus",
    # Legacy comments
    "Comment",
]
