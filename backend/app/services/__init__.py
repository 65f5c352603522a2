from app.services.email_service import EmailService, email_service
from app.services.upload_service import UploadService, upload_service
from app.services.auth_service import AuthService, auth_service
from app.services.issue_service import IssueService, issue_service
from app.services.comment_service import CommentService, comment_service

__all__ = [
    # Infrastructure
    "EmailService",
    "email_service",
    "UploadService",
    "upload_service",
    # Domain services
    "AuthService",
    "auth_service",
    "IssueService",
    "issue_service",
    "CommentService",
    "comment_service",
]
