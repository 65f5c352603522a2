# Pydantic schemas
from app.schemas.auth import (
    RegistrationRequest,
    VerifyOTPRequest,
    UserLogin,
    ProfileUpdate,
    UserSummary,
    UserResponse,
    AuthUserResponse,
    SendOTPResponse,
    VerifyOTPResponse,
)
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
from app.schemas.comment import (
    CommentResponse,
    CommentEnvelope,
    CommentListEnvelope,
)
from app.schemas.admin import (
    AnalyticsData,
    AnalyticsEnvelope,
    UserListEnvelope,
    MessageResponse,
)
