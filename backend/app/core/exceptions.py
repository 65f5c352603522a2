"""
Custom Exceptions for Campus Connect
====================================

Services raise these instead of HTTPException so the same rules can be
exercised without a request. A single handler in app.main turns every
CampusConnectError into ``{"message": ...}`` with the error's status code.

Usage:
    from app.core.exceptions import NotFoundError

    if not issue:
        raise NotFoundError("Issue not found")
"""

from typing import Optional, Any, Dict


class CampusConnectError(Exception):
    """Base exception for all Campus Connect errors"""

    status_code: int = 500
    default_message: str = "Internal Server Error"

    def __init__(
        self,
        message: Optional[str] = None,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message or self.default_message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(CampusConnectError):
    """Input validation failed"""

    status_code = 400
    default_message = "Invalid request"

    def __init__(self, message: Optional[str] = None, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


class ConflictError(CampusConnectError):
    """Resource already exists (duplicate email)"""

    status_code = 400
    default_message = "User already exists with this email"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="CONFLICT")


class InvalidOrExpiredOTPError(CampusConnectError):
    """OTP is wrong, expired or already consumed - deliberately indistinguishable"""

    status_code = 400
    default_message = "Invalid or expired OTP"

    def __init__(self):
        super().__init__(code="INVALID_OTP")


# ============================================
# Authentication & Authorization Errors
# ============================================

class UnauthorizedError(CampusConnectError):
    """Missing, malformed or expired token, or the token's user is gone"""

    status_code = 401
    default_message = "Not authorized"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="UNAUTHORIZED")


class InvalidCredentialsError(UnauthorizedError):
    """Login failed - same text for unknown email and wrong password"""

    default_message = "Invalid email or password"

    def __init__(self):
        super().__init__()
        self.code = "INVALID_CREDENTIALS"


class ForbiddenError(CampusConnectError):
    """User not allowed to perform this action"""

    status_code = 403
    default_message = "Not authorized to access this resource"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="FORBIDDEN")


# ============================================
# Resource Errors (404-type)
# ============================================

class NotFoundError(CampusConnectError):
    """Requested resource does not exist"""

    status_code = 404
    default_message = "Not Found"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message, code="NOT_FOUND")


class IssueNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Issue not found")


class UserNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("User not found")


class CommentNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__("Comment not found")
