from pydantic import BaseModel, BeforeValidator, EmailStr, field_validator
from typing import Annotated, Optional, List
from datetime import datetime

from app.models.user import UserRole
from app.schemas.base import CamelModel, DocumentModel


def _normalize_email(value):
    if isinstance(value, str):
        return value.strip().lower() or None
    return value


# Emails are compared lower-cased and stripped everywhere
EmailField = Annotated[Optional[EmailStr], BeforeValidator(_normalize_email)]
EmailLookup = Annotated[Optional[str], BeforeValidator(_normalize_email)]


class RegistrationRequest(BaseModel):
    """Body of /auth/send-otp and /auth/register.

    Everything is optional here so the auth service can answer with its
    own messages ("Please provide all required fields", ...).
    """
    name: Optional[str] = None
    email: EmailField = None
    password: Optional[str] = None
    role: Optional[str] = None
    department: Optional[str] = None
    categories: Optional[List[str]] = None

    @field_validator('name', 'department', mode='before')
    @classmethod
    def strip_text(cls, value):
        if isinstance(value, str):
            return value.strip()
        return value


class VerifyOTPRequest(BaseModel):
    email: EmailLookup = None
    otp: Optional[str] = None

    @field_validator('otp', mode='before')
    @classmethod
    def coerce_otp(cls, value):
        # Some clients send the code as a number
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class UserLogin(BaseModel):
    email: EmailLookup = None
    password: Optional[str] = None


class ProfileUpdate(BaseModel):
    """Fields left out (or empty) keep their current value"""
    name: Optional[str] = None
    email: EmailField = None
    department: Optional[str] = None
    avatar: Optional[str] = None
    password: Optional[str] = None


# ============================================
# Responses
# ============================================

class UserSummary(DocumentModel):
    """Populated reporter / author reference"""
    name: str
    email: str
    role: UserRole
    department: Optional[str] = None


class UserResponse(DocumentModel):
    name: str
    email: str
    role: UserRole
    department: Optional[str] = ""
    categories: List[str] = []
    avatar: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class AuthUserResponse(UserResponse):
    """User profile plus a fresh session token"""
    token: str


class SendOTPResponse(CamelModel):
    success: bool = True
    message: str = "OTP sent to your email address"
    email: str
    preview_url: Optional[str] = None


class VerifyOTPResponse(CamelModel):
    success: bool = True
    message: str = "Registration successful"
    user: AuthUserResponse
