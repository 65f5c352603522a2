from fastapi import APIRouter, Depends, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.database import get_db
from app.core.config import settings
from app.core.security import create_user_token
from app.models.user import User
from app.schemas.auth import (
    RegistrationRequest,
    VerifyOTPRequest,
    UserLogin,
    ProfileUpdate,
    UserResponse,
    AuthUserResponse,
    SendOTPResponse,
    VerifyOTPResponse,
)
from app.modules.auth.dependencies import get_current_user
from app.services.auth_service import auth_service
from app.core.rate_limiter import limiter, SEND_OTP_LIMIT, LOGIN_LIMIT, REGISTER_LIMIT


router = APIRouter()


def _with_token(user: User) -> AuthUserResponse:
    response = UserResponse.model_validate(user)
    return AuthUserResponse(**response.model_dump(exclude={"object_id"}), token=create_user_token(user))


@router.post("/send-otp", response_model=SendOTPResponse, response_model_exclude_none=True)
@limiter.limit(SEND_OTP_LIMIT)
async def send_otp(
    request: Request,
    payload: RegistrationRequest,
    db: AsyncSession = Depends(get_db)
):
    """
    Start registration: stage the account and email a verification code
    (rate limited: 5/min).

    ``previewUrl`` is only returned outside production, and only when the
    mailer produced one.
    """
    email, result = await auth_service.send_otp(db, payload)

    preview_url = None
    if not settings.is_production() and result.preview_url:
        preview_url = result.preview_url

    return SendOTPResponse(email=email, preview_url=preview_url)


@router.post("/verify-otp", response_model=VerifyOTPResponse, status_code=status.HTTP_201_CREATED)
async def verify_otp(
    payload: VerifyOTPRequest,
    db: AsyncSession = Depends(get_db)
):
    """Finish registration with the emailed code"""
    user = await auth_service.verify_otp(db, payload.email, payload.otp)
    return VerifyOTPResponse(user=_with_token(user))


@router.post("/register", response_model=AuthUserResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(REGISTER_LIMIT)
async def register(
    request: Request,
    payload: RegistrationRequest,
    db: AsyncSession = Depends(get_db)
):
    """Register without email verification (rate limited: 3/min)"""
    user = await auth_service.register(db, payload)
    return _with_token(user)


@router.post("/login", response_model=AuthUserResponse)
@limiter.limit(LOGIN_LIMIT)
async def login(
    request: Request,
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db)
):
    """Login with email and password (rate limited: 10/min)"""
    user = await auth_service.authenticate(db, credentials.email, credentials.password)
    return _with_token(user)


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """Get current user profile"""
    return current_user


@router.put("/profile", response_model=AuthUserResponse)
async def update_profile(
    changes: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update own profile; the response carries a fresh token"""
    user = await auth_service.update_profile(db, current_user, changes)
    return _with_token(user)
