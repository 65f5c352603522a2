"""
Auth Service - registration, login and profile rules

Handles:
- Two-step registration: send_otp stages the account, verify_otp creates it
- Direct (legacy) registration
- Login with a single generic failure message
- Profile updates

Errors are raised as app.core.exceptions types and rendered by the
application-wide handler.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete
from datetime import datetime
from typing import Optional, List, Tuple
import asyncio

from app.core.exceptions import (
    CampusConnectError,
    ConflictError,
    InvalidCredentialsError,
    InvalidOrExpiredOTPError,
    UserNotFoundError,
    ValidationError,
)
from app.core.logging_config import logger
from app.core.security import (
    generate_otp,
    get_password_hash,
    verify_password,
)
from app.models.issue import IssueCategory
from app.models.otp import OTP
from app.models.user import User, UserRole
from app.schemas.auth import RegistrationRequest, ProfileUpdate
from app.services.email_service import email_service, EmailResult


MIN_PASSWORD_LENGTH = 6

# Keeps fire-and-forget welcome mails from being garbage collected mid-send
_background_tasks = set()


class AuthService:
    """Service for accounts and credentials"""

    # ==================== VALIDATION ====================

    def validate_registration(self, payload: RegistrationRequest) -> Tuple[UserRole, List[str]]:
        """
        Check a registration payload.

        Returns the normalised role and the authority's categories (empty
        for plain users). Raises ValidationError with the message the
        client shows.
        """
        if not payload.name or not payload.email or not payload.password or not payload.role:
            raise ValidationError("Please provide all required fields")

        role = UserRole.normalize(payload.role)
        if role is None:
            raise ValidationError(f"Invalid role: {payload.role}", field="role")

        if len(payload.password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(
                f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                field="password",
            )

        if role == UserRole.USER and not payload.department:
            raise ValidationError("Department is required for students and faculty", field="department")

        categories: List[str] = []
        if role == UserRole.AUTHORITY:
            if not payload.categories:
                raise ValidationError("Authorities must select at least one category", field="categories")
            for raw in payload.categories:
                try:
                    value = IssueCategory(str(raw).strip().lower()).value
                except ValueError:
                    raise ValidationError(f"Invalid category: {raw}", field="categories")
                if value not in categories:
                    categories.append(value)

        return role, categories

    async def get_user_by_email(self, db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email.strip().lower()))
        return result.scalar_one_or_none()

    async def get_user_by_id(self, db: AsyncSession, user_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == str(user_id)))
        return result.scalar_one_or_none()

    async def _ensure_email_free(self, db: AsyncSession, email: str) -> None:
        if await self.get_user_by_email(db, email):
            raise ConflictError("User already exists with this email")

    # ==================== OTP REGISTRATION ====================

    async def purge_expired_otps(self, db: AsyncSession) -> int:
        """Delete OTP rows past their lifetime"""
        result = await db.execute(delete(OTP).where(OTP.created_at < OTP.expiry_cutoff()))
        return result.rowcount or 0

    async def send_otp(self, db: AsyncSession, payload: RegistrationRequest) -> Tuple[str, EmailResult]:
        """
        Stage a registration and mail its code.

        Any earlier code for the same email is discarded so at most one is
        live. The staged payload holds a bcrypt hash, never the password.

        Returns:
            (email, mail result)
        """
        role, categories = self.validate_registration(payload)
        email = payload.email

        await self._ensure_email_free(db, email)
        await self.purge_expired_otps(db)

        code = generate_otp()

        await db.execute(delete(OTP).where(OTP.email == email))
        db.add(OTP(
            email=email,
            code=code,
            user_data={
                "name": payload.name,
                "email": email,
                "hashed_password": get_password_hash(payload.password),
                "role": role.value,
                "department": payload.department or "",
                "categories": categories,
            },
        ))
        await db.commit()

        result = await email_service.send_otp_email(email, code, payload.name)
        if not result.success:
            logger.log_auth_event("send_otp", success=False, user_email=email, reason="mail delivery failed")
            raise CampusConnectError("Failed to send OTP email")

        logger.log_auth_event("send_otp", success=True, user_email=email)
        return email, result

    async def verify_otp(self, db: AsyncSession, email: Optional[str], code: Optional[str]) -> User:
        """
        Consume a live code and create the staged account.

        A wrong code, an expired code and an already-used code all raise the
        same InvalidOrExpiredOTPError.
        """
        if not email or not code:
            raise ValidationError("Please provide email and OTP")

        email = email.strip().lower()
        result = await db.execute(
            select(OTP).where(
                OTP.email == email,
                OTP.code == str(code).strip(),
                OTP.created_at >= OTP.expiry_cutoff(),
            )
        )
        record = result.scalars().first()

        if record is None:
            await self.purge_expired_otps(db)
            await db.commit()
            logger.log_auth_event("verify_otp", success=False, user_email=email, reason="invalid or expired")
            raise InvalidOrExpiredOTPError()

        data = dict(record.user_data)

        # Someone may have registered directly while this code was pending
        await self._ensure_email_free(db, email)

        role = UserRole.normalize(data.get("role")) or UserRole.USER
        user = User(
            name=data["name"],
            email=email,
            hashed_password=data["hashed_password"],
            role=role,
            department=data.get("department") or "",
            categories=(data.get("categories") or []) if role == UserRole.AUTHORITY else [],
        )
        db.add(user)
        await db.delete(record)
        await db.commit()

        logger.log_auth_event("verify_otp", success=True, user_email=email, account_id=str(user.id))
        self._send_welcome_later(user)
        return user

    def _send_welcome_later(self, user: User) -> None:
        """Fire the welcome mail without waiting; failures are only logged"""
        async def _send(to_email: str, name: str, role: str):
            try:
                await email_service.send_welcome_email(to_email, name, role)
            except Exception as e:
                logger.log_error_with_context(e, "welcome email")

        task = asyncio.create_task(_send(user.email, user.name, user.role.value))
        _background_tasks.add(task)
        task.add_done_callback(_background_tasks.discard)

    # ==================== DIRECT REGISTRATION ====================

    async def register(self, db: AsyncSession, payload: RegistrationRequest) -> User:
        """Create an account without email verification"""
        role, categories = self.validate_registration(payload)
        await self._ensure_email_free(db, payload.email)

        user = User(
            name=payload.name,
            email=payload.email,
            hashed_password=get_password_hash(payload.password),
            role=role,
            department=payload.department or "",
            categories=categories,
        )
        db.add(user)
        await db.commit()

        logger.log_auth_event("register", success=True, user_email=user.email, account_id=str(user.id))
        return user

    # ==================== LOGIN ====================

    async def authenticate(self, db: AsyncSession, email: Optional[str], password: Optional[str]) -> User:
        """
        Check credentials.

        Unknown email and wrong password raise the same
        InvalidCredentialsError. A password check still runs for unknown
        emails so both paths take similar time.
        """
        if not email or not password:
            raise ValidationError("Please provide email and password")

        user = await self.get_user_by_email(db, email)
        hashed = user.hashed_password if user else _DUMMY_HASH
        password_ok = verify_password(password, hashed)

        if user is None or not password_ok:
            logger.log_auth_event("login", success=False, user_email=email, reason="invalid credentials")
            raise InvalidCredentialsError()

        logger.log_auth_event("login", success=True, user_email=user.email, account_id=str(user.id))
        return user

    # ==================== PROFILE ====================

    async def update_profile(self, db: AsyncSession, user: User, changes: ProfileUpdate) -> User:
        """
        Apply profile changes. Empty values leave the field unchanged;
        a new email must not belong to another account.
        """
        user = await self.get_user_by_id(db, user.id)
        if user is None:
            raise UserNotFoundError()

        if changes.email and changes.email != user.email:
            other = await self.get_user_by_email(db, changes.email)
            if other is not None and other.id != user.id:
                raise ConflictError("Email is already in use by another account")
            user.email = changes.email

        if changes.name and changes.name.strip():
            user.name = changes.name.strip()
        if changes.department and changes.department.strip():
            user.department = changes.department.strip()
        if changes.avatar:
            user.avatar = changes.avatar

        if changes.password:
            if len(changes.password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    f"Password must be at least {MIN_PASSWORD_LENGTH} characters",
                    field="password",
                )
            user.hashed_password = get_password_hash(changes.password)

        user.updated_at = datetime.utcnow()
        await db.commit()

        logger.log_auth_event("profile_update", success=True, user_email=user.email, account_id=str(user.id))
        return user


# Hash of a random throwaway password, checked against when the email is unknown
_DUMMY_HASH = get_password_hash("campus-connect-timing-guard")

# Singleton instance
auth_service = AuthService()
