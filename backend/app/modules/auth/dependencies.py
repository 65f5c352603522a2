from fastapi import Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from typing import Callable, Optional, Union
import uuid

from app.core.database import get_db
from app.core.exceptions import ForbiddenError, UnauthorizedError
from app.core.logging_config import set_user_id
from app.core.security import decode_token
from app.models.user import User, UserRole

# auto_error=False so a missing header gets our own 401 message
security = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db)
) -> User:
    """Get current authenticated user"""

    if credentials is None or not credentials.credentials:
        raise UnauthorizedError("Not authorized, no token")

    payload = decode_token(credentials.credentials)

    if payload.get("type") != "access":
        raise UnauthorizedError("Not authorized, invalid token")

    user_id = payload.get("sub")
    if not user_id:
        raise UnauthorizedError("Not authorized, invalid token")

    # Validate user_id is a valid UUID format
    try:
        uuid.UUID(str(user_id))
    except ValueError:
        raise UnauthorizedError("Not authorized, invalid token")

    result = await db.execute(
        select(User).where(User.id == str(user_id))
    )
    user = result.scalar_one_or_none()

    if not user:
        raise UnauthorizedError("User not found")

    set_user_id(str(user.id))
    return user


def require_roles(*roles: Union[UserRole, str]) -> Callable:
    """
    Dependency factory that only lets the given roles through.

    Usage:
        @router.put("/{issue_id}/status")
        async def update_status(user: User = Depends(require_roles(UserRole.AUTHORITY))):
            ...
    """
    allowed = {UserRole.normalize(role) for role in roles}

    async def _check_role(current_user: User = Depends(get_current_user)) -> User:
        if current_user.role not in allowed:
            role = current_user.role.value if hasattr(current_user.role, "value") else current_user.role
            raise ForbiddenError(f"User role '{role}' is not authorized to access this resource")
        return current_user

    return _check_role


# Shortcut for the authority-only routes
get_current_authority = require_roles(UserRole.AUTHORITY)
