from datetime import datetime, timedelta
from typing import Optional, Dict, Any
import secrets

import bcrypt
from jose import ExpiredSignatureError, JWTError, jwt

from app.core.config import settings
from app.core.exceptions import UnauthorizedError


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify password"""
    if not hashed_password:
        return False
    # Bcrypt has a 72 byte limit - truncate password if necessary
    password_bytes = plain_password.encode('utf-8')[:72]
    try:
        return bcrypt.checkpw(password_bytes, hashed_password.encode('utf-8'))
    except ValueError:
        # Not a bcrypt hash
        return False


def get_password_hash(password: str) -> str:
    """Hash password with configurable rounds (BCRYPT_ROUNDS in .env)"""
    password_bytes = password.encode('utf-8')[:72]
    hashed = bcrypt.hashpw(password_bytes, bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS))
    return hashed.decode('utf-8')


def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
    """Create JWT access token"""
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.utcnow() + expires_delta
    else:
        expire = datetime.utcnow() + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    to_encode.update({"exp": expire, "type": "access"})
    return jwt.encode(to_encode, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def create_user_token(user) -> str:
    """Session token for a user row"""
    role = user.role.value if hasattr(user.role, "value") else user.role
    return create_access_token({
        "sub": str(user.id),
        "email": user.email,
        "role": role,
    })


def decode_token(token: str) -> Dict[str, Any]:
    """Decode JWT token.

    Expired and malformed tokens get different messages but the same 401.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except ExpiredSignatureError:
        raise UnauthorizedError("Not authorized, token expired")
    except JWTError:
        raise UnauthorizedError("Not authorized, invalid token")


def generate_otp(length: Optional[int] = None) -> str:
    """Random numeric code with no leading zero (100000-999999 for 6 digits)"""
    length = length or settings.OTP_LENGTH
    low = 10 ** (length - 1)
    return str(low + secrets.randbelow(9 * low))
