from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text
from datetime import datetime
from typing import Optional, Union
import enum

from app.core.database import Base
from app.core.types import GUID, StringList, generate_uuid


# Older clients and seed data still send these; both mean a plain user.
LEGACY_ROLE_ALIASES = {
    "student": "user",
    "faculty": "user",
}


class UserRole(str, enum.Enum):
    """User roles"""
    USER = "user"
    AUTHORITY = "authority"

    @classmethod
    def normalize(cls, value: Union[str, "UserRole", None]) -> Optional["UserRole"]:
        """Map a raw role string (legacy values included) to a UserRole.

        Returns None for anything that is neither a role nor a legacy alias.
        """
        if value is None:
            return None
        if isinstance(value, cls):
            return value
        raw = str(value).strip().lower()
        raw = LEGACY_ROLE_ALIASES.get(raw, raw)
        try:
            return cls(raw)
        except ValueError:
            return None


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    hashed_password = Column(String(255), nullable=False)

    role = Column(
        SQLEnum(UserRole, values_callable=lambda e: [m.value for m in e]),
        default=UserRole.USER,
        nullable=False,
    )
    department = Column(String(255), default="", nullable=False)
    # Issue categories an authority handles; empty for plain users
    categories = Column(StringList, default=list, nullable=False)
    avatar = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    @property
    def is_authority(self) -> bool:
        return self.role == UserRole.AUTHORITY

    def handles(self, category) -> bool:
        """True if this user is an authority assigned to ``category``"""
        value = category.value if hasattr(category, "value") else category
        return self.is_authority and value in (self.categories or [])

    def __repr__(self):
        return f"<User {self.email}>"
