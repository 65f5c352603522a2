"""
Pending registrations awaiting email verification.

A row holds the code that was mailed and the staged user payload
(password already bcrypt-hashed). Rows older than OTP_EXPIRE_SECONDS are
treated as absent and purged by the auth service.
"""

from sqlalchemy import Column, String, DateTime, JSON
from datetime import datetime, timedelta

from app.core.config import settings
from app.core.database import Base
from app.core.types import GUID, generate_uuid


class OTP(Base):
    """One live verification code per email"""
    __tablename__ = "otps"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), index=True, nullable=False)
    code = Column(String(12), nullable=False)
    # name, email, hashed_password, role, department, categories
    user_data = Column(JSON, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow, index=True, nullable=False)

    @staticmethod
    def expiry_cutoff(now: datetime = None) -> datetime:
        """Records created before this instant are expired"""
        now = now or datetime.utcnow()
        return now - timedelta(seconds=settings.OTP_EXPIRE_SECONDS)

    def __repr__(self):
        return f"<OTP {self.email}>"
