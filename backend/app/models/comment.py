"""
Standalone comments kept in their own table.

The issue thread in app.models.issue is what the UI uses. These rows back
the older /issues/{issue_id}/comments list and /comments/{id} delete routes.
"""

from sqlalchemy import Column, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class Comment(Base):
    """Comment model"""
    __tablename__ = "comments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    issue_id = Column(GUID, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    content = Column(Text, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    author = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<Comment {self.id} on {self.issue_id}>"
