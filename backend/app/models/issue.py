"""
Issue model - a reported campus problem and its comment thread
"""

from sqlalchemy import Column, String, DateTime, Text, ForeignKey, Integer, Index, Enum as SQLEnum
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base
from app.core.types import GUID, generate_uuid


class IssueCategory(str, enum.Enum):
    """Fixed issue categories"""
    MAINTENANCE = "maintenance"
    CANTEEN = "canteen"
    CLASSROOM = "classroom"
    HOSTEL = "hostel"
    TRANSPORT = "transport"
    OTHER = "other"


class IssueStatus(str, enum.Enum):
    """Issue status. Any value may follow any other."""
    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    RESOLVED = "resolved"


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Issue(Base):
    """Issue model"""
    __tablename__ = "issues"

    __table_args__ = (
        Index('ix_issues_category', 'category'),
        Index('ix_issues_status', 'status'),
        Index('ix_issues_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=False)
    category = Column(SQLEnum(IssueCategory, values_callable=_enum_values), nullable=False)
    status = Column(
        SQLEnum(IssueStatus, values_callable=_enum_values),
        default=IssueStatus.PENDING,
        nullable=False,
    )

    # Null once the reporter's account has been deleted
    reporter_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    department = Column(String(255), nullable=True)
    image_url = Column(String(500), nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    reporter = relationship("User", lazy="selectin")
    comments = relationship(
        "IssueComment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by=lambda: [IssueComment.position, IssueComment.created_at],
        lazy="selectin",
    )

    def add_comment(self, user, text: str) -> "IssueComment":
        """Append a comment at the end of the thread.

        Text is stripped; blank text raises ValueError. Positions keep the
        thread in insertion order even when timestamps collide.
        """
        text = (text or "").strip()
        if not text:
            raise ValueError("Comment text is required")

        next_position = max((c.position for c in self.comments), default=-1) + 1
        comment = IssueComment(
            user_id=user.id,
            user=user,
            text=text,
            position=next_position,
            created_at=datetime.utcnow(),
        )
        self.comments.append(comment)
        return comment

    def __repr__(self):
        return f"<Issue {self.id} {self.category.value if self.category else None}/{self.status.value if self.status else None}>"


class IssueComment(Base):
    """A comment in an issue's own thread"""
    __tablename__ = "issue_comments"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    issue_id = Column(GUID, ForeignKey("issues.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(GUID, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    text = Column(Text, nullable=False)
    position = Column(Integer, nullable=False, default=0)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    issue = relationship("Issue", back_populates="comments")
    user = relationship("User", lazy="selectin")

    def __repr__(self):
        return f"<IssueComment {self.issue_id}#{self.position}>"
