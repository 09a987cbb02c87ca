import enum

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class SharePermission(str, enum.Enum):
    READ = "read"
    EDIT = "edit"


class ShareStatus(str, enum.Enum):
    ACTIVE = "active"
    REVOKED = "revoked"

    def can_transition_to(self, target: "ShareStatus") -> bool:
        # Revocation is terminal; revoked -> revoked is an accepted no-op
        if self is ShareStatus.ACTIVE:
            return True
        return target is ShareStatus.REVOKED


def _enum_values(enum_cls):
    return [member.value for member in enum_cls]


class Share(Base):
    __tablename__ = "page_shares"

    id = Column(String(64), primary_key=True, default=generate_id)
    page_id = Column(String(64), ForeignKey("published_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    invited_email = Column(String(320), nullable=False, index=True)
    invited_by = Column(String(64), ForeignKey("users.id"), nullable=False)
    permission = Column(
        Enum(SharePermission, name="share_permission", values_callable=_enum_values),
        nullable=False,
        default=SharePermission.READ,
    )
    status = Column(
        Enum(ShareStatus, name="share_status", values_callable=_enum_values),
        nullable=False,
        default=ShareStatus.ACTIVE,
        index=True,
    )
    access_token = Column(String(64), unique=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    access_count = Column(Integer, nullable=False, default=0)
    last_accessed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    page = relationship("PublishedPage", back_populates="shares")
    inviter = relationship("User")
