import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, Enum, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.models.share import SharePermission
from app.utils.datetime_helper import utcnow


class CollaboratorRole(str, enum.Enum):
    VIEWER = "viewer"
    EDITOR = "editor"

    @classmethod
    def from_permission(cls, permission: SharePermission) -> "CollaboratorRole":
        return cls.EDITOR if SharePermission(permission) is SharePermission.EDIT else cls.VIEWER

    @property
    def permission(self) -> SharePermission:
        return SharePermission.EDIT if self is CollaboratorRole.EDITOR else SharePermission.READ


class Collaborator(Base):
    __tablename__ = "page_collaborators"
    __table_args__ = (
        UniqueConstraint("page_id", "user_id", name="uq_page_collaborators_page_user"),
    )

    id = Column(String(64), primary_key=True, default=generate_id)
    page_id = Column(String(64), ForeignKey("published_pages.id", ondelete="CASCADE"), nullable=False, index=True)
    user_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # May point at a revoked share; access is not withdrawn with it
    share_id = Column(String(64), ForeignKey("page_shares.id", ondelete="SET NULL"), nullable=True, index=True)
    role = Column(
        Enum(CollaboratorRole, name="collaborator_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    page = relationship("PublishedPage", back_populates="collaborators")
    user = relationship("User", back_populates="collaborations")
    share = relationship("Share")
