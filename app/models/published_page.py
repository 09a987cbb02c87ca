from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class PublishedPage(Base):
    __tablename__ = "published_pages"

    id = Column(String(64), primary_key=True, default=generate_id)
    note_id = Column(String(64), ForeignKey("notes.id", ondelete="CASCADE"), unique=True, nullable=False)
    slug = Column(String(128), unique=True, nullable=False, index=True)
    # False keeps the slug reserved for the note while the page is offline
    is_published = Column(Boolean, nullable=False, default=True)
    published_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    view_count = Column(Integer, nullable=False, default=0)
    last_viewed_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    note = relationship("Note", back_populates="published")
    shares = relationship("Share", back_populates="page", cascade="all, delete-orphan")
    collaborators = relationship("Collaborator", back_populates="page", cascade="all, delete-orphan")
