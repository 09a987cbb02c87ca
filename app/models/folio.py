from sqlalchemy import Column, String, DateTime, ForeignKey, Boolean
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class Folio(Base):
    __tablename__ = "folios"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    owner_id = Column(String(64), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    is_system = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    owner = relationship("User", back_populates="folios")
    folders = relationship("Folder", back_populates="folio", cascade="all, delete-orphan")
    notes = relationship("Note", back_populates="folio", cascade="all, delete-orphan")
