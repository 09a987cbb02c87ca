from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class Folder(Base):
    __tablename__ = "folders"

    id = Column(String(64), primary_key=True, default=generate_id)
    name = Column(String(255), nullable=False)
    folio_id = Column(String(64), ForeignKey("folios.id", ondelete="CASCADE"), nullable=False, index=True)
    # Parent must belong to the same folio
    parent_id = Column(String(64), ForeignKey("folders.id", ondelete="CASCADE"), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    folio = relationship("Folio", back_populates="folders")
    notes = relationship("Note", back_populates="folder")
