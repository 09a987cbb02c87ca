from sqlalchemy import Column, String, DateTime, ForeignKey, Index, JSON, UniqueConstraint, text
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class Note(Base):
    __tablename__ = "notes"
    __table_args__ = (
        # Sibling titles are unique within a folder; clone and move rely on it
        UniqueConstraint("folio_id", "folder_id", "title", name="uq_notes_folio_folder_title"),
        # NULL folder ids never collide in the constraint above, so the folio root gets its own index
        Index(
            "uq_notes_folio_root_title",
            "folio_id",
            "title",
            unique=True,
            postgresql_where=text("folder_id IS NULL"),
            sqlite_where=text("folder_id IS NULL"),
        ),
    )

    id = Column(String(64), primary_key=True, default=generate_id)
    title = Column(String(255), nullable=False)
    content = Column(JSON, nullable=True)
    folio_id = Column(String(64), ForeignKey("folios.id", ondelete="CASCADE"), nullable=False, index=True)
    folder_id = Column(String(64), ForeignKey("folders.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    # Relationships
    folio = relationship("Folio", back_populates="notes")
    folder = relationship("Folder", back_populates="notes")
    published = relationship("PublishedPage", back_populates="note", uselist=False, cascade="all, delete-orphan")
