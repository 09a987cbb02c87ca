from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from app.core.database import Base, generate_id
from app.utils.datetime_helper import utcnow


class User(Base):
    __tablename__ = "users"

    # Ids are issued by the external identity provider
    id = Column(String(64), primary_key=True, default=generate_id)
    email = Column(String(320), unique=True, nullable=False, index=True)
    name = Column(String(200), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, server_default=func.now())

    # Relationships
    folios = relationship("Folio", back_populates="owner", cascade="all, delete-orphan")
    collaborations = relationship("Collaborator", back_populates="user", cascade="all, delete-orphan")

    @property
    def display_name(self) -> str:
        return self.name or self.email
