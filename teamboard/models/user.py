"""
User model
"""
from sqlalchemy import Column, String, DateTime
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from teamboard.core.database import Base
from teamboard.core.db_types import guid_pk


class User(Base):
    """Local mirror of an identity owned by the external provider"""
    __tablename__ = "users"

    id = guid_pk()
    name = Column(String(255), nullable=True)
    email = Column(String(255), unique=True, nullable=True, index=True)
    image = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    memberships = relationship("TeamMember", back_populates="user", cascade="all, delete-orphan")
    boards = relationship("Board", back_populates="owner")

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"
