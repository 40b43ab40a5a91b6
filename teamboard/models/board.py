"""
Board model
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from teamboard.core.database import Base
from teamboard.core.db_types import GUID, guid_pk


class Board(Base):
    __tablename__ = "boards"

    id = guid_pk()
    name = Column(String(255), nullable=False)
    owner_id = Column(GUID(), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    owner = relationship("User", back_populates="boards")
    columns = relationship("Column", back_populates="board", cascade="all, delete-orphan", order_by="Column.position")

    def __repr__(self):
        return f"<Board(id={self.id}, name={self.name})>"
