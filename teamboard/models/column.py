"""
Column model
"""
from sqlalchemy import Column, String, Integer, DateTime, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from teamboard.core.database import Base
from teamboard.core.db_types import GUID, guid_pk


class Column(Base):
    __tablename__ = "columns"

    id = guid_pk()
    board_id = Column(GUID(), ForeignKey('boards.id', ondelete='CASCADE'), nullable=False)
    name = Column(String(255), nullable=False)
    position = Column(Integer, nullable=False)
    wip_limit = Column(Integer, nullable=True)  # None means unlimited
    stage = Column(String(20), nullable=True)  # WorkflowStage value; falls back to name when unset
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        UniqueConstraint('board_id', 'position', name='unique_board_column_position'),
        CheckConstraint("wip_limit IS NULL OR wip_limit > 0", name='positive_wip_limit'),
    )

    # Relationships
    board = relationship("Board", back_populates="columns")
    cards = relationship("Card", back_populates="column", cascade="all, delete-orphan", order_by="Card.position")

    def __repr__(self):
        return f"<Column(id={self.id}, name={self.name}, position={self.position})>"
