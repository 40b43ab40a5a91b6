"""
Card model
"""
from sqlalchemy import Column, String, Text, Integer, DateTime, ForeignKey, Boolean, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from teamboard.core.database import Base
from teamboard.core.db_types import GUID, guid_pk


PRIORITIES = ("P0", "P1", "P2", "P3")
DEFAULT_PRIORITY = "P2"


class Card(Base):
    __tablename__ = "cards"

    id = guid_pk()
    column_id = Column(GUID(), ForeignKey('columns.id', ondelete='CASCADE'), nullable=False, index=True)
    team_id = Column(GUID(), ForeignKey('teams.id', ondelete='SET NULL'), nullable=True)
    assignee_id = Column(GUID(), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    reviewer_id = Column(GUID(), ForeignKey('users.id', ondelete='SET NULL'), nullable=True)
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    acceptance_criteria = Column(Text, nullable=True)  # "Done looks like"
    priority = Column(String(2), default=DEFAULT_PRIORITY, nullable=False)
    task_type = Column(String(50), nullable=True)
    subsystem = Column(String(100), nullable=True)  # legacy free text, superseded by team_id
    due_date = Column(DateTime(timezone=True), nullable=True)
    is_onboarding = Column(Boolean, default=False, nullable=False)
    is_blocked = Column(Boolean, default=False, nullable=False)
    blocked_reason = Column(Text, nullable=True)
    is_approved = Column(Boolean, default=False, nullable=False)
    position = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        CheckConstraint("position >= 0", name='non_negative_position'),
        CheckConstraint("priority IN ('P0', 'P1', 'P2', 'P3')", name='valid_priority'),
    )

    # Relationships
    column = relationship("Column", back_populates="cards")
    team = relationship("Team", back_populates="cards")
    assignee = relationship("User", foreign_keys=[assignee_id])
    reviewer = relationship("User", foreign_keys=[reviewer_id])

    def __repr__(self):
        return f"<Card(id={self.id}, title={self.title}, position={self.position})>"
