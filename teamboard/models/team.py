"""
Team and team member models
"""
import enum

from sqlalchemy import Column, String, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from teamboard.core.database import Base
from teamboard.core.db_types import GUID, guid_pk


class TeamRole(str, enum.Enum):
    LEAD = "LEAD"
    MEMBER = "MEMBER"


class Team(Base):
    __tablename__ = "teams"

    id = guid_pk()
    name = Column(String(255), nullable=False)
    slug = Column(String(100), unique=True, nullable=False, index=True)
    discord_channel = Column(String(100), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # Relationships
    members = relationship("TeamMember", back_populates="team", cascade="all, delete-orphan")
    cards = relationship("Card", back_populates="team")

    def __repr__(self):
        return f"<Team(id={self.id}, slug={self.slug})>"


class TeamMember(Base):
    __tablename__ = "team_members"

    id = guid_pk()
    team_id = Column(GUID(), ForeignKey('teams.id', ondelete='CASCADE'), nullable=False)
    user_id = Column(GUID(), ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    role = Column(String(20), default=TeamRole.MEMBER.value, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    # At most one membership per (team, user)
    __table_args__ = (
        UniqueConstraint('team_id', 'user_id', name='unique_team_user_membership'),
    )

    # Relationships
    team = relationship("Team", back_populates="members")
    user = relationship("User", back_populates="memberships")

    @property
    def is_lead(self) -> bool:
        return self.role == TeamRole.LEAD.value

    def __repr__(self):
        return f"<TeamMember(team_id={self.team_id}, user_id={self.user_id}, role={self.role})>"
