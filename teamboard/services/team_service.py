"""
Team membership lookups
"""
from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from teamboard.core.db_types import as_uuid
from teamboard.models.team import Team, TeamMember


class TeamService:
    """Read-only access to teams and memberships"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_membership(self, team_id, user_id) -> Optional[TeamMember]:
        """Get a user's membership in a team, or None"""
        if team_id is None or user_id is None:
            return None
        result = await self.db.execute(
            select(TeamMember).where(
                TeamMember.team_id == as_uuid(team_id),
                TeamMember.user_id == as_uuid(user_id)
            )
        )
        return result.scalar_one_or_none()

    async def get_role(self, team_id, user_id) -> Optional[str]:
        membership = await self.get_membership(team_id, user_id)
        return membership.role if membership else None

    async def is_member(self, team_id, user_id) -> bool:
        return await self.get_membership(team_id, user_id) is not None

    async def get_team_by_slug(self, slug: str) -> Optional[Team]:
        result = await self.db.execute(select(Team).where(Team.slug == slug))
        return result.scalar_one_or_none()
