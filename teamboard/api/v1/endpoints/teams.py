"""
Team membership endpoints
"""
import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from teamboard.core.database import get_db
from teamboard.core.deps import require_actor
from teamboard.core.exceptions import ResourceNotFoundError
from teamboard.services.team_service import TeamService

router = APIRouter()


@router.get("/{team_slug}/membership")
async def get_my_membership(
    team_slug: str,
    actor: uuid.UUID = Depends(require_actor),
    db: AsyncSession = Depends(get_db)
):
    """Current user's role in a team; role is null for non-members"""
    team_service = TeamService(db)
    team = await team_service.get_team_by_slug(team_slug)
    if not team:
        raise ResourceNotFoundError("Team")

    membership = await team_service.get_membership(team.id, actor)
    return {
        "team_id": str(team.id),
        "team_slug": team.slug,
        "team_name": team.name,
        "role": membership.role if membership else None,
        "is_lead": bool(membership and membership.is_lead),
    }
