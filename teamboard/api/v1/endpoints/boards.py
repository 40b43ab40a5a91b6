"""
Board snapshot endpoint
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from teamboard.core.deps import get_current_actor, get_kanban_service
from teamboard.schemas.card import BoardSnapshot
from teamboard.services.kanban_service import KanbanService

router = APIRouter()


@router.get("/{board_id}", response_model=BoardSnapshot)
async def get_board(
    board_id: str,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Get a board with its columns and cards in stored order.

    Clients reset their local drag-and-drop state to this snapshot whenever a
    move is rejected or a board refresh signal arrives.
    """
    return await kanban_service.get_board_snapshot(actor, board_id)
