"""
Card API endpoints: lifecycle and workflow moves
"""
import uuid
from typing import Optional

from fastapi import APIRouter, Depends

from teamboard.core.deps import get_current_actor, get_kanban_service
from teamboard.schemas.card import (
    CardApprovalResponse,
    CardClaim,
    CardCreate,
    CardFromTemplate,
    CardMove,
    CardMoveResponse,
    CardResponse,
    CardUpdate,
)
from teamboard.services.kanban_service import KanbanService

router = APIRouter()


@router.post("/", response_model=CardResponse)
async def create_card(
    card_data: CardCreate,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Create a card at the end of a column"""
    data = card_data.dict(exclude={"column_id"})
    return await kanban_service.create_card(actor, card_data.column_id, data)


@router.post("/from-template", response_model=CardResponse)
async def create_card_from_template(
    template_data: CardFromTemplate,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Create a card pre-filled from a card template"""
    overrides = template_data.dict(exclude={"column_id", "template_id"})
    return await kanban_service.create_card_from_template(
        actor, template_data.column_id, template_data.template_id, overrides
    )


@router.put("/{card_id}", response_model=CardResponse)
async def update_card(
    card_id: str,
    card_data: CardUpdate,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Update card details; only fields present in the request are changed"""
    return await kanban_service.update_card(actor, card_id, card_data.dict(exclude_unset=True))


@router.delete("/{card_id}")
async def delete_card(
    card_id: str,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Delete card"""
    await kanban_service.delete_card(actor, card_id)
    return {"success": True, "message": "Card deleted successfully"}


@router.put("/{card_id}/move", response_model=CardMoveResponse)
async def move_card(
    card_id: str,
    move_data: CardMove,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Move a card to a column and index, enforcing team roles, WIP limits and workflow rules"""
    return await kanban_service.move_card(
        actor, card_id, move_data.target_column_id, move_data.target_index
    )


@router.post("/{card_id}/claim", response_model=CardMoveResponse)
async def claim_card(
    card_id: str,
    claim_data: CardClaim,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Claim an unassigned Ready card and start it"""
    return await kanban_service.claim_card(actor, card_id, claim_data.board_id)


@router.post("/{card_id}/submit-for-review", response_model=CardMoveResponse)
async def submit_for_review(
    card_id: str,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    return await kanban_service.submit_for_review(actor, card_id)


@router.post("/{card_id}/approve", response_model=CardApprovalResponse)
async def approve_card(
    card_id: str,
    actor: Optional[uuid.UUID] = Depends(get_current_actor),
    kanban_service: KanbanService = Depends(get_kanban_service)
):
    """Lead-only approval flag, independent of the card's column"""
    return await kanban_service.approve_card(actor, card_id)
