"""
Team role permission checks for card moves
"""
from dataclasses import dataclass
from typing import Optional

from teamboard.models.team import TeamRole
from teamboard.services.workflow_gate import WorkflowStage

NOT_A_MEMBER = "You must be a team member to move this card"
LEAD_ONLY_DONE = "Only team leads can approve cards to Done"

# (source, target) pairs a MEMBER may perform; same-column moves are always allowed
MEMBER_TRANSITIONS = {
    (WorkflowStage.READY, WorkflowStage.DOING),
    (WorkflowStage.DOING, WorkflowStage.REVIEW),
}


@dataclass(frozen=True)
class MoveDecision:
    allowed: bool
    reason: Optional[str] = None


ALLOWED = MoveDecision(allowed=True)


def _column_key(column):
    stage = WorkflowStage.for_column(column)
    return stage if stage is not None else column.name


def can_move(card_team_id, role: Optional[str], source_column, target_column) -> MoveDecision:
    """Decide whether an actor may move a card between two columns.

    ``role`` is the actor's role in the card's team, or None when the actor
    holds no membership there. Cards without a team are not gated.
    """
    if card_team_id is None:
        return ALLOWED

    if role is None:
        return MoveDecision(allowed=False, reason=NOT_A_MEMBER)

    if role == TeamRole.LEAD.value:
        return ALLOWED

    source_key = _column_key(source_column)
    target_key = _column_key(target_column)

    if source_key == target_key or (source_key, target_key) in MEMBER_TRANSITIONS:
        return ALLOWED

    if source_key == WorkflowStage.REVIEW and target_key == WorkflowStage.DONE:
        return MoveDecision(allowed=False, reason=LEAD_ONLY_DONE)

    return MoveDecision(
        allowed=False,
        reason=f"Members cannot move cards from {source_column.name} to {target_column.name}"
    )


def can_approve(role: Optional[str]) -> bool:
    """Check if role can approve cards"""
    return role == TeamRole.LEAD.value
