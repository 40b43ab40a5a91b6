"""
Workflow stages and column-entry rules

Columns carry an optional explicit ``stage`` tag. When it is missing the
stage is derived from the column's display name, so boards created before the
tag existed keep their gating as long as the columns are not renamed.
"""
import enum
import uuid
from dataclasses import dataclass
from typing import List, Optional

READY_MISSING_TEAM = "Team"
READY_MISSING_CRITERIA = "Done looks like"


class WorkflowStage(str, enum.Enum):
    READY = "READY"
    DOING = "DOING"
    REVIEW = "REVIEW"
    DONE = "DONE"

    @property
    def display_name(self) -> str:
        return self.value.capitalize()

    @classmethod
    def from_name(cls, name: Optional[str]) -> Optional["WorkflowStage"]:
        """Exact, case-sensitive match on the display name ("Ready", "Doing", ...)"""
        for stage in cls:
            if stage.display_name == name:
                return stage
        return None

    @classmethod
    def for_column(cls, column) -> Optional["WorkflowStage"]:
        """Stage of a column: explicit tag first, display name second"""
        if column is None:
            return None
        tag = getattr(column, "stage", None)
        if tag:
            try:
                return cls(tag)
            except ValueError:
                return None
        return cls.from_name(column.name)


# Columns every new team board starts with
DEFAULT_WORKFLOW_COLUMNS = [
    {"name": "Ready", "position": 0, "stage": WorkflowStage.READY, "wip_limit": None},
    {"name": "Doing", "position": 1, "stage": WorkflowStage.DOING, "wip_limit": 2},
    {"name": "Review", "position": 2, "stage": WorkflowStage.REVIEW, "wip_limit": 5},
    {"name": "Done", "position": 3, "stage": WorkflowStage.DONE, "wip_limit": None},
]


@dataclass(frozen=True)
class GateDecision:
    admitted: bool
    reason: Optional[str] = None
    assign_to: Optional[uuid.UUID] = None

    @property
    def has_effect(self) -> bool:
        return self.assign_to is not None


def missing_ready_fields(card) -> List[str]:
    """Fields a card still needs before it may sit in Ready"""
    missing = []
    if not card.team_id:
        missing.append(READY_MISSING_TEAM)
    if not (card.acceptance_criteria or "").strip():
        missing.append(READY_MISSING_CRITERIA)
    return missing


def check_entry(card, target_stage: Optional[WorkflowStage], actor_id) -> GateDecision:
    """Decide whether ``card`` may enter a column of ``target_stage``.

    Only inspects the card's current (un-mutated) state; the caller applies
    ``assign_to`` as part of the same commit as the move.
    """
    if target_stage == WorkflowStage.READY:
        missing = missing_ready_fields(card)
        if missing:
            return GateDecision(
                admitted=False,
                reason=f"Cannot move to Ready: Set {' + '.join(missing)} first."
            )
        return GateDecision(admitted=True)

    if target_stage == WorkflowStage.DOING:
        if card.assignee_id is None:
            return GateDecision(admitted=True, assign_to=actor_id)
        return GateDecision(admitted=True)

    # Review is gated only by role; Done by role plus the separate approval flag
    return GateDecision(admitted=True)
