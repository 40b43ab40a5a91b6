"""
Kanban card service
Card moves, claims, review submission, approval and card lifecycle, each
committed as a single transaction
"""
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy import select, update, delete
from sqlalchemy.orm import selectinload

from teamboard.core.db_types import as_uuid
from teamboard.core.exceptions import (
    APIException,
    AuthenticationError,
    InsufficientPermissionsError,
    OperationNotAllowedError,
    ResourceNotFoundError,
    StoreError,
    ValidationError,
    WipLimitExceededError,
    WorkflowRejectedError,
)
from teamboard.core.logging import get_logger
from teamboard.core.permissions import can_move, can_approve
from teamboard.models.board import Board
from teamboard.models.card import Card, PRIORITIES, DEFAULT_PRIORITY
from teamboard.models.column import Column as ColumnModel
from teamboard.models.team import TeamMember
from teamboard.services.board_events import BoardEventManager, board_events
from teamboard.services.card_templates import get_template
from teamboard.services.notification_service import (
    LoggingNotificationSink,
    NotificationLevel,
    NotificationSink,
    send_notification,
)
from teamboard.services.ordering import (
    PositionAssignment,
    Reordering,
    append_position,
    renumber,
    reorder,
)
from teamboard.services.subsystem_mapping import resolve_subsystem_team
from teamboard.services.team_service import TeamService
from teamboard.services.wip_limits import check_capacity
from teamboard.services.workflow_gate import WorkflowStage, check_entry

logger = get_logger(__name__)

EDITABLE_FIELDS = (
    "title", "description", "acceptance_criteria", "priority", "task_type",
    "subsystem", "team_id", "due_date", "assignee_id", "is_onboarding",
    "is_blocked", "blocked_reason",
)


def _strip_or_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


def _stage_value(column) -> Optional[str]:
    stage = WorkflowStage.for_column(column)
    return stage.value if stage else None


def _assignments_data(assignments: Sequence[PositionAssignment]) -> List[Dict[str, Any]]:
    return [
        {"id": str(a.card_id), "column_id": str(a.column_id), "position": a.position}
        for a in assignments
    ]


class KanbanService:
    """Service for moving and managing cards on team boards"""

    def __init__(
        self,
        db: AsyncSession,
        notifier: Optional[NotificationSink] = None,
        events: Optional[BoardEventManager] = None
    ):
        self.db = db
        self.notifier = notifier or LoggingNotificationSink()
        self.events = events or board_events
        self.teams = TeamService(db)

    # ------------------------------------------------------------------
    # Loading and visibility
    # ------------------------------------------------------------------

    @staticmethod
    def _require_actor(actor_id):
        actor = as_uuid(actor_id)
        if actor is None:
            raise AuthenticationError("Unauthorized")
        return actor

    async def _load_card(self, card_id) -> Optional[Card]:
        card_uuid = as_uuid(card_id)
        if card_uuid is None:
            return None
        result = await self.db.execute(
            select(Card)
            .options(selectinload(Card.column).selectinload(ColumnModel.board))
            .where(Card.id == card_uuid)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def _load_column(self, column_id) -> Optional[ColumnModel]:
        column_uuid = as_uuid(column_id)
        if column_uuid is None:
            return None
        result = await self.db.execute(
            select(ColumnModel)
            .options(selectinload(ColumnModel.board))
            .where(ColumnModel.id == column_uuid)
        )
        return result.scalar_one_or_none()

    async def _can_view(self, actor, board: Board, team_id) -> bool:
        """Board owners see everything; team members see their team's cards"""
        if board.owner_id == actor:
            return True
        return await self.teams.is_member(team_id, actor)

    async def _board_team_ids(self, actor, board_id) -> set:
        """The actor's teams that have at least one card on the board"""
        result = await self.db.execute(
            select(TeamMember.team_id)
            .join(Card, Card.team_id == TeamMember.team_id)
            .join(ColumnModel, Card.column_id == ColumnModel.id)
            .where(TeamMember.user_id == actor, ColumnModel.board_id == board_id)
            .distinct()
        )
        return set(result.scalars().all())

    async def can_view_board(self, actor_id, board_id) -> bool:
        """Board owners, and members of a team with cards on the board"""
        actor = as_uuid(actor_id)
        board_uuid = as_uuid(board_id)
        if actor is None or board_uuid is None:
            return False
        board = await self.db.get(Board, board_uuid)
        if not board:
            return False
        if board.owner_id == actor:
            return True
        return bool(await self._board_team_ids(actor, board_uuid))

    async def _get_visible_card(self, actor, card_id) -> Card:
        card = await self._load_card(card_id)
        if not card or not await self._can_view(actor, card.column.board, card.team_id):
            raise ResourceNotFoundError("Card")
        return card

    async def _cards_in_column(self, column_id) -> List[Card]:
        result = await self.db.execute(
            select(Card).where(Card.column_id == column_id).order_by(Card.position)
        )
        return list(result.scalars().all())

    async def _find_stage_column(self, board_id, stage: WorkflowStage) -> Optional[ColumnModel]:
        result = await self.db.execute(
            select(ColumnModel)
            .where(ColumnModel.board_id == board_id)
            .order_by(ColumnModel.position)
        )
        for column in result.scalars().all():
            if WorkflowStage.for_column(column) == stage:
                return column
        return None

    # ------------------------------------------------------------------
    # Commit and reporting
    # ------------------------------------------------------------------

    async def _commit(self):
        try:
            await self.db.commit()
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Transaction rolled back: {e}")
            raise StoreError("Failed to save changes, nothing was modified")

    async def _apply_assignments(
        self,
        assignments: Sequence[PositionAssignment],
        card_values: Optional[Dict[Any, Dict[str, Any]]] = None
    ):
        """Write column/position for every assignment and commit them together"""
        card_values = card_values or {}
        try:
            for assignment in assignments:
                values = {"column_id": assignment.column_id, "position": assignment.position}
                values.update(card_values.get(assignment.card_id, {}))
                await self.db.execute(
                    update(Card)
                    .where(Card.id == assignment.card_id)
                    .values(**values)
                )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Position update failed: {e}")
            raise StoreError("Failed to save changes, nothing was modified")
        await self._commit()

    def _notify(self, level: NotificationLevel, message: str):
        send_notification(self.notifier, level, message)

    async def _signal_board(self, board_id, reason: str):
        try:
            await self.events.broadcast_board_update(board_id, reason)
        except Exception as e:
            logger.warning(f"Board refresh signal failed for board {board_id}: {e}")

    def _report_failure(self, error: APIException, operation: str, **context):
        logger.warning(
            f"{operation} rejected: {error.message}",
            extra={"error_code": error.error_code, **{k: str(v) for k, v in context.items()}}
        )
        self._notify(NotificationLevel.ERROR, error.message)

    # ------------------------------------------------------------------
    # Move orchestration
    # ------------------------------------------------------------------

    async def move_card(
        self,
        actor_id,
        card_id,
        target_column_id,
        target_index: int
    ) -> Dict[str, Any]:
        """Move a card to ``target_index`` of a column, on behalf of ``actor_id``"""
        try:
            return await self._move_card(actor_id, card_id, target_column_id, target_index)
        except APIException as e:
            self._report_failure(e, "Move", card_id=card_id, user_id=actor_id)
            raise

    async def _move_card(self, actor_id, card_id, target_column_id, target_index) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        card = await self._get_visible_card(actor, card_id)
        source_column = card.column
        board = source_column.board

        target_column = await self._load_column(target_column_id)
        if not target_column or target_column.board_id != board.id:
            raise ResourceNotFoundError("Target column")

        cross_column = source_column.id != target_column.id
        source_cards = await self._cards_in_column(source_column.id)
        target_cards = await self._cards_in_column(target_column.id) if cross_column else source_cards

        if cross_column:
            role = await self.teams.get_role(card.team_id, actor) if card.team_id else None
            decision = can_move(card.team_id, role, source_column, target_column)
            if not decision.allowed:
                raise InsufficientPermissionsError(decision.reason)

            capacity = check_capacity(target_column, len(target_cards), is_cross_column=True)
            if not capacity.admitted:
                raise WipLimitExceededError(capacity.reason)

        gate = check_entry(card, WorkflowStage.for_column(target_column), actor)
        if not gate.admitted:
            raise WorkflowRejectedError(gate.reason)

        reordering = reorder(
            source_cards,
            target_cards,
            card.id,
            source_column.id,
            target_column.id,
            target_index,
        )

        card_values = {}
        if gate.has_effect:
            card_values[card.id] = {"assignee_id": gate.assign_to}

        await self._apply_assignments(reordering.all_assignments(), card_values)

        logger.info(
            f"Card moved from {source_column.name} to {target_column.name}",
            extra={"card_id": str(card.id), "user_id": str(actor), "board_id": str(board.id)}
        )
        if gate.has_effect:
            self._notify(NotificationLevel.SUCCESS, "Card auto-assigned to you.")
        self._notify(NotificationLevel.SUCCESS, "Card moved")
        await self._signal_board(board.id, "card_moved")

        return self._move_result(card, board, target_column, reordering, gate.assign_to)

    @staticmethod
    def _move_result(card, board, target_column, reordering: Reordering, assigned_to=None) -> Dict[str, Any]:
        assignee = assigned_to if assigned_to is not None else card.assignee_id
        return {
            "id": str(card.id),
            "board_id": str(board.id),
            "column_id": str(target_column.id),
            "position": reordering.position_of(card.id),
            "assignee_id": str(assignee) if assignee else None,
            "auto_assigned": assigned_to is not None,
            "source_positions": _assignments_data(reordering.source),
            "target_positions": _assignments_data(reordering.target),
        }

    async def _move_to_stage_end(
        self,
        card: Card,
        stage: WorkflowStage,
        card_values: Optional[Dict[str, Any]] = None
    ):
        """Append ``card`` to the board's ``stage`` column, WIP-checked"""
        board = card.column.board
        stage_column = await self._find_stage_column(board.id, stage)
        if not stage_column:
            raise ResourceNotFoundError(f"{stage.display_name} column")

        target_cards = await self._cards_in_column(stage_column.id)
        capacity = check_capacity(stage_column, len(target_cards), is_cross_column=True)
        if not capacity.admitted:
            raise WipLimitExceededError(capacity.reason)

        source_cards = await self._cards_in_column(card.column_id)
        reordering = reorder(
            source_cards,
            target_cards,
            card.id,
            card.column_id,
            stage_column.id,
            len(target_cards),
        )
        await self._apply_assignments(
            reordering.all_assignments(),
            {card.id: card_values} if card_values else None
        )
        return stage_column, reordering

    async def claim_card(self, actor_id, card_id, board_id) -> Dict[str, Any]:
        """Assign an unowned Ready card to the actor and advance it to Doing"""
        try:
            return await self._claim_card(actor_id, card_id, board_id)
        except APIException as e:
            self._report_failure(e, "Claim", card_id=card_id, user_id=actor_id)
            raise

    async def _claim_card(self, actor_id, card_id, board_id) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        card = await self._load_card(card_id)
        if not card or card.column.board_id != as_uuid(board_id):
            raise ResourceNotFoundError("Card")

        if card.assignee_id:
            raise OperationNotAllowedError("Card is already assigned")

        if WorkflowStage.for_column(card.column) != WorkflowStage.READY:
            raise OperationNotAllowedError("Can only claim cards in Ready status")

        if card.team_id and not await self.teams.is_member(card.team_id, actor):
            raise InsufficientPermissionsError("You must be a team member to claim this card")

        doing_column, reordering = await self._move_to_stage_end(
            card, WorkflowStage.DOING, {"assignee_id": actor}
        )

        board = card.column.board
        logger.info(
            "Card claimed",
            extra={"card_id": str(card.id), "user_id": str(actor), "board_id": str(board.id)}
        )
        self._notify(NotificationLevel.SUCCESS, "Card claimed")
        await self._signal_board(board.id, "card_claimed")
        return self._move_result(card, board, doing_column, reordering, actor)

    async def submit_for_review(self, actor_id, card_id) -> Dict[str, Any]:
        """Move the actor's own Doing card to the end of Review"""
        try:
            return await self._submit_for_review(actor_id, card_id)
        except APIException as e:
            self._report_failure(e, "Submit for review", card_id=card_id, user_id=actor_id)
            raise

    async def _submit_for_review(self, actor_id, card_id) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        card = await self._load_card(card_id)
        if not card:
            raise ResourceNotFoundError("Card")

        if card.assignee_id != actor:
            raise InsufficientPermissionsError("Only the assignee can submit this card for review")

        if WorkflowStage.for_column(card.column) != WorkflowStage.DOING:
            raise OperationNotAllowedError("Can only submit cards in Doing for review")

        review_column, reordering = await self._move_to_stage_end(card, WorkflowStage.REVIEW)

        board = card.column.board
        logger.info(
            "Card submitted for review",
            extra={"card_id": str(card.id), "user_id": str(actor), "board_id": str(board.id)}
        )
        self._notify(NotificationLevel.SUCCESS, "Card submitted for review")
        await self._signal_board(board.id, "card_submitted")
        return self._move_result(card, board, review_column, reordering)

    async def approve_card(self, actor_id, card_id) -> Dict[str, Any]:
        """Record lead approval on a card; its column is left untouched"""
        try:
            return await self._approve_card(actor_id, card_id)
        except APIException as e:
            self._report_failure(e, "Approve", card_id=card_id, user_id=actor_id)
            raise

    async def _approve_card(self, actor_id, card_id) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        card = await self._get_visible_card(actor, card_id)

        role = await self.teams.get_role(card.team_id, actor) if card.team_id else None
        if not can_approve(role):
            raise InsufficientPermissionsError("Only team leads can approve cards")

        try:
            await self.db.execute(
                update(Card)
                .where(Card.id == card.id)
                .values(is_approved=True, reviewer_id=actor)
            )
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Approval update failed: {e}")
            raise StoreError("Failed to save changes, nothing was modified")
        await self._commit()

        board_id = card.column.board_id
        logger.info(
            "Card approved",
            extra={"card_id": str(card.id), "user_id": str(actor), "board_id": str(board_id)}
        )
        self._notify(NotificationLevel.SUCCESS, "Card approved")
        await self._signal_board(board_id, "card_approved")
        return {
            "id": str(card.id),
            "column_id": str(card.column_id),
            "is_approved": True,
            "reviewer_id": str(actor),
        }

    # ------------------------------------------------------------------
    # Card lifecycle
    # ------------------------------------------------------------------

    def _normalize_fields(self, data: Dict[str, Any], partial: bool = False) -> Dict[str, Any]:
        """Strip and validate editable fields; ``partial`` is an update of an existing card"""
        values = {}
        for key, value in data.items():
            if key not in EDITABLE_FIELDS:
                continue
            if key == "title":
                if value is None or not value.strip():
                    raise ValidationError("Card title cannot be empty")
                value = value.strip()
            elif key in ("description", "acceptance_criteria", "subsystem", "task_type", "blocked_reason"):
                value = _strip_or_none(value)
            elif key == "priority":
                if value is None and partial:
                    raise ValidationError("Priority cannot be empty")
                value = value or DEFAULT_PRIORITY
                if value not in PRIORITIES:
                    raise ValidationError(f"Priority must be one of {', '.join(PRIORITIES)}")
            elif key in ("team_id", "assignee_id"):
                value = as_uuid(value) if value else None
            values[key] = value
        return values

    async def _team_for_subsystem(self, subsystem: str):
        """Legacy free-text subsystem to the owning team's id, if mapped"""
        slug = resolve_subsystem_team(subsystem)
        if not slug:
            return None
        team = await self.teams.get_team_by_slug(slug)
        return team.id if team else None

    async def create_card(self, actor_id, column_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """Create a card at the end of a column"""
        try:
            return await self._create_card(actor_id, column_id, data)
        except APIException as e:
            self._report_failure(e, "Create card", user_id=actor_id)
            raise

    async def _create_card(self, actor_id, column_id, data: Dict[str, Any]) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        values = self._normalize_fields(data)
        if "title" not in values:
            raise ValidationError("Card title cannot be empty")
        values.setdefault("priority", DEFAULT_PRIORITY)
        if not values.get("team_id") and values.get("subsystem"):
            values["team_id"] = await self._team_for_subsystem(values["subsystem"])

        column = await self._load_column(column_id)
        if not column or not await self._can_view(actor, column.board, values.get("team_id")):
            raise ResourceNotFoundError("Column")

        existing = await self._cards_in_column(column.id)
        capacity = check_capacity(column, len(existing), is_cross_column=True)
        if not capacity.admitted:
            raise WipLimitExceededError(capacity.reason)

        card = Card(column_id=column.id, position=append_position(existing), **values)
        self.db.add(card)
        await self._commit()
        await self.db.refresh(card)

        logger.info(
            "Card created",
            extra={"card_id": str(card.id), "user_id": str(actor), "board_id": str(column.board_id)}
        )
        self._notify(NotificationLevel.SUCCESS, "Card created")
        await self._signal_board(column.board_id, "card_created")
        return self.card_to_dict(card)

    async def create_card_from_template(
        self,
        actor_id,
        column_id,
        template_id: str,
        overrides: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Create a card pre-filled from one of the card templates"""
        template = get_template(template_id)
        if not template:
            error = ResourceNotFoundError("Template")
            self._report_failure(error, "Create card", user_id=actor_id)
            raise error

        data = {
            "title": template.name,
            "description": template.description,
            "acceptance_criteria": template.acceptance_criteria,
            "priority": template.priority,
            "task_type": template.task_type,
            "is_onboarding": template.is_onboarding,
        }
        data.update({k: v for k, v in (overrides or {}).items() if v is not None})
        return await self.create_card(actor_id, column_id, data)

    async def update_card(self, actor_id, card_id, data: Dict[str, Any]) -> Dict[str, Any]:
        """Update editable card fields; placement and approval are not editable here"""
        try:
            return await self._update_card(actor_id, card_id, data)
        except APIException as e:
            self._report_failure(e, "Update card", card_id=card_id, user_id=actor_id)
            raise

    async def _update_card(self, actor_id, card_id, data: Dict[str, Any]) -> Dict[str, Any]:
        actor = self._require_actor(actor_id)
        card = await self._get_visible_card(actor, card_id)
        board_id = card.column.board_id

        for key, value in self._normalize_fields(data, partial=True).items():
            setattr(card, key, value)

        await self._commit()
        await self.db.refresh(card)

        self._notify(NotificationLevel.SUCCESS, "Card updated")
        await self._signal_board(board_id, "card_updated")
        return self.card_to_dict(card)

    async def delete_card(self, actor_id, card_id) -> bool:
        """Delete a card and close the gap it leaves in its column"""
        try:
            return await self._delete_card(actor_id, card_id)
        except APIException as e:
            self._report_failure(e, "Delete card", card_id=card_id, user_id=actor_id)
            raise

    async def _delete_card(self, actor_id, card_id) -> bool:
        actor = self._require_actor(actor_id)
        card = await self._get_visible_card(actor, card_id)
        column_id = card.column_id
        board_id = card.column.board_id

        remaining = [c for c in await self._cards_in_column(column_id) if c.id != card.id]
        try:
            await self.db.execute(delete(Card).where(Card.id == card.id))
        except SQLAlchemyError as e:
            await self.db.rollback()
            logger.error(f"Card delete failed: {e}")
            raise StoreError("Failed to save changes, nothing was modified")
        await self._apply_assignments(renumber(remaining, column_id))

        logger.info(
            "Card deleted",
            extra={"card_id": str(card_id), "user_id": str(actor), "board_id": str(board_id)}
        )
        self._notify(NotificationLevel.SUCCESS, "Card deleted")
        await self._signal_board(board_id, "card_deleted")
        return True

    # ------------------------------------------------------------------
    # Snapshot
    # ------------------------------------------------------------------

    async def get_board_snapshot(self, actor_id, board_id) -> Dict[str, Any]:
        """Authoritative column/card ordering of a board as seen by the actor"""
        actor = self._require_actor(actor_id)
        board_uuid = as_uuid(board_id)
        if board_uuid is None:
            raise ResourceNotFoundError("Board")

        result = await self.db.execute(
            select(Board)
            .options(selectinload(Board.columns).selectinload(ColumnModel.cards))
            .where(Board.id == board_uuid)
            .execution_options(populate_existing=True)
        )
        board = result.scalar_one_or_none()
        if not board:
            raise ResourceNotFoundError("Board")

        is_owner = board.owner_id == actor
        team_ids = set()
        if not is_owner:
            team_ids = await self._board_team_ids(actor, board.id)
            if not team_ids:
                raise ResourceNotFoundError("Board")

        columns = sorted(board.columns, key=lambda x: x.position)
        return {
            "id": str(board.id),
            "name": board.name,
            "owner_id": str(board.owner_id),
            "columns": [
                {
                    "id": str(col.id),
                    "name": col.name,
                    "position": col.position,
                    "wip_limit": col.wip_limit,
                    "stage": _stage_value(col),
                    "cards": [
                        self.card_to_dict(card)
                        for card in sorted(col.cards, key=lambda x: x.position)
                        if is_owner or card.team_id in team_ids
                    ]
                }
                for col in columns
            ]
        }

    @staticmethod
    def card_to_dict(card: Card) -> Dict[str, Any]:
        return {
            "id": str(card.id),
            "column_id": str(card.column_id),
            "team_id": str(card.team_id) if card.team_id else None,
            "assignee_id": str(card.assignee_id) if card.assignee_id else None,
            "reviewer_id": str(card.reviewer_id) if card.reviewer_id else None,
            "title": card.title,
            "description": card.description,
            "acceptance_criteria": card.acceptance_criteria,
            "priority": card.priority,
            "task_type": card.task_type,
            "due_date": card.due_date.isoformat() if card.due_date else None,
            "is_onboarding": card.is_onboarding,
            "is_blocked": card.is_blocked,
            "blocked_reason": card.blocked_reason,
            "is_approved": card.is_approved,
            "position": card.position,
        }
