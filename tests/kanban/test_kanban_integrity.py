"""
Kanban move integrity tests: dense positions, atomic rejection, auto-assign
"""
import pytest
from sqlalchemy import select
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession

from teamboard.core.exceptions import (
    AuthenticationError,
    InsufficientPermissionsError,
    ResourceNotFoundError,
    StoreError,
    WipLimitExceededError,
    WorkflowRejectedError,
)
from teamboard.models.card import Card
from teamboard.services.notification_service import NotificationLevel


async def _card_state(db_session: AsyncSession, card):
    result = await db_session.execute(
        select(Card.column_id, Card.position, Card.assignee_id).where(Card.id == card.id)
    )
    return result.one()


@pytest.mark.asyncio
async def test_member_moves_ready_card_into_doing_and_is_auto_assigned(
    db_session: AsyncSession, board, make_card, kanban_service, positions, notifier
):
    """Ready [A, B], Doing [C]: member drops A at the top of Doing"""

    # Arrange
    card_a = await make_card(board.ready, "Card A")
    card_b = await make_card(board.ready, "Card B")
    card_c = await make_card(board.doing, "Card C", assignee_id=board.other_member.id)

    # Act
    result = await kanban_service.move_card(board.member.id, card_a.id, board.doing.id, 0)

    # Assert - dense positions in both columns
    assert await positions(board.ready) == [(card_b.id, 0)]
    assert await positions(board.doing) == [(card_a.id, 0), (card_c.id, 1)]

    # Assert - auto-assigned in the same commit
    state = await _card_state(db_session, card_a)
    assert state.assignee_id == board.member.id
    assert result["auto_assigned"] is True
    assert result["assignee_id"] == str(board.member.id)
    assert result["position"] == 0
    assert result["source_positions"] == [
        {"id": str(card_b.id), "column_id": str(board.ready.id), "position": 0}
    ]

    assert "Card auto-assigned to you." in notifier.of_level(NotificationLevel.SUCCESS)
    assert "Card moved" in notifier.of_level(NotificationLevel.SUCCESS)


@pytest.mark.asyncio
async def test_move_into_doing_keeps_existing_assignee(
    db_session: AsyncSession, board, make_card, kanban_service
):
    card = await make_card(board.ready, "Owned", assignee_id=board.other_member.id)

    result = await kanban_service.move_card(board.member.id, card.id, board.doing.id, 0)

    state = await _card_state(db_session, card)
    assert state.assignee_id == board.other_member.id
    assert result["auto_assigned"] is False


@pytest.mark.asyncio
async def test_reorder_within_column_keeps_positions_dense(
    board, make_card, kanban_service, positions
):
    """Moving the first card to the end of the same column"""

    # Arrange
    cards = [await make_card(board.ready, f"Card {i + 1}") for i in range(4)]

    # Act
    await kanban_service.move_card(board.member.id, cards[0].id, board.ready.id, 3)

    # Assert
    expected = [cards[1], cards[2], cards[3], cards[0]]
    assert await positions(board.ready) == [(c.id, i) for i, c in enumerate(expected)]


@pytest.mark.asyncio
async def test_out_of_range_index_appends_to_target(
    board, make_card, kanban_service, positions
):
    card_a = await make_card(board.ready, "Card A")
    card_c = await make_card(board.doing, "Card C", assignee_id=board.member.id)

    result = await kanban_service.move_card(board.member.id, card_a.id, board.doing.id, 99)

    assert result["position"] == 1
    assert await positions(board.doing) == [(card_c.id, 0), (card_a.id, 1)]


@pytest.mark.asyncio
async def test_wip_limit_rejection_leaves_board_untouched(
    board, make_card, kanban_service, positions, notifier
):
    """Doing holds two cards already; a third arrival is refused atomically"""

    # Arrange
    card_a = await make_card(board.ready, "Card A")
    doing_1 = await make_card(board.doing, "Doing 1", assignee_id=board.member.id)
    doing_2 = await make_card(board.doing, "Doing 2", assignee_id=board.member.id)
    ready_before = await positions(board.ready)
    doing_before = await positions(board.doing)

    # Act
    with pytest.raises(WipLimitExceededError) as exc_info:
        await kanban_service.move_card(board.member.id, card_a.id, board.doing.id, 0)

    # Assert
    assert exc_info.value.message == 'WIP limit of 2 reached for column "Doing"'
    assert await positions(board.ready) == ready_before
    assert await positions(board.doing) == doing_before == [(doing_1.id, 0), (doing_2.id, 1)]
    assert notifier.of_level(NotificationLevel.ERROR) == ['WIP limit of 2 reached for column "Doing"']


@pytest.mark.asyncio
async def test_reorder_inside_full_column_is_not_wip_checked(
    board, make_card, kanban_service, positions
):
    doing_1 = await make_card(board.doing, "Doing 1", assignee_id=board.member.id)
    doing_2 = await make_card(board.doing, "Doing 2", assignee_id=board.member.id)

    await kanban_service.move_card(board.member.id, doing_2.id, board.doing.id, 0)

    assert await positions(board.doing) == [(doing_2.id, 0), (doing_1.id, 1)]


@pytest.mark.asyncio
async def test_member_cannot_skip_review(board, make_card, kanban_service, positions):
    card = await make_card(board.doing, "Card", assignee_id=board.member.id)

    with pytest.raises(InsufficientPermissionsError) as exc_info:
        await kanban_service.move_card(board.member.id, card.id, board.done.id, 0)

    assert exc_info.value.message == "Members cannot move cards from Doing to Done"
    assert await positions(board.doing) == [(card.id, 0)]
    assert await positions(board.done) == []


@pytest.mark.asyncio
async def test_member_cannot_approve_to_done(board, make_card, kanban_service):
    card = await make_card(board.review, "Card", assignee_id=board.member.id)

    with pytest.raises(InsufficientPermissionsError) as exc_info:
        await kanban_service.move_card(board.member.id, card.id, board.done.id, 0)

    assert exc_info.value.message == "Only team leads can approve cards to Done"


@pytest.mark.asyncio
async def test_lead_can_move_review_card_to_done(board, make_card, kanban_service, positions):
    card = await make_card(board.review, "Card", assignee_id=board.member.id)

    await kanban_service.move_card(board.lead.id, card.id, board.done.id, 0)

    assert await positions(board.done) == [(card.id, 0)]
    assert await positions(board.review) == []


@pytest.mark.asyncio
async def test_board_owner_outside_team_cannot_move_team_card(board, make_card, kanban_service):
    """The owner sees every card but cross-column moves still need a membership"""
    card = await make_card(board.ready, "Card")

    with pytest.raises(InsufficientPermissionsError) as exc_info:
        await kanban_service.move_card(board.owner.id, card.id, board.doing.id, 0)

    assert exc_info.value.message == "You must be a team member to move this card"


@pytest.mark.asyncio
async def test_card_of_another_team_is_not_found(board, make_card, kanban_service):
    card = await make_card(board.ready, "Card")

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await kanban_service.move_card(board.outsider.id, card.id, board.doing.id, 0)

    assert exc_info.value.message == "Card not found"


@pytest.mark.asyncio
async def test_anonymous_move_is_rejected(board, make_card, kanban_service):
    card = await make_card(board.ready, "Card")

    with pytest.raises(AuthenticationError):
        await kanban_service.move_card(None, card.id, board.doing.id, 0)


@pytest.mark.asyncio
async def test_target_column_on_another_board_is_not_found(
    db_session: AsyncSession, board, make_card, kanban_service
):
    from teamboard.models import Board, Column

    other_board = Board(name="Other", owner_id=board.owner.id)
    db_session.add(other_board)
    await db_session.flush()
    foreign_column = Column(board_id=other_board.id, name="Doing", position=0)
    db_session.add(foreign_column)
    await db_session.commit()
    card = await make_card(board.ready, "Card")

    with pytest.raises(ResourceNotFoundError) as exc_info:
        await kanban_service.move_card(board.member.id, card.id, foreign_column.id, 0)

    assert exc_info.value.message == "Target column not found"


@pytest.mark.asyncio
async def test_teamless_card_moves_freely_for_board_owner(
    board, make_card, kanban_service, positions
):
    card = await make_card(board.review, "Loose card", team_id=None, acceptance_criteria=None)

    await kanban_service.move_card(board.owner.id, card.id, board.done.id, 0)

    assert await positions(board.done) == [(card.id, 0)]


@pytest.mark.asyncio
async def test_ready_gate_reports_missing_fields(board, make_card, kanban_service, positions):
    """A team-less card without acceptance criteria cannot go back to Ready"""
    card = await make_card(board.doing, "Loose card", team_id=None, acceptance_criteria="  ")

    with pytest.raises(WorkflowRejectedError) as exc_info:
        await kanban_service.move_card(board.owner.id, card.id, board.ready.id, 0)

    assert exc_info.value.message == "Cannot move to Ready: Set Team + Done looks like first."
    assert await positions(board.doing) == [(card.id, 0)]


@pytest.mark.asyncio
async def test_rejected_move_signals_nothing(board, make_card, kanban_service, events):
    class Recorder:
        def __init__(self):
            self.sent = []

        async def accept(self):
            pass

        async def send_text(self, text):
            self.sent.append(text)

    socket = Recorder()
    await events.connect(socket, str(board.board.id))
    card = await make_card(board.doing, "Card", assignee_id=board.member.id)

    with pytest.raises(InsufficientPermissionsError):
        await kanban_service.move_card(board.member.id, card.id, board.done.id, 0)
    assert socket.sent == []

    await kanban_service.move_card(board.member.id, card.id, board.review.id, 0)
    assert len(socket.sent) == 1


async def _positions_in(db_session: AsyncSession, column_id):
    result = await db_session.execute(
        select(Card.id, Card.position)
        .where(Card.column_id == column_id)
        .order_by(Card.position)
    )
    return [tuple(row) for row in result.all()]


@pytest.mark.asyncio
async def test_store_failure_mid_move_rolls_back_every_position(
    db_session: AsyncSession, board, make_card, kanban_service, notifier, monkeypatch
):
    """The second position update fails; the first one must not survive"""

    # Arrange - rollback expires the fixture objects, so keep plain ids
    card_a = await make_card(board.ready, "Card A")
    card_b = await make_card(board.ready, "Card B")
    card_c = await make_card(board.doing, "Card C", assignee_id=board.member.id)
    ready_id, doing_id = board.ready.id, board.doing.id
    card_id, member_id = card_a.id, board.member.id
    expected_ready = [(card_a.id, 0), (card_b.id, 1)]
    expected_doing = [(card_c.id, 0)]
    assert await _positions_in(db_session, ready_id) == expected_ready

    real_execute = db_session.execute
    dml_statements = []

    async def failing_execute(statement, *args, **kwargs):
        if getattr(statement, "is_dml", False):
            dml_statements.append(statement)
            if len(dml_statements) == 2:
                raise OperationalError("UPDATE cards", {}, Exception("disk I/O error"))
        return await real_execute(statement, *args, **kwargs)

    monkeypatch.setattr(db_session, "execute", failing_execute)

    # Act
    with pytest.raises(StoreError):
        await kanban_service.move_card(member_id, card_id, doing_id, 0)

    # Assert
    monkeypatch.undo()
    assert len(dml_statements) == 2
    assert await _positions_in(db_session, ready_id) == expected_ready
    assert await _positions_in(db_session, doing_id) == expected_doing
    assert notifier.of_level(NotificationLevel.ERROR) == ["Failed to save changes, nothing was modified"]
    assert "Card moved" not in notifier.of_level(NotificationLevel.SUCCESS)
