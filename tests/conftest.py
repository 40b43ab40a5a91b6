"""
Shared fixtures: in-memory database, a seeded team board and an API client
"""
import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["ENVIRONMENT"] = "development"

from types import SimpleNamespace

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from teamboard.core.database import Base, get_db
from teamboard.models import Board, Card, Column, Team, TeamMember, TeamRole, User
from teamboard.services.board_events import BoardEventManager
from teamboard.services.kanban_service import KanbanService
from teamboard.services.notification_service import RecordingNotificationSink
from teamboard.services.workflow_gate import DEFAULT_WORKFLOW_COLUMNS


@pytest.fixture
async def engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
async def board(db_session: AsyncSession):
    """Wings team board: owner, lead, member, outsider and the four workflow columns"""
    owner = User(name="Board Owner", email="owner@example.com")
    lead = User(name="Team Lead", email="lead@example.com")
    member = User(name="Team Member", email="member@example.com")
    other_member = User(name="Second Member", email="member2@example.com")
    outsider = User(name="Outsider", email="outsider@example.com")
    db_session.add_all([owner, lead, member, other_member, outsider])
    await db_session.flush()

    team = Team(name="Wings", slug="wings-25-26")
    other_team = Team(name="Controls", slug="controls-team")
    db_session.add_all([team, other_team])
    await db_session.flush()

    db_session.add_all([
        TeamMember(team_id=team.id, user_id=lead.id, role=TeamRole.LEAD.value),
        TeamMember(team_id=team.id, user_id=member.id, role=TeamRole.MEMBER.value),
        TeamMember(team_id=team.id, user_id=other_member.id, role=TeamRole.MEMBER.value),
        TeamMember(team_id=other_team.id, user_id=outsider.id, role=TeamRole.MEMBER.value),
    ])

    team_board = Board(name="Aircraft 25-26", owner_id=owner.id)
    db_session.add(team_board)
    await db_session.flush()

    columns = {}
    for column_def in DEFAULT_WORKFLOW_COLUMNS:
        column = Column(
            board_id=team_board.id,
            name=column_def["name"],
            position=column_def["position"],
            stage=column_def["stage"].value,
            wip_limit=column_def["wip_limit"],
        )
        db_session.add(column)
        columns[column_def["name"]] = column
    await db_session.commit()

    return SimpleNamespace(
        board=team_board,
        team=team,
        other_team=other_team,
        owner=owner,
        lead=lead,
        member=member,
        other_member=other_member,
        outsider=outsider,
        ready=columns["Ready"],
        doing=columns["Doing"],
        review=columns["Review"],
        done=columns["Done"],
    )


@pytest.fixture
def make_card(db_session: AsyncSession, board):
    """Insert a ready-to-work card at the next position of a column"""

    async def _make_card(column, title, **fields):
        result = await db_session.execute(
            select(Card.position).where(Card.column_id == column.id)
        )
        positions = list(result.scalars().all())
        fields.setdefault("acceptance_criteria", "Part built and photographed")
        fields.setdefault("team_id", board.team.id)
        card = Card(
            column_id=column.id,
            title=title,
            position=max(positions) + 1 if positions else 0,
            **fields
        )
        db_session.add(card)
        await db_session.commit()
        return card

    return _make_card


@pytest.fixture
def notifier():
    return RecordingNotificationSink()


@pytest.fixture
def events():
    return BoardEventManager()


@pytest.fixture
def kanban_service(db_session: AsyncSession, notifier, events):
    return KanbanService(db_session, notifier=notifier, events=events)


async def _column_positions(db_session: AsyncSession, column) -> list:
    """(card id, position) pairs of a column, read straight from the database"""
    result = await db_session.execute(
        select(Card.id, Card.position)
        .where(Card.column_id == column.id)
        .order_by(Card.position)
    )
    return [tuple(row) for row in result.all()]


@pytest.fixture
def positions(db_session: AsyncSession):
    async def _positions(column):
        return await _column_positions(db_session, column)
    return _positions


@pytest.fixture
async def client(session_factory):
    from teamboard.main import app

    async def override_get_db():
        async with session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http_client:
        yield http_client
    app.dependency_overrides.clear()
