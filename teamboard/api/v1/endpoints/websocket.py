"""
WebSocket endpoint for board refresh signals
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query, WebSocket, WebSocketDisconnect, status
from sqlalchemy.ext.asyncio import AsyncSession

from teamboard.config import settings
from teamboard.core.database import get_db
from teamboard.core.db_types import as_uuid
from teamboard.core.logging import get_logger
from teamboard.services.board_events import board_events
from teamboard.services.kanban_service import KanbanService

logger = get_logger(__name__)

router = APIRouter()


@router.websocket("/boards/{board_id}")
async def board_updates(
    websocket: WebSocket,
    board_id: str,
    user_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """
    Subscribe to refresh signals for one board.

    The caller is identified by the identity header, or by the ``user_id``
    query parameter for browsers that cannot set headers on a socket. Only
    callers who can see the board are subscribed.

    The server only pushes ``board_updated`` messages; anything the client
    sends is ignored apart from keeping the connection alive.
    """
    actor = as_uuid(websocket.headers.get(settings.identity_header) or user_id)
    if actor is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Authentication required")
        return

    if not await KanbanService(db).can_view_board(actor, board_id):
        logger.warning(f"Refused board {board_id} subscription", extra={"user_id": str(actor)})
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION, reason="Board not found")
        return

    # The socket can stay open for hours; give the connection back to the pool
    await db.close()

    await board_events.connect(websocket, board_id)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info(f"WebSocket left board {board_id}")
    finally:
        board_events.disconnect(websocket, board_id)
