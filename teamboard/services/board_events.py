"""
WebSocket fan-out of board refresh signals

After every committed card mutation the service layer tells all clients
viewing the affected board to re-fetch it. Clients discard their optimistic
drag-and-drop state and reset to the fetched snapshot.
"""
import json
from datetime import datetime
from typing import Dict, Set

from fastapi import WebSocket

from teamboard.core.logging import get_logger

logger = get_logger(__name__)


class BoardEventManager:
    def __init__(self):
        # Open sockets per board id
        self.board_rooms: Dict[str, Set[WebSocket]] = {}

    async def connect(self, websocket: WebSocket, board_id: str):
        """Accept a WebSocket connection and subscribe it to a board"""
        await websocket.accept()
        self.board_rooms.setdefault(str(board_id), set()).add(websocket)
        logger.info(f"WebSocket subscribed to board {board_id}")

    def disconnect(self, websocket: WebSocket, board_id: str):
        """Remove a socket from a board room"""
        room = self.board_rooms.get(str(board_id))
        if room is None:
            return
        room.discard(websocket)
        if not room:
            del self.board_rooms[str(board_id)]

    def subscriber_count(self, board_id) -> int:
        return len(self.board_rooms.get(str(board_id), ()))

    async def broadcast_board_update(self, board_id, reason: str) -> int:
        """Tell every subscriber of ``board_id`` to refresh; returns delivered count"""
        room = self.board_rooms.get(str(board_id))
        if not room:
            return 0

        message = json.dumps({
            "type": "board_updated",
            "board_id": str(board_id),
            "reason": reason,
            "timestamp": datetime.utcnow().isoformat()
        })

        sent_count = 0
        broken = []
        for websocket in list(room):
            try:
                await websocket.send_text(message)
                sent_count += 1
            except Exception as e:
                logger.warning(f"Dropping board {board_id} subscriber: {e}")
                broken.append(websocket)

        for websocket in broken:
            self.disconnect(websocket, board_id)

        return sent_count


# Global board event manager instance
board_events = BoardEventManager()
