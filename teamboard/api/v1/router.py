"""
Main API router for v1 endpoints
"""
import time

from fastapi import APIRouter

from teamboard.api.v1.endpoints import boards, cards, teams, websocket

api_router = APIRouter(prefix="/v1")


@api_router.get("/")
async def api_root():
    """API v1 root endpoint"""
    return {
        "success": True,
        "data": {
            "message": "Team Task Board API v1",
            "version": "1.0.0",
            "endpoints": {
                "boards": "/api/v1/boards",
                "cards": "/api/v1/cards",
                "teams": "/api/v1/teams",
                "board_updates": "/api/v1/ws/boards/{board_id}",
            }
        },
        "timestamp": time.time()
    }


api_router.include_router(boards.router, prefix="/boards", tags=["Boards"])
api_router.include_router(cards.router, prefix="/cards", tags=["Cards"])
api_router.include_router(teams.router, prefix="/teams", tags=["Teams"])
api_router.include_router(websocket.router, prefix="/ws", tags=["WebSocket"])
