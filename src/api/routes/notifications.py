from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from src.infrastructure.notifications.connection_registry import connection_registry

router = APIRouter(tags=["notifications"])


@router.websocket("/ws/notifications")
async def notifications_socket(websocket: WebSocket, user_id: int = Query(...)) -> None:
    """Live notification feed. Incoming frames are ignored (keep-alive only)."""
    await websocket.accept()
    await connection_registry.register(user_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await connection_registry.unregister(user_id, websocket)
