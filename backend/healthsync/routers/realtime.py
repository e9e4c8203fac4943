from fastapi import APIRouter, WebSocket

router = APIRouter()


@router.websocket("/ws")
async def realtime_socket(websocket: WebSocket):
    """Live channel; authenticate with ?token=<jwt> or an Authorization header."""
    await websocket.app.state.gateway.handle(websocket)
