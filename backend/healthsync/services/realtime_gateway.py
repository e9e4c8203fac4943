"""
Realtime gateway: authenticated WebSocket connections and the live registry.

Frames are JSON objects ``{"event": <name>, "data": <payload>}`` in both
directions. The registry keeps one connection per user; the most recent
connection wins and a stale close never evicts a newer one.

The registry lives in process memory. Running several instances needs a
shared bus behind ``send`` so any instance can reach any connection.
"""

import json
from typing import Any, Optional

import structlog
from fastapi import WebSocket
from fastapi.encoders import jsonable_encoder
from fastapi.websockets import WebSocketDisconnect

from healthsync.auth import UserPrincipal, bearer_token, decode_token
from healthsync.records import new_id

logger = structlog.get_logger(__name__)

AUTH_FAILED_CODE = 1008

EVENT_CONNECTED = "connected"
EVENT_CONNECTED_USERS = "connected:users"
EVENT_GET_CONNECTED_USERS = "get:connected-users"
EVENT_PATIENT_ASSIGNED = "patient:assigned"
EVENT_PATIENT_ASSIGN = "patient:assign"
EVENT_PATIENT_ASSIGN_ACK = "patient:assigned:ack"
EVENT_DIAGNOSIS_ADDED = "patient:diagnosis-added"
EVENT_NOTIFICATION = "notification"


def frame(event: str, data: Any) -> dict:
    return {"event": event, "data": jsonable_encoder(data)}


class RealtimeGateway:
    """Manages authenticated WebSocket connections for live push."""

    def __init__(self, enabled: bool = True):
        self.enabled = enabled
        # user id -> connection id
        self._registry: dict[str, str] = {}
        # connection id -> socket
        self._connections: dict[str, WebSocket] = {}

    # -- registry -------------------------------------------------------

    def _register(self, user_id: str, connection_id: str, websocket: WebSocket) -> None:
        previous = self._registry.get(user_id)
        if previous and previous != connection_id:
            logger.info("socket_superseded", user_id=user_id, connection_id=previous)
        self._registry[user_id] = connection_id
        self._connections[connection_id] = websocket

    def _unregister(self, user_id: str, connection_id: str) -> None:
        self._connections.pop(connection_id, None)
        if self._registry.get(user_id) == connection_id:
            del self._registry[user_id]

    def list_connected_user_ids(self) -> list[str]:
        return list(self._registry.keys())

    def is_connected(self, user_id: str) -> bool:
        return str(user_id) in self._registry

    @property
    def connection_count(self) -> int:
        return len(self._registry)

    # -- delivery -------------------------------------------------------

    async def send(self, user_id: str, event: str, payload: Any) -> bool:
        """Push ``event`` to the user's live connection. True iff one was open."""
        if not self.enabled:
            return False
        user_id = str(user_id)
        connection_id = self._registry.get(user_id)
        websocket = self._connections.get(connection_id) if connection_id else None
        if websocket is None:
            return False
        try:
            await websocket.send_json(frame(event, payload))
        except Exception as exc:
            logger.warning("socket_send_failed", user_id=user_id, socket_event=event, error=str(exc))
            self._unregister(user_id, connection_id)
            return False
        return True

    async def broadcast(self, event: str, payload: Any) -> int:
        delivered = 0
        for user_id in self.list_connected_user_ids():
            if await self.send(user_id, event, payload):
                delivered += 1
        return delivered

    async def broadcast_connected_users(self) -> None:
        await self.broadcast(EVENT_CONNECTED_USERS, {"users": self.list_connected_user_ids()})

    # -- connection lifecycle -------------------------------------------

    async def authenticate(self, websocket: WebSocket) -> Optional[UserPrincipal]:
        """Verify the handshake token; close the socket and return None on failure."""
        token = websocket.query_params.get("token") or bearer_token(websocket.headers.get("authorization"))
        if not token:
            await websocket.close(code=AUTH_FAILED_CODE, reason="Authentication error: No token provided")
            return None
        principal = decode_token(token)
        if not principal:
            await websocket.close(code=AUTH_FAILED_CODE, reason="Authentication error: Invalid token")
            return None
        return principal

    async def handle(self, websocket: WebSocket) -> None:
        principal = await self.authenticate(websocket)
        if principal is None:
            logger.info("socket_rejected", client=getattr(websocket.client, "host", None))
            return

        await websocket.accept()
        connection_id = new_id()
        self._register(principal.id, connection_id, websocket)
        logger.info("socket_connected", user_id=principal.id, connection_id=connection_id)

        try:
            await websocket.send_json(
                frame(
                    EVENT_CONNECTED,
                    {
                        "userId": principal.id,
                        "message": "Successfully connected to HealthSync real-time service",
                    },
                )
            )
            await self.broadcast_connected_users()
            while True:
                raw = await websocket.receive_text()
                await self._on_message(principal, websocket, raw)
        except WebSocketDisconnect:
            pass
        finally:
            self._unregister(principal.id, connection_id)
            logger.info("socket_disconnected", user_id=principal.id, connection_id=connection_id)
            await self.broadcast_connected_users()

    async def _on_message(self, principal: UserPrincipal, websocket: WebSocket, raw: str) -> None:
        try:
            message = json.loads(raw)
        except json.JSONDecodeError:
            logger.debug("socket_message_malformed", user_id=principal.id)
            return
        if not isinstance(message, dict):
            return

        event = message.get("event")
        if event == EVENT_GET_CONNECTED_USERS:
            # Only organization dashboards show who is online
            if principal.is_organization:
                await websocket.send_json(frame(EVENT_CONNECTED_USERS, {"users": self.list_connected_user_ids()}))
        elif event == EVENT_PATIENT_ASSIGN:
            await websocket.send_json(frame(EVENT_PATIENT_ASSIGN_ACK, {"success": True}))
        else:
            logger.debug("socket_event_ignored", user_id=principal.id, socket_event=event)
