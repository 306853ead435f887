"""
WebSocket and REST routes of the notification service.
"""

import json
import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends, Query, Request, WebSocket, WebSocketDisconnect, status
from fastapi.responses import JSONResponse

from lifeos.utils.exceptions import AuthenticationError

from .auth import require_user
from .connections import WebSocketConnection
from .handlers import error_frame
from .models import BulkNotificationCreate, Notification, NotificationCreate, UserRef, parse_payload

logger = logging.getLogger(__name__)

router = APIRouter()


async def notification_socket(websocket: WebSocket):
    """
    Notification push endpoint.

    Authenticate with ``Authorization: Bearer <token>`` on the upgrade
    request, or ``?token=<token>``. Rejected sockets are closed before they
    are accepted or registered.
    """
    state = websocket.app.state

    try:
        user_id = state.authenticator.authenticate(websocket)
    except AuthenticationError as e:
        logger.warning(f"WebSocket authentication failed: {e}")
        state.metrics.handshake_rejections.inc()
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    connection = WebSocketConnection(websocket)
    state.registry.attach(connection)
    state.registry.register(user_id, connection.connection_id)
    state.metrics.active_connections.inc()
    logger.info(f"User {user_id} connected with socket {connection.connection_id}")

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(frame.get("code", 1000))

            raw = frame.get("text")
            if raw is None:
                await websocket.send_json(error_frame("Message must be text"))
                continue

            try:
                message = json.loads(raw)
            except ValueError:
                await websocket.send_json(error_frame("Invalid JSON"))
                continue

            response = await state.ws_handler.handle_message(connection, message)
            if response:
                await websocket.send_json(response)

    except WebSocketDisconnect:
        logger.info(f"WebSocket disconnected: {connection.connection_id}")
    finally:
        connection.closed = True
        state.registry.detach(connection.connection_id)
        state.metrics.active_connections.dec()


def get_service(request: Request):
    return request.app.state.notification_service


def get_dispatcher(request: Request):
    return request.app.state.dispatcher


def _page_size(request: Request, limit: Optional[int]) -> int:
    config = request.app.state.config.notifications
    if limit is None:
        return config.default_page_size
    return max(1, min(limit, config.max_page_size))


# Notification resource

@router.post("/notifications", response_model=Notification, status_code=status.HTTP_201_CREATED)
async def create_notification(
    body: NotificationCreate,
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    return await service.create_notification(body)


@router.get("/notifications", response_model=List[Notification])
async def get_user_notifications(
    request: Request,
    user_id: str = Query(..., alias="userId"),
    limit: Optional[int] = Query(None, ge=1),
    offset: int = Query(0, ge=0),
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    return await service.get_user_notifications(user_id, limit=_page_size(request, limit), offset=offset)


@router.get("/notifications/unread-count")
async def get_unread_count(
    user_id: str = Query(..., alias="userId"),
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    return {"count": await service.get_unread_count(user_id)}


@router.patch("/notifications/mark-all-read")
async def mark_all_as_read(
    body: UserRef,
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    await service.mark_all_as_read(body.user_id)
    return {"success": True}


@router.patch("/notifications/{notification_id}/read", response_model=Notification)
async def mark_as_read(
    notification_id: str,
    body: UserRef,
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    return await service.mark_as_read(notification_id, body.user_id)


@router.delete("/notifications/{notification_id}")
async def delete_notification(
    notification_id: str,
    user_id: str = Query(..., alias="userId"),
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    await service.delete_notification(notification_id, user_id)
    return {"success": True}


@router.post("/notifications/bulk", response_model=List[Notification], status_code=status.HTTP_201_CREATED)
async def send_bulk_notification(
    body: BulkNotificationCreate,
    service=Depends(get_service),
    _subject: str = Depends(require_user),
):
    return await service.send_bulk_notification(body)


# Live push without persistence

@router.post("/ws/users/{user_id}/send")
async def send_to_user(
    user_id: str,
    message: Dict[str, Any],
    dispatcher=Depends(get_dispatcher),
    _subject: str = Depends(require_user),
):
    """Push a message to one user's live connection, if any."""
    await dispatcher.dispatch_to_user(user_id, parse_payload(message))
    return JSONResponse(content={"status": "sent", "user_id": user_id})


@router.post("/ws/broadcast")
async def broadcast_message(
    message: Dict[str, Any],
    dispatcher=Depends(get_dispatcher),
    _subject: str = Depends(require_user),
):
    """Push a message to every registered connection."""
    await dispatcher.broadcast(parse_payload(message))
    return JSONResponse(content={"status": "broadcasted"})


@router.get("/ws/stats")
async def websocket_stats(request: Request):
    """Get notification service statistics."""
    state = request.app.state
    return JSONResponse(content={**state.registry.get_stats(), **state.metrics.get_summary()})


@router.get("/health")
async def health():
    return {"status": "healthy"}
