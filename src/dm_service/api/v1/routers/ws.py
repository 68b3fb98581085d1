from __future__ import annotations

import asyncio
import logging
from typing import Any
from uuid import UUID

import pydantic
from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect

from dm_service.api.deps import get_verifier
from dm_service.api.v1.schemas.message import SendMessageRequest
from dm_service.application.dto.message import SendMessageDTO
from dm_service.application.dto.principal import Principal
from dm_service.application.exceptions import AppError, StorageError
from dm_service.config import settings
from dm_service.domain.value_objects.enums import WsEvent
from dm_service.infrastructure.bus.serializer import message_to_payload
from dm_service.infrastructure.db.uow import SqlAlchemyUoW
from dm_service.infrastructure.ws.manager import ConnectionManager
from dm_service.infrastructure.ws.protocol import WsInbound, WsOutbound
from dm_service.services import message_service, read_state_service

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])

manager = ConnectionManager()


def get_manager() -> ConnectionManager:
    return manager


async def _authenticate(token: str) -> Principal | None:
    try:
        verifier = get_verifier()
        return await verifier.verify(token)
    except Exception:
        logger.debug("WS auth failed", exc_info=True)
        return None


def _frame(event_type: str, data: dict[str, Any]) -> str:
    return WsOutbound(type=event_type, data=data).model_dump_json()


def _error_frame(code: str, exc: Exception | None = None) -> str:
    data: dict[str, Any] = {"code": code}
    if isinstance(exc, AppError) and not isinstance(exc, StorageError):
        data["detail"] = exc.detail
    return _frame(WsEvent.ERROR, data)


@router.websocket("/ws/chat")
async def ws_chat(
    websocket: WebSocket,
    token: str = Query(...),
) -> None:
    principal = await _authenticate(token)
    if principal is None:
        await websocket.close(code=4001, reason="Authentication failed")
        return

    pkey = principal.principal_key
    await manager.connect(websocket, pkey)

    heartbeat_task = asyncio.create_task(
        _heartbeat(websocket), name=f"ws-heartbeat-{pkey}",
    )
    try:
        await _read_loop(websocket, principal)
    except WebSocketDisconnect:
        pass
    except Exception:
        logger.exception("WS error for %s", pkey)
    finally:
        heartbeat_task.cancel()
        manager.disconnect(websocket, pkey)


async def _heartbeat(ws: WebSocket) -> None:
    interval = settings.WS_HEARTBEAT_SECONDS
    try:
        while True:
            await asyncio.sleep(interval)
            await ws.send_text(_frame(WsEvent.PONG, {}))
    except asyncio.CancelledError:
        pass
    except Exception:
        logger.debug("WS heartbeat stopped", exc_info=True)


async def _read_loop(ws: WebSocket, principal: Principal) -> None:
    while True:
        raw = await ws.receive_text()
        try:
            msg = WsInbound.model_validate_json(raw)
        except Exception:
            await ws.send_text(_error_frame("invalid_payload"))
            continue

        if msg.type == "ping":
            await ws.send_text(_frame(WsEvent.PONG, {}))

        elif msg.type == "message.send":
            await _handle_send(ws, principal, msg.data)

        elif msg.type == "mark_read":
            await _handle_mark_read(ws, principal, msg.data)

        else:
            await ws.send_text(
                _frame(WsEvent.ERROR, {"code": "unknown_type", "type": msg.type})
            )


async def _handle_send(ws: WebSocket, principal: Principal, data: dict[str, Any]) -> None:
    try:
        req = SendMessageRequest.model_validate(data)
    except pydantic.ValidationError as exc:
        first = exc.errors()[0]
        loc = ".".join(str(p) for p in first["loc"])
        await ws.send_text(
            _frame(WsEvent.ERROR, {"code": "invalid_data", "detail": f"{loc}: {first['msg']}"})
        )
        return
    dto = SendMessageDTO(target_user_id=req.target_user_id, body=req.body)

    notifier = ws.app.state.notifier
    async with SqlAlchemyUoW() as uow:
        try:
            await message_service.send_message(principal, dto, uow, notifier)
        except AppError as exc:
            await ws.send_text(_error_frame("send_failed", exc))
    # delivery to both sides happens through the pub/sub subscriber


async def _handle_mark_read(ws: WebSocket, principal: Principal, data: dict[str, Any]) -> None:
    try:
        message_id = UUID(data["message_id"])
    except (KeyError, TypeError, ValueError):
        await ws.send_text(_error_frame("invalid_data"))
        return

    async with SqlAlchemyUoW() as uow:
        try:
            msg = await read_state_service.mark_read(principal, message_id, uow)
        except AppError as exc:
            await ws.send_text(_error_frame("mark_read_failed", exc))
            return

    await manager.send_to_users(
        (msg.sender_id, msg.receiver_id), WsEvent.MESSAGE_READ, message_to_payload(msg),
    )
