"""
Live notification feed for the dashboard.

WS /ws/notifications : JSON messages, one per created alert
    {"type": "connected", "clients": N}         on connect
    {"type": "notification", "action": "created", "notification": {...}}
    {"type": "pong"}                             reply to a "ping" text frame

notifications_to_ws_bridge : background task, Redis channel -> NotificationFeed
"""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from redis.asyncio import Redis

from config import settings

logger = logging.getLogger("fleet.websocket")

router = APIRouter()


class NotificationFeed:
    """Dashboard sockets subscribed to alert notifications."""

    def __init__(self) -> None:
        self.clients: list[WebSocket] = []

    async def connect(self, ws: WebSocket) -> None:
        await ws.accept()
        self.clients.append(ws)
        logger.info("Notification feed client connected (%d total)", len(self.clients))
        await ws.send_json({"type": "connected", "clients": len(self.clients)})

    def disconnect(self, ws: WebSocket) -> None:
        if ws in self.clients:
            self.clients.remove(ws)
        logger.info("Notification feed client left (%d remaining)", len(self.clients))

    async def broadcast(self, message: dict) -> int:
        """Send ``message`` to every client; returns how many received it."""
        delivered = 0
        gone: list[WebSocket] = []
        for ws in self.clients:
            try:
                await ws.send_json(message)
                delivered += 1
            except Exception:
                gone.append(ws)
        for ws in gone:
            self.disconnect(ws)
        return delivered


feed = NotificationFeed()


def decode_notification(raw: bytes | str) -> dict | None:
    """Parse one published alert. None for anything that is not a notification."""
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8")
    try:
        message = json.loads(raw)
    except ValueError:
        logger.warning("Dropping malformed notification payload: %.200s", raw)
        return None
    if not isinstance(message, dict) or message.get("type") != "notification":
        logger.debug("Ignoring non-notification message on feed channel")
        return None
    if not isinstance(message.get("notification"), dict):
        logger.warning("Notification message without body: %.200s", raw)
        return None
    return message


@router.websocket("/ws/notifications")
async def ws_notifications(websocket: WebSocket) -> None:
    await feed.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()
            if data.strip() == "ping":
                await websocket.send_json({"type": "pong"})
    except WebSocketDisconnect:
        feed.disconnect(websocket)
    except Exception as exc:
        logger.debug("Notification feed socket error: %s", exc)
        feed.disconnect(websocket)


async def notifications_to_ws_bridge(
    redis: Redis,
    target: NotificationFeed | None = None,
    channel: str | None = None,
) -> None:
    """Relay alerts published by the notification sink to feed clients."""
    target = target or feed
    channel = channel or settings.REDIS_CHANNEL_NOTIFICATIONS
    logger.info("Notification bridge subscribing to %s", channel)
    pubsub = redis.pubsub()
    await pubsub.subscribe(channel)

    try:
        async for message in pubsub.listen():
            if message["type"] != "message":
                continue
            notification = decode_notification(message["data"])
            if notification is None:
                continue
            sent = await target.broadcast(notification)
            logger.debug(
                "Notification %s pushed to %d clients",
                notification["notification"].get("id"), sent,
            )
    except Exception as exc:
        logger.error("Notification bridge error: %s", exc)
    finally:
        await pubsub.unsubscribe(channel)
        await pubsub.close()
