"""
Pose Stream

WebSocket feed of sampling loop output. Every message is a JSON envelope:

    {"event": "pose_update", "payload": {...PoseUpdate...}}
    {"event": "tracking_debug", "payload": {...DiagnosticEvent...}}

Connect with ``?metrics=true`` to get posture scores added to each pose.
"""

import asyncio
import logging
from typing import Any, Dict

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from analysis.posture import calculate_posture_metrics
from capture.events import CaptureEvent, QueueSubscription
from core.pose_types import PoseUpdate
from ..constants import EndpointPath, EventName
from ..controller_manager import get_event_broadcaster

logger = logging.getLogger(__name__)

router = APIRouter()


def serialize_event(event: CaptureEvent, include_metrics: bool = False) -> Dict[str, Any]:
    """Wrap a capture event in the stream envelope"""
    if isinstance(event, PoseUpdate):
        payload = event.to_dict()
        if include_metrics:
            payload["metrics"] = calculate_posture_metrics(event.landmarks).to_dict()
        return {"event": EventName.POSE_UPDATE.value, "payload": payload}
    return {"event": EventName.TRACKING_DEBUG.value, "payload": event.to_dict()}


async def _forward_events(websocket: WebSocket, subscription: QueueSubscription, include_metrics: bool) -> None:
    while True:
        event = await subscription.get()
        await websocket.send_json(serialize_event(event, include_metrics))


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


# [ENDPOINT] WS /api/v1/ws/pose - Live pose updates and loop diagnostics
@router.websocket(EndpointPath.POSE_STREAM.value)
async def pose_stream(websocket: WebSocket, metrics: bool = False):
    # Subscribed before the handshake completes
    subscription = get_event_broadcaster().subscribe()
    try:
        await websocket.accept()
        logger.info(f"Pose stream client connected (metrics={metrics})")

        forward = asyncio.create_task(_forward_events(websocket, subscription, metrics))
        watch = asyncio.create_task(_wait_for_disconnect(websocket))
        done, pending = await asyncio.wait({forward, watch}, return_when=asyncio.FIRST_COMPLETED)
        for task in pending:
            task.cancel()
        for task in done:
            error = task.exception()
            if error is not None and not isinstance(error, WebSocketDisconnect):
                logger.warning(f"Pose stream closed with error: {error}")
    finally:
        subscription.close()
        logger.info("Pose stream client disconnected")
