"""
Tracking Endpoints

Start/stop the sampling loop and report its status.
"""

import logging
from fastapi import APIRouter

from core.errors import PoseSenseError
from ..constants import EndpointPath
from ..controller_manager import get_capture_controller
from ..errors import to_http_exception
from ..types import CommandResponse, TrackingStatus

logger = logging.getLogger(__name__)

router = APIRouter()


# [ENDPOINT] POST /api/v1/tracking/start - Start the sampling loop
@router.post(
    EndpointPath.TRACKING_START.value,
    response_model=CommandResponse,
    summary="Start Tracking",
    description="""
    ## Start pulling frames and emitting poses

    Opens the camera first if needed. Poses are streamed on
    `/api/v1/ws/pose`. Frames are dropped (with `tracking_debug` events)
    until a model is loaded.

    ### Errors:
    - `503`: the camera had to be opened and could not be
    """,
)
def start_tracking() -> CommandResponse:
    controller = get_capture_controller()
    try:
        result = controller.start_tracking()
    except PoseSenseError as e:
        logger.error(f"Tracking start failed: {e}")
        raise to_http_exception(e)

    return CommandResponse(message=result, state=controller.state)


# [ENDPOINT] POST /api/v1/tracking/stop - Stop the sampling loop
@router.post(
    EndpointPath.TRACKING_STOP.value,
    response_model=CommandResponse,
    summary="Stop Tracking",
    description="Signal the sampling loop to exit. Returns immediately; the camera stays open.",
)
def stop_tracking() -> CommandResponse:
    controller = get_capture_controller()
    result = controller.stop_tracking()
    return CommandResponse(message=result, state=controller.state)


# [ENDPOINT] GET /api/v1/tracking/status - Controller state and counters
@router.get(
    EndpointPath.TRACKING_STATUS.value,
    response_model=TrackingStatus,
    summary="Tracking Status",
)
def tracking_status() -> TrackingStatus:
    return TrackingStatus(**get_capture_controller().get_status())
