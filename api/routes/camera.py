"""
Camera Endpoints

Explicit camera acquisition and the kill switch.
"""

import logging
from fastapi import APIRouter

from core.errors import PoseSenseError
from ..constants import EndpointPath
from ..controller_manager import get_capture_controller
from ..errors import to_http_exception
from ..types import CommandResponse, KillResponse

logger = logging.getLogger(__name__)

router = APIRouter()


# [ENDPOINT] POST /api/v1/camera/init - Open the camera
@router.post(
    EndpointPath.CAMERA_INIT.value,
    response_model=CommandResponse,
    summary="Initialize Camera",
    description="""
    ## Open the camera device

    Idempotent: if the camera is already open (or tracking is running) the
    call succeeds with `"Camera already active"`.

    ### Errors:
    - `503`: the device could not be opened
    """,
)
def init_camera() -> CommandResponse:
    controller = get_capture_controller()
    try:
        result = controller.init_camera()
    except PoseSenseError as e:
        logger.error(f"Camera init failed: {e}")
        raise to_http_exception(e)

    return CommandResponse(message=result, state=controller.state)


# [ENDPOINT] POST /api/v1/camera/kill - Kill switch
@router.post(
    EndpointPath.CAMERA_KILL.value,
    response_model=KillResponse,
    summary="Kill Camera",
    description="""
    ## Stop tracking and release the camera immediately

    Always succeeds, whatever the current state. `released` tells whether a
    camera handle was actually held.
    """,
)
def kill_camera() -> KillResponse:
    controller = get_capture_controller()
    released = controller.kill_camera()
    return KillResponse(released=released, state=controller.state)
