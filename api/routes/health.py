"""
Health Check Endpoints
"""

import time
from fastapi import APIRouter

from ..types import HealthStatus
from ..constants import EndpointPath
from ..controller_manager import get_capture_controller, get_event_broadcaster, get_pose_engine

router = APIRouter()

# Uptime is measured on the monotonic clock
_started = time.monotonic()


# [ENDPOINT] GET /api/v1/health - Server health, model and capture state
@router.get(
    EndpointPath.HEALTH.value,
    response_model=HealthStatus,
    summary="Health Check",
    description="""
    ## Check server health, model and capture state

    ### Response Fields:
    - `status`: "ok" if server is healthy
    - `model_loaded`: true if the pose model is ready
    - `state`: `idle`, `camera_open` or `tracking`
    - `subscribers`: active pose stream consumers
    - `uptime`: Server uptime in seconds
    """,
    responses={
        200: {
            "description": "Server is healthy",
            "content": {
                "application/json": {
                    "examples": {
                        "tracking": {
                            "summary": "Model loaded and tracking",
                            "value": {
                                "status": "ok",
                                "model_loaded": True,
                                "state": "tracking",
                                "subscribers": 1,
                                "uptime": 3600.5
                            }
                        },
                        "idle": {
                            "summary": "Server running, nothing loaded",
                            "value": {
                                "status": "ok",
                                "model_loaded": False,
                                "state": "idle",
                                "subscribers": 0,
                                "uptime": 120.3
                            }
                        }
                    }
                }
            }
        }
    }
)
async def health_check():
    """
    Report liveness, model residency and capture state

    Returns:
        Server health status including model and capture state
    """
    return HealthStatus(
        status="ok",
        model_loaded=get_pose_engine().is_model_loaded(),
        state=get_capture_controller().state,
        subscribers=get_event_broadcaster().subscriber_count,
        uptime=round(time.monotonic() - _started, 3)
    )
