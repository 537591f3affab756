"""
PostureSense Server API

Local HTTP/WebSocket control surface for the capture pipeline.
"""

from .main import app
from .controller_manager import (
    get_pose_engine,
    get_capture_controller,
    get_event_broadcaster,
    get_model_resolver,
)

__all__ = [
    "app",
    "get_pose_engine",
    "get_capture_controller",
    "get_event_broadcaster",
    "get_model_resolver",
]
