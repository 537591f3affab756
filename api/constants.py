"""
API Constants

All string literals for API endpoints, events and configuration.
Single source of truth for API-related constants.
"""

from enum import Enum

from core.errors import ErrorCode


class APIPrefix(str, Enum):
    """API path prefixes"""
    V1 = "/api/v1"


class EndpointPath(str, Enum):
    """API endpoint paths (relative to prefix)"""
    # Health
    HEALTH = "/health"

    # Camera
    CAMERA_INIT = "/camera/init"
    CAMERA_KILL = "/camera/kill"

    # Model
    MODEL_LOAD = "/model/load"
    MODEL_INFO = "/model/info"

    # Tracking
    TRACKING_START = "/tracking/start"
    TRACKING_STOP = "/tracking/stop"
    TRACKING_STATUS = "/tracking/status"

    # Streaming
    POSE_STREAM = "/ws/pose"


class EventName(str, Enum):
    """Names of events pushed to stream subscribers"""
    POSE_UPDATE = "pose_update"
    TRACKING_DEBUG = "tracking_debug"


class MediaType(str, Enum):
    """Media type constants"""
    JSON = "application/json"
    PLAIN_TEXT = "text/plain"


class APIErrorCode(str, Enum):
    """Transport-level error codes (pipeline errors use ErrorCode)"""
    INVALID_REQUEST = "invalid_request"
    INTERNAL_ERROR = "internal_error"


__all__ = [
    "APIPrefix",
    "EndpointPath",
    "EventName",
    "MediaType",
    "APIErrorCode",
    "ErrorCode",
]
