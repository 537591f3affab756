"""
Core module for the pose capture server.
Contains shared types, configuration, errors and collaborator interfaces.
"""

# Configuration
from .config import (
    LOG_LEVEL,
    LOG_FILE,
    LOG_FORMAT,
    CaptureConfig,
    ModelConfig,
    ServerConfig,
    CAPTURE_CONFIG,
    MODEL_CONFIG,
    SERVER_CONFIG,
)

# Errors
from .errors import (
    ErrorCode,
    PoseSenseError,
    BufferMismatchError,
    ModelLoadError,
    ModelNotLoadedError,
    InferenceError,
    DeviceError,
    LockContentionError,
)

# Data types
from .pose_types import (
    PixelFormat,
    CaptureState,
    CommandStatus,
    DiagnosticKind,
    RawFrame,
    RgbImage,
    Landmark,
    Pose,
    TensorSpec,
    InferenceOutput,
    PoseUpdate,
    DiagnosticEvent,
    CaptureStats,
)
from .landmarks import PoseLandmark, LANDMARK_COUNT
from .resource_slot import ResourceSlot

# Collaborators
from .collaborators import (
    ModelPathResolver,
    ResourceModelPathResolver,
    SessionSummary,
    SessionStore,
    AlertSink,
    LoggingAlertSink,
)

__all__ = [
    # Configuration
    'LOG_LEVEL',
    'LOG_FILE',
    'LOG_FORMAT',
    'CaptureConfig',
    'ModelConfig',
    'ServerConfig',
    'CAPTURE_CONFIG',
    'MODEL_CONFIG',
    'SERVER_CONFIG',

    # Errors
    'ErrorCode',
    'PoseSenseError',
    'BufferMismatchError',
    'ModelLoadError',
    'ModelNotLoadedError',
    'InferenceError',
    'DeviceError',
    'LockContentionError',

    # Data types
    'PixelFormat',
    'CaptureState',
    'CommandStatus',
    'DiagnosticKind',
    'RawFrame',
    'RgbImage',
    'Landmark',
    'Pose',
    'TensorSpec',
    'InferenceOutput',
    'PoseUpdate',
    'DiagnosticEvent',
    'CaptureStats',
    'PoseLandmark',
    'LANDMARK_COUNT',
    'ResourceSlot',

    # Collaborators
    'ModelPathResolver',
    'ResourceModelPathResolver',
    'SessionSummary',
    'SessionStore',
    'AlertSink',
    'LoggingAlertSink',
]
