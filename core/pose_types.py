"""
Data types shared by the capture loop, the pose pipeline and the API layer.
"""

import time
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple
from dataclasses import dataclass, field

import numpy as np


class PixelFormat(str, Enum):
    """Raw frame pixel formats"""
    RGB24 = "rgb24"  # 3 bytes per pixel
    YUYV = "yuyv"    # 4:2:2 chroma-subsampled, 2 bytes per pixel


class CaptureState(str, Enum):
    """Capture controller states"""
    IDLE = "idle"                # No camera handle, loop not running
    CAMERA_OPEN = "camera_open"  # Handle held, loop not running
    TRACKING = "tracking"        # Handle held, loop running


class CommandStatus(str, Enum):
    """Status strings returned by lifecycle commands"""
    CAMERA_INITIALIZED = "Camera Initialized"
    CAMERA_ALREADY_ACTIVE = "Camera already active"
    MODEL_LOADED = "AI Brain Online"
    MODEL_ALREADY_LOADED = "Model already loaded"
    TRACKING_STARTED = "Tracking Started"
    ALREADY_TRACKING = "Already tracking"
    TRACKING_STOPPED = "Tracking Stopped"


class DiagnosticKind(str, Enum):
    """Diagnostic event kinds (informational only)"""
    HEARTBEAT = "heartbeat"
    FRAME_ERROR = "frame_error"
    INFERENCE_ERROR = "inference_error"
    CAMERA_MISSING = "camera_missing"
    LOOP_STARTED = "loop_started"
    LOOP_EXITED = "loop_exited"


def now_ms() -> int:
    return int(time.time() * 1000)


@dataclass(frozen=True)
class RawFrame:
    """
    One captured frame as delivered by the camera.

    The pixel format is inferred from the buffer length; a length that matches
    neither RGB24 nor YUYV for the given geometry yields ``None``.
    """
    data: bytes
    width: int
    height: int

    @property
    def format(self) -> Optional[PixelFormat]:
        pixels = self.width * self.height
        if pixels <= 0:
            return None
        if len(self.data) == pixels * 3:
            return PixelFormat.RGB24
        if len(self.data) == pixels * 2:
            return PixelFormat.YUYV
        return None


@dataclass(frozen=True)
class RgbImage:
    """Dense row-major RGB image (H, W, 3) uint8"""
    pixels: np.ndarray
    width: int
    height: int

    def tobytes(self) -> bytes:
        return self.pixels.tobytes()


@dataclass(frozen=True)
class Landmark:
    """One keypoint in normalized model space plus a confidence score"""
    x: float
    y: float
    z: float
    visibility: float

    def to_dict(self) -> Dict[str, float]:
        return {"x": self.x, "y": self.y, "z": self.z, "visibility": self.visibility}


# Ordered landmarks for one frame (33 when the model output is complete)
Pose = List[Landmark]


@dataclass(frozen=True)
class TensorSpec:
    """Declared model input/output"""
    name: str
    shape: Tuple[Any, ...]
    dtype: str


@dataclass(frozen=True)
class InferenceOutput:
    """Raw model output (flattened) plus its original shape"""
    data: np.ndarray
    shape: Tuple[int, ...]


@dataclass(frozen=True)
class PoseUpdate:
    """Emission event for one successfully decoded frame"""
    landmarks: Pose
    frame_number: int
    width: int
    height: int
    timestamp_ms: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "landmarks": [lm.to_dict() for lm in self.landmarks],
            "frame_number": self.frame_number,
            "width": self.width,
            "height": self.height,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass(frozen=True)
class DiagnosticEvent:
    """Heartbeat / debug signal from the sampling loop"""
    kind: DiagnosticKind
    message: str
    iteration: int = 0
    timestamp_ms: int = field(default_factory=now_ms)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind.value,
            "message": self.message,
            "iteration": self.iteration,
            "timestamp_ms": self.timestamp_ms,
        }


@dataclass
class CaptureStats:
    """Sampling loop counters"""
    iterations: int = 0
    frames_emitted: int = 0
    frames_dropped: int = 0
    last_error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iterations": self.iterations,
            "frames_emitted": self.frames_emitted,
            "frames_dropped": self.frames_dropped,
            "last_error": self.last_error,
        }
