"""
API Request/Response Types

Pydantic models for the control endpoints and the pose stream.
"""

from typing import List, Optional, Dict, Any
from pydantic import BaseModel, Field

from core.pose_types import CaptureState, CommandStatus


# Request Models

class LoadModelRequest(BaseModel):
    """Request to load the pose model"""
    model_path: Optional[str] = Field(
        None,
        description="Path to an ONNX pose model (defaults to the bundled resources/pose_model.onnx)",
        examples=["resources/pose_model.onnx"],
    )


# Response Models

class CommandResponse(BaseModel):
    """Result of a lifecycle command"""
    status: str = Field("success", description="Request outcome")
    message: CommandStatus = Field(..., description="Human-readable command status", examples=["Camera Initialized"])
    state: CaptureState = Field(..., description="Capture state after the command")


class KillResponse(BaseModel):
    """Result of the kill switch"""
    status: str = "success"
    released: bool = Field(..., description="True if a camera handle was actually released")
    state: CaptureState


class ModelLoadResponse(BaseModel):
    """Result of a model load"""
    status: str = "success"
    message: CommandStatus
    model_path: Optional[str] = None
    load_count: int = Field(0, description="Number of expensive loads performed by this process")


class TensorInfo(BaseModel):
    """Declared model input or output"""
    name: str
    shape: List[Any]
    dtype: str


class ModelInfo(BaseModel):
    """Loaded model details"""
    model_loaded: bool
    model_path: Optional[str] = None
    providers: List[str] = Field(default_factory=list)
    inputs: List[TensorInfo] = Field(default_factory=list)
    outputs: List[TensorInfo] = Field(default_factory=list)


class CaptureStatsModel(BaseModel):
    """Sampling loop counters"""
    iterations: int = 0
    frames_emitted: int = 0
    frames_dropped: int = 0
    last_error: Optional[str] = None


class TrackingStatus(BaseModel):
    """Capture controller status"""
    state: CaptureState
    tracking: bool
    camera_open: bool
    loop_running: bool
    model_loaded: bool
    stats: CaptureStatsModel


class HealthStatus(BaseModel):
    """Health check response"""
    status: str
    model_loaded: bool
    state: CaptureState
    subscribers: int = 0
    uptime: Optional[float] = None


# Stream Models

class LandmarkModel(BaseModel):
    """One pose keypoint"""
    x: float
    y: float
    z: float
    visibility: float


class PoseUpdatePayload(BaseModel):
    """Payload of a pose_update event"""
    landmarks: List[LandmarkModel]
    frame_number: int
    width: int
    height: int
    timestamp_ms: int
    metrics: Optional[Dict[str, Any]] = Field(None, description="Posture scores (when requested)")


class StreamMessage(BaseModel):
    """Envelope for every message pushed over the pose stream"""
    event: str = Field(..., examples=["pose_update", "tracking_debug"])
    payload: Dict[str, Any]
