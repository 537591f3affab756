"""
Error taxonomy for the capture and inference pipeline.

Per-frame errors (buffer, inference, device, lock) are recoverable and are
swallowed by the sampling loop. Lifecycle errors (camera open, model load)
propagate to the caller.
"""

from enum import Enum
from typing import Optional


class ErrorCode(str, Enum):
    """Application error codes"""
    BUFFER_MISMATCH = "buffer_mismatch"
    MODEL_LOAD_FAILED = "model_load_failed"
    MODEL_NOT_LOADED = "model_not_loaded"
    INFERENCE_FAILED = "inference_failed"
    DEVICE_ERROR = "device_error"
    LOCK_CONTENTION = "lock_contention"


class PoseSenseError(Exception):
    """Base class for all pipeline errors"""

    code: ErrorCode = ErrorCode.INFERENCE_FAILED

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"message": self.message, "type": self.code.value}


class BufferMismatchError(PoseSenseError):
    """Raw frame length matches neither RGB24 nor YUYV for its geometry"""

    code = ErrorCode.BUFFER_MISMATCH

    def __init__(self, width: int, height: int, actual: int):
        self.width = width
        self.height = height
        self.expected_rgb = width * height * 3
        self.expected_yuyv = width * height * 2
        self.actual = actual
        super().__init__(
            f"Buffer Mismatch! Expected {self.expected_rgb} (RGB) or "
            f"{self.expected_yuyv} (YUYV) bytes for {width}x{height}, got {actual} bytes"
        )


class ModelLoadError(PoseSenseError):
    """Model file missing or rejected by the runtime"""

    code = ErrorCode.MODEL_LOAD_FAILED

    def __init__(self, message: str, path: Optional[str] = None, missing: bool = False):
        super().__init__(message)
        self.path = path
        self.missing = missing


class ModelNotLoadedError(PoseSenseError):
    """Inference attempted before a model was loaded"""

    code = ErrorCode.MODEL_NOT_LOADED

    def __init__(self, message: str = "Model not loaded. Call load_model() first."):
        super().__init__(message)


class InferenceError(PoseSenseError):
    """Runtime execution failure (shape/dtype mismatch, provider error)"""

    code = ErrorCode.INFERENCE_FAILED


class DeviceError(PoseSenseError):
    """Camera open/read/stream failure"""

    code = ErrorCode.DEVICE_ERROR


class LockContentionError(PoseSenseError):
    """A resource lock could not be acquired in time (transient)"""

    code = ErrorCode.LOCK_CONTENTION
