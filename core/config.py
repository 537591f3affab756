"""
Strongly typed configuration for the capture pipeline and the control server.
"""

from pathlib import Path
from typing import Literal
from dataclasses import dataclass


# Logging configuration
LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
LOG_FILE: str = "posturesense.log"
LOG_FORMAT: str = "%(asctime)s [%(levelname)s] %(message)s"


@dataclass(frozen=True)
class CaptureConfig:
    """Camera and sampling loop configuration"""

    # Device selection and requested-format hint
    camera_index: int = 0
    frame_width: int = 640
    frame_height: int = 480
    frame_fps: int = 30
    request_yuyv: bool = False  # Ask the driver for raw YUYV instead of decoded BGR

    # Loop cadence (~15 Hz)
    target_period_ms: int = 66
    heartbeat_interval: int = 30  # Iterations between heartbeat diagnostics
    diagnostic_interval: int = 30  # Iterations between repeated per-frame failure diagnostics

    # Locking / teardown
    lock_timeout_s: float = 0.05
    drain_timeout_s: float = 2.0  # Max wait for a previous loop to exit on restart
    release_camera_on_stop: bool = False

    @property
    def target_period_s(self) -> float:
        return self.target_period_ms / 1000.0


@dataclass(frozen=True)
class ModelConfig:
    """Pose model contract"""

    input_size: int = 256
    input_channels: int = 3
    landmark_count: int = 33
    landmark_stride: int = 5  # x, y, z, visibility, <unused>

    # Default model location (relative to resource_dir)
    resource_dir: str = str(Path(__file__).resolve().parents[1])
    model_filename: str = "resources/pose_model.onnx"

    @property
    def input_shape(self) -> tuple:
        return (1, self.input_size, self.input_size, self.input_channels)


@dataclass(frozen=True)
class ServerConfig:
    """HTTP control server configuration"""

    host: str = "127.0.0.1"
    port: int = 8000


# Global configuration instances
CAPTURE_CONFIG = CaptureConfig()
MODEL_CONFIG = ModelConfig()
SERVER_CONFIG = ServerConfig()
