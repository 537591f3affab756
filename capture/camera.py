"""
Camera devices.

CameraDevice is the collaborator interface the capture controller drives;
OpenCVCamera implements it on top of cv2.VideoCapture.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, Optional

from core.config import CAPTURE_CONFIG, CaptureConfig
from core.errors import DeviceError
from core.pose_types import RawFrame

logger = logging.getLogger(__name__)


class CameraDevice(ABC):
    """An exclusive claim on one physical camera"""

    @abstractmethod
    def name(self) -> str: ...

    @abstractmethod
    def open(self) -> None:
        """
        Open the device and start streaming.

        Raises:
            DeviceError: If the device cannot be opened
        """
        ...

    @abstractmethod
    def read_frame(self) -> RawFrame:
        """
        Pull one frame.

        Raises:
            DeviceError: On read or decode failure
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """Stop streaming and release the device (idempotent)"""
        ...

    @abstractmethod
    def is_open(self) -> bool: ...


# Zero-argument factory used by the controller to open a camera
CameraFactory = Callable[[], CameraDevice]


class OpenCVCamera(CameraDevice):
    """
    OpenCV capture device.

    By default frames are decoded by OpenCV (BGR) and converted to RGB24.
    With request_yuyv the driver is asked for raw YUYV and the undecoded
    buffer is passed through for the pixel converter.
    """

    def __init__(self, config: Optional[CaptureConfig] = None, camera_index: Optional[int] = None):
        self.config = config or CAPTURE_CONFIG
        self.camera_index = self.config.camera_index if camera_index is None else int(camera_index)
        self._cap = None
        self._cv2 = None

    def name(self) -> str:
        return f"opencv:{self.camera_index}"

    def _ensure_cv2(self):
        """Lazy load OpenCV"""
        if self._cv2 is None:
            try:
                import cv2
                self._cv2 = cv2
            except ImportError as e:
                raise DeviceError(
                    "OpenCV not installed. "
                    "Install with: pip install opencv-python"
                ) from e
        return self._cv2

    def open(self) -> None:
        cv2 = self._ensure_cv2()
        if self._cap is not None:
            return

        try:
            cap = cv2.VideoCapture(self.camera_index)
            cap.set(cv2.CAP_PROP_FRAME_WIDTH, self.config.frame_width)
            cap.set(cv2.CAP_PROP_FRAME_HEIGHT, self.config.frame_height)
            cap.set(cv2.CAP_PROP_FPS, self.config.frame_fps)
            if self.config.request_yuyv:
                cap.set(cv2.CAP_PROP_FOURCC, cv2.VideoWriter_fourcc(*"YUYV"))
                cap.set(cv2.CAP_PROP_CONVERT_RGB, 0)
        except cv2.error as e:
            raise DeviceError(f"Camera Error: {e}") from e

        if not cap.isOpened():
            cap.release()
            raise DeviceError(f"Failed to open camera {self.camera_index}")

        self._cap = cap
        logger.info(
            f"Camera {self.camera_index} opened: "
            f"{int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))}x{int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))} "
            f"@ {cap.get(cv2.CAP_PROP_FPS):.0f}fps"
        )

    def read_frame(self) -> RawFrame:
        cv2 = self._ensure_cv2()
        cap = self._cap
        if cap is None:
            raise DeviceError("Camera stream not open")

        try:
            ok, frame = cap.read()
        except cv2.error as e:
            raise DeviceError(f"Camera Frame Error: {e}") from e
        if not ok or frame is None:
            raise DeviceError("Failed to read camera frame")

        try:
            if frame.ndim == 3 and frame.shape[2] == 3:
                rgb = cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)
                return RawFrame(data=rgb.tobytes(), width=rgb.shape[1], height=rgb.shape[0])
            if frame.ndim == 2 and self.config.request_yuyv:
                # Undecoded driver buffer
                width = int(cap.get(cv2.CAP_PROP_FRAME_WIDTH))
                height = int(cap.get(cv2.CAP_PROP_FRAME_HEIGHT))
                return RawFrame(data=frame.tobytes(), width=width, height=height)
            if frame.ndim == 2:
                rgb = cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB)
                return RawFrame(data=rgb.tobytes(), width=rgb.shape[1], height=rgb.shape[0])
        except cv2.error as e:
            raise DeviceError(f"Frame Decode Error: {e}") from e

        raise DeviceError(f"Frame Decode Error: unsupported frame shape {frame.shape}")

    def close(self) -> None:
        cap = self._cap
        self._cap = None
        if cap is not None:
            cap.release()
            logger.info(f"Camera {self.camera_index} released")

    def is_open(self) -> bool:
        return self._cap is not None and bool(self._cap.isOpened())


def opencv_camera_factory(config: Optional[CaptureConfig] = None) -> CameraFactory:
    """Factory producing OpenCVCamera instances for the given config"""
    def factory() -> CameraDevice:
        return OpenCVCamera(config)
    return factory


def probe_camera(camera: CameraDevice) -> Dict[str, Any]:
    """
    Open a camera, pull one frame and release it.

    Returns:
        Frame geometry and inferred pixel format
    """
    camera.open()
    try:
        frame = camera.read_frame()
        return {
            "camera": camera.name(),
            "width": frame.width,
            "height": frame.height,
            "bytes": len(frame.data),
            "format": frame.format.value if frame.format else None,
        }
    finally:
        camera.close()
