"""
Camera capture and the background sampling loop.
"""

from .camera import CameraDevice, CameraFactory, OpenCVCamera, opencv_camera_factory, probe_camera
from .events import EventBroadcaster, NullSink, PoseSink, QueueSubscription
from .controller import CaptureController

__all__ = [
    "CameraDevice",
    "CameraFactory",
    "OpenCVCamera",
    "opencv_camera_factory",
    "probe_camera",
    "EventBroadcaster",
    "NullSink",
    "PoseSink",
    "QueueSubscription",
    "CaptureController",
]
