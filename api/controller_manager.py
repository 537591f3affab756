"""
Controller Manager

Process-wide singletons shared by the HTTP routes, the pose stream and the
CLI: one pose engine (one loaded model), one capture controller (one camera)
and one event broadcaster.
"""

import logging
from typing import Optional

from capture import CaptureController, EventBroadcaster
from core.collaborators import ModelPathResolver, ResourceModelPathResolver
from pipelines import PoseEngine

logger = logging.getLogger(__name__)


# Global instances
_pose_engine: Optional[PoseEngine] = None
_event_broadcaster: Optional[EventBroadcaster] = None
_capture_controller: Optional[CaptureController] = None
_model_resolver: Optional[ModelPathResolver] = None


def get_pose_engine() -> PoseEngine:
    """
    Get global pose engine instance

    Returns:
        PoseEngine singleton
    """
    global _pose_engine
    if _pose_engine is None:
        _pose_engine = PoseEngine()
    return _pose_engine


def get_event_broadcaster() -> EventBroadcaster:
    """
    Get global event broadcaster instance

    Returns:
        EventBroadcaster singleton
    """
    global _event_broadcaster
    if _event_broadcaster is None:
        _event_broadcaster = EventBroadcaster()
    return _event_broadcaster


def get_capture_controller() -> CaptureController:
    """
    Get global capture controller instance

    Returns:
        CaptureController singleton wired to the shared engine and broadcaster
    """
    global _capture_controller
    if _capture_controller is None:
        _capture_controller = CaptureController(
            pose_engine=get_pose_engine(),
            sink=get_event_broadcaster(),
        )
    return _capture_controller


def get_model_resolver() -> ModelPathResolver:
    """
    Get global model path resolver

    Returns:
        ModelPathResolver (resource directory lookup by default)
    """
    global _model_resolver
    if _model_resolver is None:
        _model_resolver = ResourceModelPathResolver()
    return _model_resolver


def configure(
    pose_engine: Optional[PoseEngine] = None,
    capture_controller: Optional[CaptureController] = None,
    event_broadcaster: Optional[EventBroadcaster] = None,
    model_resolver: Optional[ModelPathResolver] = None,
) -> None:
    """Install explicit instances (CLI overrides and tests)"""
    global _pose_engine, _capture_controller, _event_broadcaster, _model_resolver
    if pose_engine is not None:
        _pose_engine = pose_engine
    if event_broadcaster is not None:
        _event_broadcaster = event_broadcaster
    if capture_controller is not None:
        _capture_controller = capture_controller
    if model_resolver is not None:
        _model_resolver = model_resolver


def shutdown() -> None:
    """Kill the camera and drop the model"""
    if _capture_controller is not None:
        _capture_controller.shutdown()
    if _pose_engine is not None:
        _pose_engine.inference.unload_model()


def reset_for_tests() -> None:
    """Shut down and forget every singleton"""
    global _pose_engine, _capture_controller, _event_broadcaster, _model_resolver
    shutdown()
    _pose_engine = None
    _capture_controller = None
    _event_broadcaster = None
    _model_resolver = None
