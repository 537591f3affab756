"""
Capture Controller
==================

Owns the camera and the sampling loop, and implements the lifecycle commands:

    idle --init_camera--> camera_open --start_tracking--> tracking
    tracking --stop_tracking--> camera_open (or idle with release_camera_on_stop)
    any --kill_camera--> idle

Each start_tracking spawns exactly one daemon thread carrying its own
``threading.Event``; clearing that event is the only way the loop is told to
stop. Lifecycle commands serialize on a lifecycle lock the loop never takes,
and the camera lives in a ResourceSlot whose lock is held for one
open/pull/close at a time.
"""

import logging
import threading
import time
from typing import Dict, Any, Optional

from core.config import CAPTURE_CONFIG, CaptureConfig
from core.errors import DeviceError, PoseSenseError
from core.pose_types import (
    CaptureState,
    CaptureStats,
    CommandStatus,
    DiagnosticEvent,
    DiagnosticKind,
    PoseUpdate,
    RawFrame,
)
from core.resource_slot import ResourceSlot
from pipelines.pose_engine import PoseEngine

from .camera import CameraDevice, CameraFactory, opencv_camera_factory
from .events import NullSink, PoseSink

logger = logging.getLogger(__name__)


def _close_camera(camera: CameraDevice) -> None:
    camera.close()


class _FrameDropped(Exception):
    """One loop iteration produced no pose"""

    def __init__(self, kind: DiagnosticKind, message: str):
        super().__init__(message)
        self.kind = kind
        self.message = message


class CaptureController:
    """
    Camera lifecycle plus the background sampling loop.

    Args:
        pose_engine: Shared pose estimator
        camera_factory: Creates an unopened CameraDevice
        sink: Receives pose updates and diagnostics
        config: Capture configuration
    """

    def __init__(
        self,
        pose_engine: PoseEngine,
        camera_factory: Optional[CameraFactory] = None,
        sink: Optional[PoseSink] = None,
        config: Optional[CaptureConfig] = None,
    ):
        self.config = config or CAPTURE_CONFIG
        self.pose_engine = pose_engine
        self.camera_factory = camera_factory or opencv_camera_factory(self.config)
        self.sink = sink or NullSink()

        self._camera: ResourceSlot[CameraDevice] = ResourceSlot("camera")
        self._lifecycle_lock = threading.Lock()
        self._flag: Optional[threading.Event] = None
        self._thread: Optional[threading.Thread] = None
        self._generation = 0

        self._stats = CaptureStats()
        self._stats_lock = threading.Lock()

    # ------------------------------------------------------------------
    # Status
    # ------------------------------------------------------------------

    @property
    def state(self) -> CaptureState:
        if self.is_tracking():
            return CaptureState.TRACKING
        if self._camera.is_present():
            return CaptureState.CAMERA_OPEN
        return CaptureState.IDLE

    def is_tracking(self) -> bool:
        flag = self._flag
        return flag is not None and flag.is_set()

    def is_camera_open(self) -> bool:
        return self._camera.is_present()

    def is_loop_running(self) -> bool:
        thread = self._thread
        return thread is not None and thread.is_alive()

    def stats(self) -> CaptureStats:
        """Snapshot of the loop counters"""
        with self._stats_lock:
            return CaptureStats(
                iterations=self._stats.iterations,
                frames_emitted=self._stats.frames_emitted,
                frames_dropped=self._stats.frames_dropped,
                last_error=self._stats.last_error,
            )

    def get_status(self) -> Dict[str, Any]:
        return {
            "state": self.state.value,
            "tracking": self.is_tracking(),
            "camera_open": self.is_camera_open(),
            "loop_running": self.is_loop_running(),
            "model_loaded": self.pose_engine.is_model_loaded(),
            "stats": self.stats().to_dict(),
        }

    # ------------------------------------------------------------------
    # Lifecycle commands
    # ------------------------------------------------------------------

    def init_camera(self) -> CommandStatus:
        """
        Open the camera if it is not already held.

        Raises:
            DeviceError: If the device cannot be opened (state stays idle)
        """
        with self._lifecycle_lock:
            return self._init_camera_locked()

    def start_tracking(self) -> CommandStatus:
        """
        Start the sampling loop, opening the camera first if needed.

        Raises:
            DeviceError: If the camera has to be opened and cannot be
        """
        with self._lifecycle_lock:
            if self.is_tracking():
                return CommandStatus.ALREADY_TRACKING

            self._wait_for_previous_loop()
            self._init_camera_locked()

            self._generation += 1
            flag = threading.Event()
            flag.set()
            thread = threading.Thread(
                target=self._run_loop,
                args=(flag, self._generation),
                name=f"capture-loop-{self._generation}",
                daemon=True,
            )
            self._flag = flag
            self._thread = thread
            thread.start()

        logger.info(f"✅ Tracking started (loop {self._generation})")
        return CommandStatus.TRACKING_STARTED

    def stop_tracking(self) -> CommandStatus:
        """Signal the loop to exit; returns without waiting for it"""
        flag = self._flag
        if flag is not None:
            flag.clear()
        logger.info("Tracking stop requested")
        return CommandStatus.TRACKING_STOPPED

    def kill_camera(self) -> bool:
        """
        Stop tracking and release the camera, whatever the current state.

        Never raises.

        Returns:
            True if a camera handle was actually released
        """
        try:
            flag = self._flag
            if flag is not None:
                flag.clear()

            with self._lifecycle_lock:
                # A start may have spawned a new loop while we waited
                flag = self._flag
                if flag is not None:
                    flag.clear()
                released = self._camera.release(_close_camera)
        except Exception as e:
            logger.error(f"❌ Kill switch error: {e}", exc_info=True)
            return False

        if released:
            logger.info("🛑 Camera killed")
        else:
            logger.info("Kill switch: no camera was held")
        return released

    def wait_for_loop(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the current loop thread to exit.

        Returns:
            True if no loop is running afterwards
        """
        thread = self._thread
        if thread is None or thread is threading.current_thread():
            return True
        thread.join(timeout)
        return not thread.is_alive()

    def shutdown(self) -> None:
        """Kill the camera and wait (bounded) for the loop to drain"""
        self.kill_camera()
        if not self.wait_for_loop(self.config.drain_timeout_s):
            logger.warning("Sampling loop did not exit during shutdown")

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _open_camera(self) -> CameraDevice:
        camera = self.camera_factory()
        try:
            camera.open()
        except Exception as e:
            try:
                camera.close()
            except Exception as close_error:
                logger.debug(f"Close after failed open: {close_error}")
            if isinstance(e, DeviceError):
                raise
            raise DeviceError(f"Camera Error: {e}") from e
        return camera

    def _init_camera_locked(self) -> CommandStatus:
        camera, created = self._camera.acquire(self._open_camera)
        if not created:
            return CommandStatus.CAMERA_ALREADY_ACTIVE
        logger.info(f"✅ Camera initialized ({camera.name()})")
        return CommandStatus.CAMERA_INITIALIZED

    def _wait_for_previous_loop(self) -> None:
        thread = self._thread
        if thread is None or not thread.is_alive() or thread is threading.current_thread():
            return
        logger.debug(f"Waiting for {thread.name} to exit")
        thread.join(self.config.drain_timeout_s)
        if thread.is_alive():
            logger.warning(f"{thread.name} still running after {self.config.drain_timeout_s}s")

    def _run_loop(self, flag: threading.Event, generation: int) -> None:
        period = self.config.target_period_s
        iteration = 0
        failure_streak = 0
        self._emit_diagnostic(DiagnosticKind.LOOP_STARTED, "Tracking loop started", iteration)

        try:
            while flag.is_set():
                started = time.monotonic()
                iteration += 1
                with self._stats_lock:
                    self._stats.iterations += 1

                if iteration % self.config.heartbeat_interval == 0:
                    self._emit_diagnostic(DiagnosticKind.HEARTBEAT, "Tracking heartbeat", iteration)

                try:
                    frame = self._pull_frame()
                    if flag.is_set():
                        self._process_frame(frame)
                        failure_streak = 0
                except _FrameDropped as drop:
                    failure_streak += 1
                    self._record_drop(iteration, failure_streak, drop)

                remaining = period - (time.monotonic() - started)
                if remaining > 0:
                    time.sleep(remaining)
        except Exception as e:
            logger.error(f"❌ Tracking loop crashed: {e}", exc_info=True)
            with self._stats_lock:
                self._stats.last_error = str(e)
        finally:
            flag.clear()
            if self.config.release_camera_on_stop and generation == self._generation:
                if self._camera.release(_close_camera):
                    logger.info("Camera released on stop")
            self._emit_diagnostic(DiagnosticKind.LOOP_EXITED, "Tracking loop exited", iteration)
            logger.info(f"Tracking loop {generation} exited after {iteration} iterations")

    def _pull_frame(self) -> RawFrame:
        try:
            with self._camera.borrow(timeout=self.config.lock_timeout_s) as camera:
                if camera is None:
                    raise _FrameDropped(DiagnosticKind.CAMERA_MISSING, "Camera not available")
                return camera.read_frame()
        except _FrameDropped:
            raise
        except PoseSenseError as e:
            raise _FrameDropped(DiagnosticKind.FRAME_ERROR, f"Frame Error: {e.message}") from e
        except Exception as e:
            logger.debug(f"Unexpected camera failure: {e}", exc_info=True)
            raise _FrameDropped(DiagnosticKind.FRAME_ERROR, f"Frame Error: {e}") from e

    def _process_frame(self, frame: RawFrame) -> None:
        try:
            pose = self.pose_engine.infer(frame.data, frame.width, frame.height)
        except PoseSenseError as e:
            raise _FrameDropped(DiagnosticKind.INFERENCE_ERROR, f"AI Error: {e.message}") from e
        except Exception as e:
            logger.debug(f"Unexpected inference failure: {e}", exc_info=True)
            raise _FrameDropped(DiagnosticKind.INFERENCE_ERROR, f"AI Error: {e}") from e

        with self._stats_lock:
            self._stats.frames_emitted += 1
            frame_number = self._stats.frames_emitted

        update = PoseUpdate(
            landmarks=pose,
            frame_number=frame_number,
            width=frame.width,
            height=frame.height,
        )
        try:
            self.sink.emit_pose(update)
        except Exception as e:
            logger.warning(f"Pose sink failed: {e}")

    def _record_drop(self, iteration: int, streak: int, drop: _FrameDropped) -> None:
        with self._stats_lock:
            self._stats.frames_dropped += 1
            self._stats.last_error = drop.message

        if streak == 1 or streak % self.config.diagnostic_interval == 0:
            logger.warning(f"⚠️ {drop.message} (x{streak})")
            self._emit_diagnostic(drop.kind, drop.message, iteration)
        else:
            logger.debug(drop.message)

    def _emit_diagnostic(self, kind: DiagnosticKind, message: str, iteration: int) -> None:
        try:
            self.sink.emit_diagnostic(DiagnosticEvent(kind=kind, message=message, iteration=iteration))
        except Exception as e:
            logger.warning(f"Diagnostic sink failed: {e}")
