"""
Pytest configuration and shared fixtures

Provides fake camera and ONNX session doubles, engine/controller fixtures and
an API client wired to them.
"""

import threading
import time
from pathlib import Path
from typing import Any, Callable, Iterator, List, Optional

import numpy as np
import pytest
from fastapi.testclient import TestClient

from api import controller_manager
from api.main import app
from backends.onnxrt import InferenceEngine
from capture import CaptureController, EventBroadcaster
from capture.camera import CameraDevice
from core.collaborators import ResourceModelPathResolver
from core.config import CaptureConfig, ModelConfig
from core.errors import DeviceError
from core.pose_types import RawFrame
from pipelines import PoseEngine

FRAME_WIDTH = 64
FRAME_HEIGHT = 48


class FakeNode:
    """Stand-in for onnxruntime.NodeArg"""

    def __init__(self, name: str, shape: List[Any], type: str = "tensor(float)"):
        self.name = name
        self.shape = shape
        self.type = type


class FakeSession:
    """
    Minimal onnxruntime.InferenceSession double.

    Returns ``output`` for every run and rejects inputs whose shape does not
    match the declared input.
    """

    def __init__(self, output: Optional[np.ndarray] = None, input_shape=(1, 256, 256, 3)):
        self.output = np.arange(33 * 5, dtype=np.float32) / 165.0 if output is None else output
        self.input_shape = tuple(input_shape)
        self.calls: List[dict] = []

    def get_inputs(self):
        return [FakeNode("input_1", list(self.input_shape))]

    def get_outputs(self):
        return [FakeNode("Identity", [1, int(np.asarray(self.output).size)]), FakeNode("Identity_1", [1, 1])]

    def get_providers(self):
        return ["CPUExecutionProvider"]

    def run(self, output_names, feeds):
        self.calls.append({"output_names": list(output_names), "feeds": dict(feeds)})
        (tensor,) = feeds.values()
        if tuple(tensor.shape) != self.input_shape:
            raise ValueError(f"Got invalid dimensions for input: {tensor.shape}")
        return [np.asarray(self.output).reshape(1, -1)]


class FakeInferenceEngine(InferenceEngine):
    """InferenceEngine whose session factory returns a FakeSession"""

    def __init__(self, session: Optional[FakeSession] = None, reject: Optional[Exception] = None):
        super().__init__()
        self.fake_session = session or FakeSession()
        self.reject = reject
        self.sessions_created = 0

    def _create_session(self, path: Path) -> Any:
        if self.reject is not None:
            raise self.reject
        self.sessions_created += 1
        return self.fake_session


class FakeCamera(CameraDevice):
    """Camera double producing solid RGB24 frames"""

    def __init__(self, fail_open: bool = False, frame: Optional[RawFrame] = None, read_error: bool = False):
        self.fail_open = fail_open
        self.read_error = read_error
        self.frame = frame or RawFrame(
            data=bytes(FRAME_WIDTH * FRAME_HEIGHT * 3),
            width=FRAME_WIDTH,
            height=FRAME_HEIGHT,
        )
        self.opened = False
        self.open_calls = 0
        self.close_calls = 0
        self.reads = 0
        self._lock = threading.Lock()

    def name(self) -> str:
        return "fake:0"

    def open(self) -> None:
        self.open_calls += 1
        if self.fail_open:
            raise DeviceError("Failed to open camera 0")
        self.opened = True

    def read_frame(self) -> RawFrame:
        with self._lock:
            if not self.opened:
                raise DeviceError("Camera stream not open")
            if self.read_error:
                raise DeviceError("Failed to read camera frame")
            self.reads += 1
            return self.frame

    def close(self) -> None:
        with self._lock:
            self.close_calls += 1
            self.opened = False

    def is_open(self) -> bool:
        return self.opened


class FakeCameraFactory:
    """Records every camera it creates"""

    def __init__(self, **camera_kwargs):
        self.camera_kwargs = camera_kwargs
        self.cameras: List[FakeCamera] = []

    def __call__(self) -> FakeCamera:
        camera = FakeCamera(**self.camera_kwargs)
        self.cameras.append(camera)
        return camera

    @property
    def last(self) -> FakeCamera:
        return self.cameras[-1]


class RecordingSink(EventBroadcaster):
    """Broadcaster that also keeps everything it published"""

    def __init__(self):
        super().__init__()
        self.poses = []
        self.diagnostics = []
        self._record_lock = threading.Lock()

    def emit_pose(self, update) -> None:
        with self._record_lock:
            self.poses.append(update)
        super().emit_pose(update)

    def emit_diagnostic(self, event) -> None:
        with self._record_lock:
            self.diagnostics.append(event)
        super().emit_diagnostic(event)


@pytest.fixture
def wait_until() -> Callable[..., bool]:
    """
    Poll a predicate until it holds or the timeout expires

    Returns:
        wait(predicate, timeout=2.0) -> bool
    """
    def wait(predicate: Callable[[], bool], timeout: float = 2.0) -> bool:
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if predicate():
                return True
            time.sleep(0.005)
        return predicate()
    return wait


@pytest.fixture
def model_file(tmp_path: Path) -> Path:
    """
    Placeholder model file (contents are never parsed by the fake engine)

    Returns:
        Path to resources/pose_model.onnx under a temp resource dir
    """
    path = tmp_path / "resources" / "pose_model.onnx"
    path.parent.mkdir(parents=True)
    path.write_bytes(b"onnx")
    return path


@pytest.fixture
def fake_session() -> FakeSession:
    return FakeSession()


@pytest.fixture
def inference_engine(fake_session: FakeSession) -> FakeInferenceEngine:
    return FakeInferenceEngine(session=fake_session)


@pytest.fixture
def pose_engine(inference_engine: FakeInferenceEngine) -> PoseEngine:
    """Pose engine backed by the fake session (not loaded)"""
    return PoseEngine(inference_engine=inference_engine)


@pytest.fixture
def loaded_pose_engine(pose_engine: PoseEngine, model_file: Path) -> PoseEngine:
    """Pose engine with the fake model loaded"""
    pose_engine.load_model(model_file)
    return pose_engine


@pytest.fixture
def capture_config() -> CaptureConfig:
    """Fast cadence so loop tests finish quickly"""
    return CaptureConfig(
        target_period_ms=5,
        heartbeat_interval=3,
        diagnostic_interval=3,
        lock_timeout_s=0.05,
        drain_timeout_s=2.0,
    )


@pytest.fixture
def camera_factory() -> FakeCameraFactory:
    return FakeCameraFactory()


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture
def controller(
    loaded_pose_engine: PoseEngine,
    camera_factory: FakeCameraFactory,
    sink: RecordingSink,
    capture_config: CaptureConfig,
) -> Iterator[CaptureController]:
    """Capture controller over fake camera and fake model"""
    controller = CaptureController(
        pose_engine=loaded_pose_engine,
        camera_factory=camera_factory,
        sink=sink,
        config=capture_config,
    )
    yield controller
    controller.shutdown()


@pytest.fixture
def client(
    pose_engine: PoseEngine,
    camera_factory: FakeCameraFactory,
    sink: RecordingSink,
    capture_config: CaptureConfig,
    model_file: Path,
) -> Iterator[TestClient]:
    """
    FastAPI test client wired to fakes

    The model is NOT loaded; the default model resolver points at model_file.
    """
    controller_manager.reset_for_tests()
    controller = CaptureController(
        pose_engine=pose_engine,
        camera_factory=camera_factory,
        sink=sink,
        config=capture_config,
    )
    resolver = ResourceModelPathResolver(
        ModelConfig(resource_dir=str(model_file.parent.parent), model_filename="resources/pose_model.onnx")
    )
    controller_manager.configure(
        pose_engine=pose_engine,
        capture_controller=controller,
        event_broadcaster=sink,
        model_resolver=resolver,
    )

    with TestClient(app) as test_client:
        yield test_client

    controller_manager.reset_for_tests()
