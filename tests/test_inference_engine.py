"""
Unit tests for the ONNX Runtime inference engine

Most tests run against a fake session; the round trip tests build a tiny
model with ``onnx`` and run it through the real runtime.
"""

import threading
from pathlib import Path
from unittest.mock import Mock

import numpy as np
import pytest

from backends.onnxrt import (
    Acceleration,
    DEFAULT_CPU_CONFIG,
    InferenceEngine,
    ONNXOptimizationLevel,
    ONNXProvider,
    SESSION_PRESETS,
)
from core.errors import InferenceError, ModelLoadError, ModelNotLoadedError
from core.pose_types import CommandStatus, TensorSpec

from conftest import FakeInferenceEngine, FakeSession


class TestModelLoading:
    """Tests for InferenceEngine.load_model"""

    def test_first_load(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test a successful load reports the model online"""
        # Act
        result = inference_engine.load_model(model_file)

        # Assert
        assert result is CommandStatus.MODEL_LOADED
        assert result.value == "AI Brain Online"
        assert inference_engine.is_model_loaded()
        assert inference_engine.model_path == model_file
        assert inference_engine.load_count == 1

    def test_second_load_is_noop(self, inference_engine: FakeInferenceEngine, model_file: Path, tmp_path: Path):
        """Test a second load (even of another path) does not reload"""
        # Arrange
        other = tmp_path / "other.onnx"
        other.write_bytes(b"onnx")
        inference_engine.load_model(model_file)

        # Act
        result = inference_engine.load_model(other)

        # Assert
        assert result is CommandStatus.MODEL_ALREADY_LOADED
        assert inference_engine.load_count == 1
        assert inference_engine.sessions_created == 1
        assert inference_engine.model_path == model_file

    def test_missing_file(self, inference_engine: FakeInferenceEngine, tmp_path: Path):
        """Test a missing path is rejected before touching the runtime"""
        # Act
        with pytest.raises(ModelLoadError) as exc_info:
            inference_engine.load_model(tmp_path / "nope.onnx")

        # Assert
        assert exc_info.value.missing is True
        assert not inference_engine.is_model_loaded()
        assert inference_engine.sessions_created == 0

    def test_runtime_rejection_is_chained(self, model_file: Path):
        """Test a runtime failure surfaces as ModelLoadError with its cause"""
        # Arrange
        cause = RuntimeError("INVALID_PROTOBUF")
        engine = FakeInferenceEngine(reject=cause)

        # Act
        with pytest.raises(ModelLoadError) as exc_info:
            engine.load_model(model_file)

        # Assert
        assert "INVALID_PROTOBUF" in exc_info.value.message
        assert exc_info.value.__cause__ is cause
        assert exc_info.value.missing is False
        assert not engine.is_model_loaded()
        assert engine.load_count == 0

    def test_concurrent_loads_create_one_session(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test racing loads perform exactly one expensive load"""
        # Arrange
        results = []
        barrier = threading.Barrier(8)

        def load():
            barrier.wait()
            results.append(inference_engine.load_model(model_file))

        threads = [threading.Thread(target=load) for _ in range(8)]

        # Act
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join(timeout=5)

        # Assert
        assert inference_engine.load_count == 1
        assert inference_engine.sessions_created == 1
        assert results.count(CommandStatus.MODEL_LOADED) == 1
        assert results.count(CommandStatus.MODEL_ALREADY_LOADED) == 7

    def test_unload(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test unload drops the session"""
        # Arrange
        inference_engine.load_model(model_file)

        # Act
        first = inference_engine.unload_model()
        second = inference_engine.unload_model()

        # Assert
        assert first is True
        assert second is False
        assert not inference_engine.is_model_loaded()


class TestRun:
    """Tests for InferenceEngine.run"""

    def test_run_before_load(self, inference_engine: FakeInferenceEngine):
        """Test running without a model"""
        with pytest.raises(ModelNotLoadedError):
            inference_engine.run(np.zeros((1, 256, 256, 3), dtype=np.float32))

    def test_uses_first_declared_names(
        self,
        inference_engine: FakeInferenceEngine,
        fake_session: FakeSession,
        model_file: Path,
    ):
        """Test tensor names come from the model, not constants"""
        # Arrange
        inference_engine.load_model(model_file)

        # Act
        inference_engine.run(np.zeros((1, 256, 256, 3), dtype=np.float32))

        # Assert
        call = fake_session.calls[0]
        assert call["output_names"] == ["Identity"]
        assert list(call["feeds"]) == ["input_1"]

    def test_output_is_flat_float32(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test output data and original shape"""
        # Arrange
        inference_engine.load_model(model_file)

        # Act
        output = inference_engine.run(np.zeros((1, 256, 256, 3), dtype=np.float32))

        # Assert
        assert output.data.dtype == np.float32
        assert output.data.shape == (165,)
        assert output.shape == (1, 165)

    def test_shape_mismatch_raises_inference_error(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test runtime errors are wrapped and chained"""
        # Arrange
        inference_engine.load_model(model_file)

        # Act
        with pytest.raises(InferenceError) as exc_info:
            inference_engine.run(np.zeros((1, 128, 128, 3), dtype=np.float32))

        # Assert
        assert "invalid dimensions" in exc_info.value.message
        assert isinstance(exc_info.value.__cause__, ValueError)


class TestCapabilityQuery:
    """Tests for declared_inputs / declared_outputs"""

    def test_declared_tensors(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test declared inputs and outputs as TensorSpec"""
        # Arrange
        inference_engine.load_model(model_file)

        # Act
        inputs = inference_engine.declared_inputs()
        outputs = inference_engine.declared_outputs()

        # Assert
        assert inputs == [TensorSpec(name="input_1", shape=(1, 256, 256, 3), dtype="tensor(float)")]
        assert [spec.name for spec in outputs] == ["Identity", "Identity_1"]

    def test_declared_tensors_requires_model(self, inference_engine: FakeInferenceEngine):
        """Test the query needs a loaded model"""
        with pytest.raises(ModelNotLoadedError):
            inference_engine.declared_inputs()

    def test_model_info(self, inference_engine: FakeInferenceEngine, model_file: Path):
        """Test model info before and after load"""
        # Arrange
        before = inference_engine.get_model_info()
        inference_engine.load_model(model_file)

        # Act
        after = inference_engine.get_model_info()

        # Assert
        assert before["loaded"] is False
        assert after["loaded"] is True
        assert after["providers"] == ["CPUExecutionProvider"]
        assert after["load_count"] == 1


class TestConfig:
    """Tests for session configuration"""

    def test_default_config(self):
        """Test CPU provider, full graph optimization, one intra-op thread"""
        # Act
        engine = InferenceEngine()

        # Assert
        assert engine.config is DEFAULT_CPU_CONFIG
        assert engine.config.providers == (ONNXProvider.CPU.value,)
        assert engine.config.optimization_level is ONNXOptimizationLevel.ENABLE_ALL
        assert engine.config.intra_op_num_threads == 1
        assert engine.config.sequential_execution is True

    def test_config_for_acceleration(self):
        """Test accelerator to config mapping"""
        # Act / Assert
        assert InferenceEngine.config_for_acceleration(Acceleration.CUDA) is SESSION_PRESETS[Acceleration.CUDA]
        assert InferenceEngine.config_for_acceleration(Acceleration.CPU) is DEFAULT_CPU_CONFIG

    def test_presets_fall_back_to_cpu(self):
        """Test every accelerated preset keeps CPU last"""
        # Act / Assert
        for config in SESSION_PRESETS.values():
            assert config.providers[-1] == ONNXProvider.CPU.value
            assert config.intra_op_num_threads == DEFAULT_CPU_CONFIG.intra_op_num_threads
        assert SESSION_PRESETS[Acceleration.DIRECTML].providers == (
            ONNXProvider.DIRECTML.value,
            ONNXProvider.CPU.value,
        )

    def test_unavailable_providers_are_dropped(self, model_file: Path):
        """Test a preset falls back to the providers this runtime ships"""
        # Arrange
        ort = Mock()
        ort.get_available_providers.return_value = [ONNXProvider.CPU.value]
        engine = InferenceEngine(config=SESSION_PRESETS[Acceleration.CUDA])
        engine._onnxruntime = ort

        # Act
        engine._create_session(model_file)

        # Assert
        _, kwargs = ort.InferenceSession.call_args
        assert kwargs["providers"] == [ONNXProvider.CPU.value]


def _build_stub_pose_model(path: Path) -> Path:
    """Model that returns the first 165 input values as landmarks"""
    onnx = pytest.importorskip("onnx")
    from onnx import TensorProto, helper, numpy_helper

    image = helper.make_tensor_value_info("image", TensorProto.FLOAT, [1, 256, 256, 3])
    landmarks = helper.make_tensor_value_info("landmarks", TensorProto.FLOAT, [1, 165])
    initializers = [
        numpy_helper.from_array(np.array([0], dtype=np.int64), name="starts"),
        numpy_helper.from_array(np.array([165], dtype=np.int64), name="ends"),
        numpy_helper.from_array(np.array([1], dtype=np.int64), name="axes"),
    ]
    nodes = [
        helper.make_node("Flatten", ["image"], ["flat"], axis=1),
        helper.make_node("Slice", ["flat", "starts", "ends", "axes"], ["landmarks"]),
    ]
    graph = helper.make_graph(nodes, "pose_stub", [image], [landmarks], initializer=initializers)
    model = helper.make_model(graph, opset_imports=[helper.make_opsetid("", 13)])
    model.ir_version = 8
    onnx.save(model, str(path))
    return path


class TestOnnxRuntimeRoundTrip:
    """Tests against the real ONNX Runtime"""

    @pytest.fixture(autouse=True)
    def _require_runtime(self):
        pytest.importorskip("onnxruntime")

    def test_real_session(self, tmp_path: Path):
        """Test load, capability query and run on a real session"""
        # Arrange
        model_path = _build_stub_pose_model(tmp_path / "pose_model.onnx")
        engine = InferenceEngine()
        tensor = np.full((1, 256, 256, 3), 0.5, dtype=np.float32)

        # Act
        status = engine.load_model(model_path)
        output = engine.run(tensor)

        # Assert
        assert status is CommandStatus.MODEL_LOADED
        assert engine.declared_inputs()[0].name == "image"
        assert engine.declared_outputs()[0].name == "landmarks"
        assert output.shape == (1, 165)
        np.testing.assert_allclose(output.data, 0.5)

    def test_real_session_rejects_garbage(self, model_file: Path):
        """Test a non-ONNX file fails with ModelLoadError"""
        # Arrange
        engine = InferenceEngine()

        # Act
        with pytest.raises(ModelLoadError) as exc_info:
            engine.load_model(model_file)

        # Assert
        assert exc_info.value.missing is False
        assert exc_info.value.__cause__ is not None
        assert not engine.is_model_loaded()

    def test_real_session_wrong_shape(self, tmp_path: Path):
        """Test the runtime rejects a wrongly shaped tensor"""
        # Arrange
        engine = InferenceEngine()
        engine.load_model(_build_stub_pose_model(tmp_path / "pose_model.onnx"))

        # Act / Assert
        with pytest.raises(InferenceError):
            engine.run(np.zeros((1, 128, 128, 3), dtype=np.float32))
