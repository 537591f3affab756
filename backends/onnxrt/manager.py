"""
ONNX Runtime inference engine for the pose model.

Owns the single model session for the process:
- load-once semantics (a second load is a no-op success)
- input/output names resolved from the model's declared interface
- one inference in flight at a time (internal lock)
"""

import logging
import threading
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np

from core.errors import InferenceError, ModelLoadError, ModelNotLoadedError
from core.pose_types import CommandStatus, InferenceOutput, TensorSpec

from .config import Acceleration, ONNXRTConfig, DEFAULT_CPU_CONFIG, SESSION_PRESETS


logger = logging.getLogger(__name__)


class InferenceEngine:
    """
    ONNX Runtime session manager.

    The session is created at most once; it is only dropped by
    unload_model() at process shutdown.
    """

    def __init__(self, config: Optional[ONNXRTConfig] = None):
        """Initialize inference engine"""
        self.session: Optional[Any] = None
        self.model_path: Optional[Path] = None
        self.config: ONNXRTConfig = config or DEFAULT_CPU_CONFIG
        self.load_count = 0
        self._lock = threading.Lock()

        # Lazy import ONNX Runtime
        self._onnxruntime = None

        logger.info("InferenceEngine initialized")

    def _ensure_onnxruntime(self):
        """Lazy load ONNX Runtime"""
        if self._onnxruntime is None:
            try:
                import onnxruntime as ort
                self._onnxruntime = ort
                logger.info(f"ONNX Runtime loaded (version: {ort.__version__})")
            except ImportError as e:
                raise ModelLoadError(
                    "ONNX Runtime not installed. "
                    "Install with: pip install onnxruntime"
                ) from e
        return self._onnxruntime

    def is_model_loaded(self) -> bool:
        """
        Check if a model is currently loaded.

        Returns:
            True if model is loaded
        """
        return self.session is not None

    def _create_session(self, path: Path) -> Any:
        """
        Build the ONNX Runtime session.

        Args:
            path: Existing model file

        Returns:
            onnxruntime.InferenceSession
        """
        ort = self._ensure_onnxruntime()
        config = self.config

        sess_options = ort.SessionOptions()
        sess_options.graph_optimization_level = {
            0: ort.GraphOptimizationLevel.ORT_DISABLE_ALL,
            1: ort.GraphOptimizationLevel.ORT_ENABLE_BASIC,
            2: ort.GraphOptimizationLevel.ORT_ENABLE_EXTENDED,
            99: ort.GraphOptimizationLevel.ORT_ENABLE_ALL,
        }[config.optimization_level.value]
        sess_options.log_severity_level = config.log_severity_level

        if config.intra_op_num_threads > 0:
            sess_options.intra_op_num_threads = config.intra_op_num_threads
        if config.inter_op_num_threads > 0:
            sess_options.inter_op_num_threads = config.inter_op_num_threads
        if config.sequential_execution:
            sess_options.execution_mode = ort.ExecutionMode.ORT_SEQUENTIAL

        # Drop providers this build of onnxruntime does not ship
        available = set(ort.get_available_providers())
        providers = [p for p in config.providers if p in available] or ["CPUExecutionProvider"]

        return ort.InferenceSession(
            str(path),
            sess_options=sess_options,
            providers=providers
        )

    def load_model(self, model_path: Union[str, Path]) -> CommandStatus:
        """
        Load the ONNX pose model.

        Idempotent: if a model is already resident this returns immediately
        without reloading.

        Args:
            model_path: Path to ONNX model file

        Returns:
            CommandStatus.MODEL_LOADED or CommandStatus.MODEL_ALREADY_LOADED

        Raises:
            ModelLoadError: If the file is missing or the runtime rejects it
        """
        with self._lock:
            if self.session is not None:
                logger.info(f"Model already loaded from {self.model_path}")
                return CommandStatus.MODEL_ALREADY_LOADED

            path = Path(model_path)
            if not path.exists():
                raise ModelLoadError(
                    f"Model file not found: {model_path}",
                    path=str(model_path),
                    missing=True
                )

            logger.info(f"Loading ONNX model: {path} with providers: {self.config.providers}")

            try:
                session = self._create_session(path)
            except ModelLoadError:
                raise
            except Exception as e:
                logger.error(f"Failed to load ONNX model: {e}")
                raise ModelLoadError(f"Load error: {e}", path=str(path)) from e

            self.session = session
            self.model_path = path
            self.load_count += 1

            logger.info(f"✅ Model loaded with providers: {session.get_providers()}")
            return CommandStatus.MODEL_LOADED

    def unload_model(self) -> bool:
        """
        Drop the session (process shutdown only).

        Returns:
            True if a session was held
        """
        with self._lock:
            if self.session is None:
                logger.info("No model loaded, nothing to unload")
                return False
            self.session = None
            self.model_path = None
            logger.info("ONNX model unloaded")
            return True

    def declared_inputs(self) -> List[TensorSpec]:
        """Inputs declared by the loaded model"""
        with self._lock:
            session = self._require_session()
            return [self._spec(node) for node in session.get_inputs()]

    def declared_outputs(self) -> List[TensorSpec]:
        """Outputs declared by the loaded model"""
        with self._lock:
            session = self._require_session()
            return [self._spec(node) for node in session.get_outputs()]

    def run(self, tensor: np.ndarray) -> InferenceOutput:
        """
        Execute the model on one input tensor.

        The first declared input/output names are used, so models exported
        with different tensor names work as long as shape and dtype match.

        Args:
            tensor: Input array matching the model's declared input

        Returns:
            Flattened float32 output plus its shape

        Raises:
            ModelNotLoadedError: If no model is loaded
            InferenceError: If the runtime rejects the input or fails
        """
        with self._lock:
            session = self._require_session()

            try:
                input_name = session.get_inputs()[0].name
                output_name = session.get_outputs()[0].name
                outputs = session.run([output_name], {input_name: tensor})
                result = np.asarray(outputs[0], dtype=np.float32)
            except Exception as e:
                logger.debug(f"Session run failed: {e}")
                raise InferenceError(f"Inference failed: {e}") from e

        return InferenceOutput(data=result.ravel(), shape=tuple(result.shape))

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get information about loaded model.

        Returns:
            Dictionary with model information
        """
        session = self.session
        if session is None:
            return {
                "loaded": False,
                "error": "No model loaded"
            }

        return {
            "loaded": True,
            "model_path": str(self.model_path),
            "providers": session.get_providers(),
            "inputs": [inp.name for inp in session.get_inputs()],
            "outputs": [out.name for out in session.get_outputs()],
            "load_count": self.load_count,
        }

    def _require_session(self) -> Any:
        if self.session is None:
            raise ModelNotLoadedError()
        return self.session

    @staticmethod
    def _spec(node: Any) -> TensorSpec:
        return TensorSpec(name=node.name, shape=tuple(node.shape), dtype=str(node.type))

    @staticmethod
    def config_for_acceleration(acceleration: Acceleration) -> ONNXRTConfig:
        """
        Get ONNX RT config for acceleration type.

        Args:
            acceleration: Hardware acceleration type

        Returns:
            ONNXRTConfig for the acceleration
        """
        config = SESSION_PRESETS.get(acceleration, DEFAULT_CPU_CONFIG)
        logger.info(f"Selected config for {acceleration.value}: {config.providers}")
        return config
