"""
ONNX Runtime backend for the pose model.
"""

from .config import (
    Acceleration,
    ONNXRTConfig,
    ONNXProvider,
    ONNXOptimizationLevel,
    DEFAULT_CPU_CONFIG,
    SESSION_PRESETS,
)
from .manager import InferenceEngine

__all__ = [
    'Acceleration',
    'ONNXRTConfig',
    'ONNXProvider',
    'ONNXOptimizationLevel',
    'DEFAULT_CPU_CONFIG',
    'SESSION_PRESETS',
    'InferenceEngine',
]
