"""
Inference backends.

- ONNX Runtime: pose model execution (CPU, CUDA, DirectML, CoreML)
"""

from .onnxrt import InferenceEngine, ONNXRTConfig, Acceleration

__all__ = [
    'InferenceEngine',
    'ONNXRTConfig',
    'Acceleration',
]
