"""
Session settings for the pose model.

The pose network runs one 256x256 frame at a time, so sessions default to a
single intra-op thread and sequential execution. Accelerated presets put the
device provider first and keep CPU as the fallback the runtime drops to.
"""

from dataclasses import dataclass, replace
from typing import Dict, Tuple
from enum import Enum


class Acceleration(str, Enum):
    """Hardware acceleration choices"""
    CPU = "cpu"
    CUDA = "cuda"
    DIRECTML = "directml"
    COREML = "coreml"


class ONNXProvider(str, Enum):
    """Execution provider names as onnxruntime reports them"""
    CPU = "CPUExecutionProvider"
    CUDA = "CUDAExecutionProvider"
    DIRECTML = "DmlExecutionProvider"
    COREML = "CoreMLExecutionProvider"


class ONNXOptimizationLevel(int, Enum):
    """Graph optimization levels (values match ort.GraphOptimizationLevel)"""
    DISABLE_ALL = 0
    ENABLE_BASIC = 1
    ENABLE_EXTENDED = 2
    ENABLE_ALL = 99


@dataclass(frozen=True)
class ONNXRTConfig:
    """
    Options for the pose model session.

    Attributes:
        providers: Execution providers in priority order
        optimization_level: Graph optimization level
        log_severity_level: onnxruntime log level (0=Verbose ... 4=Fatal)
        intra_op_num_threads: Threads inside one operator (0=runtime default)
        inter_op_num_threads: Threads across operators (0=runtime default)
        sequential_execution: Run nodes in order instead of in parallel
    """
    providers: Tuple[str, ...] = (ONNXProvider.CPU.value,)
    optimization_level: ONNXOptimizationLevel = ONNXOptimizationLevel.ENABLE_ALL
    log_severity_level: int = 3
    intra_op_num_threads: int = 1
    inter_op_num_threads: int = 0
    sequential_execution: bool = True

    def with_primary(self, provider: ONNXProvider) -> "ONNXRTConfig":
        """Copy of this config with ``provider`` tried before CPU"""
        if provider is ONNXProvider.CPU:
            return self
        return replace(self, providers=(provider.value, ONNXProvider.CPU.value))


DEFAULT_CPU_CONFIG = ONNXRTConfig()

_PRIMARY_PROVIDER: Dict[Acceleration, ONNXProvider] = {
    Acceleration.CPU: ONNXProvider.CPU,
    Acceleration.CUDA: ONNXProvider.CUDA,
    Acceleration.DIRECTML: ONNXProvider.DIRECTML,
    Acceleration.COREML: ONNXProvider.COREML,
}

SESSION_PRESETS: Dict[Acceleration, ONNXRTConfig] = {
    acceleration: DEFAULT_CPU_CONFIG.with_primary(provider)
    for acceleration, provider in _PRIMARY_PROVIDER.items()
}
