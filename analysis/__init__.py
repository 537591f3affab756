"""Posture analysis on decoded poses"""

from .posture import (
    PostureMetrics,
    FALLBACK_METRICS,
    calculate_posture_metrics,
    calculate_joint_angles,
)

__all__ = [
    "PostureMetrics",
    "FALLBACK_METRICS",
    "calculate_posture_metrics",
    "calculate_joint_angles",
]
