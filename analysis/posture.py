"""
Posture Metrics

Scores a single pose on three sitting-posture components, each 0-100:

- neck: horizontal offset of the ear midpoint from the shoulder midpoint
- shoulders: height difference between the two shoulders
- spine: horizontal offset of the nose from the hip midpoint (shoulders
  score when the hips are out of frame)

Landmark coordinates are normalized [0, 1]; they are scaled to a 0-100 canvas
before scoring.
"""

import logging
import math
from dataclasses import dataclass, asdict
from typing import Dict, Optional

import numpy as np

from core.landmarks import LANDMARK_COUNT, PoseLandmark
from core.pose_types import Landmark, Pose

logger = logging.getLogger(__name__)

CANVAS_SCALE = 100.0
GOOD_POSTURE_THRESHOLD = 80.0
MIN_VISIBILITY = 0.5

# Component weights for the total score
NECK_WEIGHT = 0.4
SPINE_WEIGHT = 0.4
SHOULDERS_WEIGHT = 0.2


@dataclass(frozen=True)
class PostureMetrics:
    total: int
    neck: int
    shoulders: int
    spine: int
    is_good: bool

    def to_dict(self) -> Dict[str, object]:
        return asdict(self)


FALLBACK_METRICS = PostureMetrics(total=0, neck=0, shoulders=0, spine=0, is_good=False)


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 100.0)


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _point(pose: Pose, index: PoseLandmark, min_visibility: float) -> Optional[Landmark]:
    if index >= len(pose):
        return None
    landmark = pose[index]
    if landmark.visibility < min_visibility:
        return None
    return landmark


def calculate_posture_metrics(pose: Pose, min_visibility: float = MIN_VISIBILITY) -> PostureMetrics:
    """
    Score the posture of one pose.

    Args:
        pose: Ordered landmarks (normalized coordinates)
        min_visibility: Landmarks below this confidence count as missing

    Returns:
        PostureMetrics; all zeros when the head or shoulders are not visible
    """
    if not pose:
        return FALLBACK_METRICS

    nose = _point(pose, PoseLandmark.NOSE, min_visibility)
    left_ear = _point(pose, PoseLandmark.LEFT_EAR, min_visibility)
    right_ear = _point(pose, PoseLandmark.RIGHT_EAR, min_visibility)
    left_shoulder = _point(pose, PoseLandmark.LEFT_SHOULDER, min_visibility)
    right_shoulder = _point(pose, PoseLandmark.RIGHT_SHOULDER, min_visibility)
    left_hip = _point(pose, PoseLandmark.LEFT_HIP, min_visibility)
    right_hip = _point(pose, PoseLandmark.RIGHT_HIP, min_visibility)

    if None in (nose, left_ear, right_ear, left_shoulder, right_shoulder):
        return FALLBACK_METRICS

    ear_x = (left_ear.x + right_ear.x) / 2 * CANVAS_SCALE
    shoulder_x = (left_shoulder.x + right_shoulder.x) / 2 * CANVAS_SCALE
    neck = 100.0 - abs(ear_x - shoulder_x) * 2

    shoulders = 100.0 - abs(left_shoulder.y - right_shoulder.y) * CANVAS_SCALE * 4

    if left_hip is not None and right_hip is not None:
        hips_x = (left_hip.x + right_hip.x) / 2 * CANVAS_SCALE
        spine = 100.0 - abs(nose.x * CANVAS_SCALE - hips_x) * 2
    else:
        # Close-up framing, hips out of view
        spine = shoulders

    neck = _clamp(neck)
    shoulders = _clamp(shoulders)
    spine = _clamp(spine)
    total = neck * NECK_WEIGHT + spine * SPINE_WEIGHT + shoulders * SHOULDERS_WEIGHT

    return PostureMetrics(
        total=_round_half_up(total),
        neck=_round_half_up(neck),
        shoulders=_round_half_up(shoulders),
        spine=_round_half_up(spine),
        is_good=total > GOOD_POSTURE_THRESHOLD,
    )


def _angle_between_points(p1: Landmark, p2: Landmark, p3: Landmark) -> float:
    """Angle at p2 formed by p1-p2-p3, in degrees"""
    v1 = np.array([p1.x - p2.x, p1.y - p2.y])
    v2 = np.array([p3.x - p2.x, p3.y - p2.y])

    cos_angle = np.dot(v1, v2) / (np.linalg.norm(v1) * np.linalg.norm(v2) + 1e-6)
    angle = np.arccos(np.clip(cos_angle, -1.0, 1.0))
    return float(np.degrees(angle))


_JOINTS = {
    "left_elbow": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW, PoseLandmark.LEFT_WRIST),
    "right_elbow": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW, PoseLandmark.RIGHT_WRIST),
    "left_knee": (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE, PoseLandmark.LEFT_ANKLE),
    "right_knee": (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE, PoseLandmark.RIGHT_ANKLE),
    "left_shoulder": (PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_ELBOW),
    "right_shoulder": (PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_ELBOW),
    "left_hip": (PoseLandmark.LEFT_SHOULDER, PoseLandmark.LEFT_HIP, PoseLandmark.LEFT_KNEE),
    "right_hip": (PoseLandmark.RIGHT_SHOULDER, PoseLandmark.RIGHT_HIP, PoseLandmark.RIGHT_KNEE),
}


def calculate_joint_angles(pose: Pose) -> Dict[str, float]:
    """
    Calculate joint angles from landmarks.

    Args:
        pose: Complete pose (33 landmarks)

    Returns:
        Dictionary of joint angles in degrees, empty for a partial pose
    """
    if len(pose) < LANDMARK_COUNT:
        return {}

    return {
        joint: _angle_between_points(pose[a], pose[b], pose[c])
        for joint, (a, b, c) in _JOINTS.items()
    }
