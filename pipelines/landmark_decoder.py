"""
Landmark Decoder - raw model output to Pose

The output is read as a flat float array, 5 values per landmark:
[x, y, z, visibility, <unused>]. A truncated output yields the landmarks
that fit rather than an error.
"""

import logging
from typing import Optional, Sequence, Union

import numpy as np

from core.config import MODEL_CONFIG, ModelConfig
from core.pose_types import Landmark, Pose

logger = logging.getLogger(__name__)


class LandmarkDecoder:
    """Slices model output into fixed-size landmark records"""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or MODEL_CONFIG

    def decode(self, raw: Union[np.ndarray, Sequence[float]]) -> Pose:
        """
        Decode up to landmark_count landmarks.

        Landmark i is read at offset i*stride and needs offset+3 to be in
        bounds; decoding stops at the first landmark that does not fit.

        Args:
            raw: Model output (any shape, flattened row-major)

        Returns:
            Ordered list of landmarks (partial if the output is short)
        """
        data = np.asarray(raw, dtype=np.float32).ravel()
        stride = self.config.landmark_stride

        landmarks: Pose = []
        for i in range(self.config.landmark_count):
            offset = i * stride
            if offset + 3 >= data.size:
                logger.debug(f"Output truncated: decoded {i} of {self.config.landmark_count} landmarks")
                break
            landmarks.append(Landmark(
                x=float(data[offset]),
                y=float(data[offset + 1]),
                z=float(data[offset + 2]),
                visibility=float(data[offset + 3]),
            ))

        return landmarks
