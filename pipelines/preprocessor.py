"""
Frame Preprocessor - RGB image to model input tensor

Fixed-size contract: the image is resized to exactly input_size x input_size
with a triangle filter (aspect ratio is not preserved), scaled to [0, 1] and
laid out as NHWC float32 with batch 1.
"""

import logging
from typing import Optional

import numpy as np
from PIL import Image

from core.config import MODEL_CONFIG, ModelConfig
from core.pose_types import RgbImage

logger = logging.getLogger(__name__)


class FramePreprocessor:
    """Resizes and normalizes frames for the pose model"""

    def __init__(self, config: Optional[ModelConfig] = None):
        self.config = config or MODEL_CONFIG

    @property
    def input_shape(self) -> tuple:
        return self.config.input_shape

    def prepare(self, image: RgbImage) -> np.ndarray:
        """
        Build the input tensor for one frame.

        Args:
            image: RGB image of any size

        Returns:
            float32 array of shape (1, size, size, 3), values in [0, 1]
        """
        size = self.config.input_size
        resized = Image.fromarray(np.ascontiguousarray(image.pixels, dtype=np.uint8)).resize(
            (size, size), resample=Image.Resampling.BILINEAR
        )
        tensor = np.asarray(resized, dtype=np.float32) / np.float32(255.0)
        return tensor.reshape(self.input_shape)
