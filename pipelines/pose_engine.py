"""
Pose Engine - composition root for single-frame pose estimation

    raw bytes -> PixelConverter -> FramePreprocessor -> InferenceEngine -> LandmarkDecoder

Each stage raises a typed error; the first failure short-circuits infer().
"""

import logging
from pathlib import Path
from typing import Optional, Union

from backends.onnxrt import InferenceEngine
from core.errors import ModelNotLoadedError
from core.pose_types import CommandStatus, Pose

from .landmark_decoder import LandmarkDecoder
from .pixel_converter import BufferLike, convert
from .preprocessor import FramePreprocessor

logger = logging.getLogger(__name__)


class PoseEngine:
    """
    Single-model pose estimator.

    The model is loaded once per process and shared by every caller; all
    inference calls are serialized by the underlying InferenceEngine.
    """

    def __init__(
        self,
        inference_engine: Optional[InferenceEngine] = None,
        preprocessor: Optional[FramePreprocessor] = None,
        decoder: Optional[LandmarkDecoder] = None,
    ):
        self.inference = inference_engine or InferenceEngine()
        self.preprocessor = preprocessor or FramePreprocessor()
        self.decoder = decoder or LandmarkDecoder()

    def load_model(self, model_path: Union[str, Path]) -> CommandStatus:
        """
        Ensure the pose model is loaded (no-op if already resident).

        Raises:
            ModelLoadError: If the file is missing or rejected by the runtime
        """
        return self.inference.load_model(model_path)

    def is_model_loaded(self) -> bool:
        return self.inference.is_model_loaded()

    @property
    def model_path(self) -> Optional[Path]:
        return self.inference.model_path

    def infer(self, data: BufferLike, width: int, height: int) -> Pose:
        """
        Estimate the pose in one raw frame.

        Args:
            data: RGB24 or YUYV buffer
            width: Frame width
            height: Frame height

        Returns:
            Ordered landmarks

        Raises:
            ModelNotLoadedError: If load_model() has not succeeded
            BufferMismatchError: If the buffer geometry is invalid
            InferenceError: If the runtime fails
        """
        if not self.inference.is_model_loaded():
            raise ModelNotLoadedError()

        image = convert(data, width, height)
        tensor = self.preprocessor.prepare(image)
        output = self.inference.run(tensor)
        return self.decoder.decode(output.data)
