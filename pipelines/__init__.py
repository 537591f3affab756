"""
Pose pipeline stages.

PixelConverter -> FramePreprocessor -> InferenceEngine -> LandmarkDecoder,
composed by PoseEngine.
"""

from .pixel_converter import convert, convert_frame, yuyv_to_rgb
from .preprocessor import FramePreprocessor
from .landmark_decoder import LandmarkDecoder
from .pose_engine import PoseEngine

__all__ = [
    'convert',
    'convert_frame',
    'yuyv_to_rgb',
    'FramePreprocessor',
    'LandmarkDecoder',
    'PoseEngine',
]
