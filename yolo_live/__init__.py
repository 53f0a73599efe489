"""
Real-time YOLO detection on a live stream.

The core (decode -> threshold -> NMS) only needs NumPy and works on any
channel-major `[1, 4 + classes, anchors]` output. OpenCV is used for
preprocessing and drawing; ONNX Runtime is imported lazily by the engine.
"""

from .types import BoundingBox
from .errors import DecodeInconsistency, DetectorError, SetupError
from .geometry import iou
from .decode import TensorDecoder, decode_output
from .nms import NMSConfig, nms, suppress
from .config import DetectorConfig, load_detector_config
from .labels import load_labels
from .preprocess import Preprocessor
from .pipeline import Detector, DetectorListener, load_detector
from .worker import LatestFrameWorker
from .visualize import draw_boxes
from .logging_utils import setup_logging

__all__ = [
    "BoundingBox",
    "DecodeInconsistency",
    "DetectorError",
    "SetupError",
    "iou",
    "TensorDecoder",
    "decode_output",
    "NMSConfig",
    "nms",
    "suppress",
    "DetectorConfig",
    "load_detector_config",
    "load_labels",
    "Preprocessor",
    "Detector",
    "DetectorListener",
    "load_detector",
    "LatestFrameWorker",
    "draw_boxes",
    "setup_logging",
]
