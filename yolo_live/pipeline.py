from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import List, Optional, Protocol, Sequence, Tuple, Union

import numpy as np

from .backends import InferenceEngine
from .config import DetectorConfig
from .decode import BOX_CHANNELS, TensorDecoder
from .errors import SetupError
from .labels import load_labels
from .nms import suppress
from .preprocess import Preprocessor
from .types import BoundingBox


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


class DetectorListener(Protocol):
    """Receives exactly one callback per `Detector.detect` call."""

    def on_empty_detect(self) -> None:
        ...

    def on_detect(self, boxes: List[BoundingBox], inference_time_ms: float) -> None:
        ...


def _input_layout(shape: Tuple[int, ...]) -> Tuple[int, int, bool]:
    """Return (height, width, channels_first) for a 4-D image input."""
    if len(shape) != 4 or shape[0] != 1:
        raise SetupError(f"Expected an input shape [1, H, W, C] or [1, C, H, W], got {list(shape)}")
    if shape[3] == 3:
        return shape[1], shape[2], False
    if shape[1] == 3:
        return shape[2], shape[3], True
    raise SetupError(f"Cannot tell the channel axis of input shape {list(shape)}")


class Detector:
    """
    Plug-and-play pipeline: preprocess -> inference -> decode -> NMS.

    Everything derived from the engine (input size, channel/anchor counts) is
    fixed here and read-only afterwards, so one `Detector` can be driven by a
    single worker thread without locking.
    """

    def __init__(
        self,
        engine: InferenceEngine,
        labels: Sequence[str],
        listener: DetectorListener,
        config: DetectorConfig = DetectorConfig(),
    ):
        self.engine = engine
        self.listener = listener
        self.config = config
        self.labels = tuple(labels)

        self.tensor_height, self.tensor_width, channels_first = _input_layout(tuple(engine.input_shape))

        out_shape = tuple(engine.output_shape)
        if len(out_shape) != 3 or out_shape[0] != 1:
            raise SetupError(f"Expected an output shape [1, channels, anchors], got {list(out_shape)}")
        self.num_channel = int(out_shape[1])
        self.num_elements = int(out_shape[2])
        if self.num_channel <= BOX_CHANNELS or self.num_elements <= 0:
            raise SetupError(f"Output shape {list(out_shape)} has no class channels or no anchors")

        if len(self.labels) != self.num_channel - BOX_CHANNELS:
            raise SetupError(
                f"Label table has {len(self.labels)} entries but the model predicts "
                f"{self.num_channel - BOX_CHANNELS} classes"
            )

        self.preprocessor = Preprocessor(
            width=self.tensor_width,
            height=self.tensor_height,
            mean=config.input_mean,
            std=config.input_std,
            channels_first=channels_first,
        )
        self.decoder = TensorDecoder(
            self.num_channel,
            self.num_elements,
            self.labels,
            conf_threshold=config.conf_threshold,
        )
        logger.info(
            "Detector ready: input %dx%d, %d classes, %d anchors",
            self.tensor_width,
            self.tensor_height,
            len(self.labels),
            self.num_elements,
        )

    def process_output(self, output: np.ndarray) -> Optional[List[BoundingBox]]:
        """
        Decode a raw output tensor and apply NMS.

        Returns None when no candidate survives decoding, so "nothing found"
        is distinct from an empty suppression result.
        """

        candidates = self.decoder.decode(output)
        if not candidates:
            return None
        return suppress(candidates, self.config.iou_threshold)

    def detect(self, frame: np.ndarray, bgr: bool = False) -> List[BoundingBox]:
        """
        Run one frame through the whole pipeline and notify the listener.

        `inference_time_ms` covers preprocessing, inference, decoding and NMS.
        """

        started = time.perf_counter()
        blob = self.preprocessor(frame, bgr=bgr)
        output = self.engine.infer(blob)
        boxes = self.process_output(output)
        elapsed_ms = (time.perf_counter() - started) * 1000.0

        if boxes is None:
            self.listener.on_empty_detect()
            return []
        self.listener.on_detect(boxes, elapsed_ms)
        return boxes

    def close(self) -> None:
        self.engine.close()

    def __enter__(self) -> "Detector":
        return self

    def __exit__(self, *exc) -> None:
        self.close()


def load_detector(
    model_path: PathLike,
    labels_path: PathLike,
    listener: DetectorListener,
    config: DetectorConfig = DetectorConfig(),
) -> Detector:
    """
    Build a `Detector` for an ONNX model and its label file.

    Raises:
        SetupError: the model cannot be loaded on any provider, or labels and
            model disagree.
    """

    from .backends.onnxruntime_backend import open_engine

    labels = load_labels(labels_path)
    engine = open_engine(
        model_path,
        providers=config.providers,
        fallback_providers=config.fallback_providers,
        num_threads=config.num_threads,
    )
    try:
        return Detector(engine, labels, listener, config)
    except SetupError:
        engine.close()
        raise
