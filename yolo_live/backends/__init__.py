"""
Inference engines for yolo_live.

Engines are kept in a separate module so the decode/NMS core stays lightweight
and can be used without installing an inference runtime.
"""

from __future__ import annotations

from typing import Protocol, Tuple

import numpy as np


class InferenceEngine(Protocol):
    """What the pipeline needs from a model runner."""

    @property
    def input_shape(self) -> Tuple[int, ...]:
        ...

    @property
    def output_shape(self) -> Tuple[int, ...]:
        ...

    def infer(self, blob: np.ndarray) -> np.ndarray:
        ...

    def close(self) -> None:
        ...


__all__ = ["InferenceEngine"]
