from dataclasses import dataclass
from typing import List, Sequence

import numpy as np

from .geometry import iou_one_to_many
from .types import BoundingBox


@dataclass(frozen=True)
class NMSConfig:
    iou_threshold: float = 0.5

    def __post_init__(self) -> None:
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")


def nms(boxes: np.ndarray, areas: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy, class-agnostic NumPy NMS. Expects boxes shape (N,4) in xyxy, areas
    and scores shape (N,). Returns indices of boxes to keep, best score first.

    Equal scores keep their input order. A box is dropped when its IoU with an
    already kept box is >= `cfg.iou_threshold`.
    """

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int64)

    order = np.argsort(-scores, kind="stable")
    keep = []

    while order.size > 0:
        i = order[0]
        keep.append(i)

        rest = order[1:]
        overlap = iou_one_to_many(boxes[i], areas[i], boxes[rest], areas[rest])
        order = rest[overlap < cfg.iou_threshold]

    return np.array(keep, dtype=np.int64)


def suppress(candidates: Sequence[BoundingBox], iou_threshold: float = 0.5) -> List[BoundingBox]:
    """
    Reduce overlapping candidates to the final set, sorted by descending
    confidence. The result is always a subset of `candidates`.
    """

    if not candidates:
        return []

    boxes = np.array([b.as_xyxy() for b in candidates], dtype=np.float64)
    areas = np.array([b.area for b in candidates], dtype=np.float64)
    scores = np.array([b.confidence for b in candidates], dtype=np.float64)

    keep_idx = nms(boxes, areas, scores, NMSConfig(iou_threshold=iou_threshold))
    return [candidates[int(i)] for i in keep_idx]
