from typing import Sequence

import numpy as np

from .types import BoundingBox


def iou(a: BoundingBox, b: BoundingBox) -> float:
    """
    Intersection over union of two boxes.

    Areas come from each box's `w * h`. A zero union (two degenerate boxes)
    gives 0.0 rather than NaN.
    """

    ix1 = max(a.x1, b.x1)
    iy1 = max(a.y1, b.y1)
    ix2 = min(a.x2, b.x2)
    iy2 = min(a.y2, b.y2)
    inter = max(0.0, ix2 - ix1) * max(0.0, iy2 - iy1)
    union = a.area + b.area - inter
    if union <= 0.0:
        return 0.0
    return inter / union


def iou_one_to_many(
    box_xyxy: Sequence[float],
    area: float,
    boxes_xyxy: np.ndarray,
    areas: np.ndarray,
) -> np.ndarray:
    """
    IoU of one box against N boxes. `boxes_xyxy` has shape (N, 4), `areas` (N,).
    """

    if boxes_xyxy.size == 0:
        return np.empty((0,), dtype=np.float32)

    xx1 = np.maximum(box_xyxy[0], boxes_xyxy[:, 0])
    yy1 = np.maximum(box_xyxy[1], boxes_xyxy[:, 1])
    xx2 = np.minimum(box_xyxy[2], boxes_xyxy[:, 2])
    yy2 = np.minimum(box_xyxy[3], boxes_xyxy[:, 3])

    inter = np.maximum(0.0, xx2 - xx1) * np.maximum(0.0, yy2 - yy1)
    union = area + areas - inter
    out = np.zeros_like(inter)
    np.divide(inter, union, out=out, where=union > 0.0)
    return out
