from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np

from .types import BoundingBox


def _color_for_class(class_index: int) -> Tuple[int, int, int]:
    """
    Deterministic BGR color for a class index (OpenCV expects BGR).
    """

    palette = [
        (255, 56, 56),
        (255, 157, 151),
        (255, 112, 31),
        (255, 178, 29),
        (207, 210, 49),
        (72, 249, 10),
        (146, 204, 23),
        (61, 219, 134),
        (26, 147, 52),
        (0, 212, 187),
        (44, 153, 168),
        (0, 194, 255),
        (52, 69, 147),
        (100, 115, 255),
        (0, 24, 236),
        (132, 56, 255),
        (82, 0, 133),
        (203, 56, 255),
        (255, 149, 200),
        (255, 55, 199),
    ]
    if 0 <= class_index < len(palette):
        return palette[class_index]

    rng = np.random.default_rng(int(class_index))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def box_label(box: BoundingBox, show_score: bool = True) -> str:
    if show_score:
        return f"{box.class_name} {box.confidence:.2f}"
    return box.class_name


def draw_boxes(
    image_bgr: np.ndarray,
    boxes: Iterable[BoundingBox],
    *,
    inference_time_ms: Optional[float] = None,
    show_score: bool = True,
    box_thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Draw normalized boxes + labels on an OpenCV BGR image and return a copy.

    Args:
        image_bgr: input image in BGR (H, W, 3).
        boxes: detections with corners in [0, 1], scaled to the image here.
        inference_time_ms: if given, written in the top-left corner.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_boxes(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    out = image_bgr.copy()
    h, w = out.shape[:2]

    for box in boxes:
        x1, y1, x2, y2 = box.to_pixels(w, h)
        x1, x2 = min(max(x1, 0), w - 1), min(max(x2, 0), w - 1)
        y1, y2 = min(max(y1, 0), h - 1), min(max(y2, 0), h - 1)

        color = _color_for_class(box.class_index)
        cv2.rectangle(out, (x1, y1), (x2, y2), color, thickness=box_thickness)

        label = box_label(box, show_score=show_score)
        (tw, th), baseline = cv2.getTextSize(label, cv2.FONT_HERSHEY_SIMPLEX, font_scale, font_thickness)
        # Place label above the box if possible, else inside.
        y_text_top = y1 - th - baseline
        if y_text_top < 0:
            y_text_top = y1

        x_text_right = min(x1 + tw, w - 1)
        y_text_bottom = min(y_text_top + th + baseline, h - 1)

        cv2.rectangle(out, (x1, y_text_top), (x_text_right, y_text_bottom), color, thickness=-1)
        cv2.putText(
            out,
            label,
            (x1, min(y_text_top + th, h - 1)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            (255, 255, 255),
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    if inference_time_ms is not None:
        cv2.putText(
            out,
            f"{inference_time_ms:.0f}ms",
            (8, 24),
            cv2.FONT_HERSHEY_SIMPLEX,
            0.7,
            (255, 255, 255),
            thickness=2,
            lineType=cv2.LINE_AA,
        )

    return out
