from typing import List, Sequence

import numpy as np

from .errors import DecodeInconsistency
from .types import BoundingBox


# Channels 0..3 hold cx, cy, w, h; class scores start here.
BOX_CHANNELS = 4


class TensorDecoder:
    """
    Decode a channel-major YOLO output into candidate boxes.

    Layout (per image): `[num_channel][num_elements]`, where channels 0-3 are
    cx, cy, w, h and the remaining `num_channel - 4` rows are class scores.
    Element `e` of channel `c` lives at flat offset `c * num_elements + e`.

    Any numeric dtype is accepted (float16/int8 exports included); values are
    read as float32.
    """

    def __init__(
        self,
        num_channel: int,
        num_elements: int,
        labels: Sequence[str],
        conf_threshold: float = 0.3,
    ):
        if num_channel <= BOX_CHANNELS:
            raise ValueError(f"num_channel must be > {BOX_CHANNELS} (got {num_channel}).")
        if num_elements <= 0:
            raise ValueError(f"num_elements must be > 0 (got {num_elements}).")
        self.num_channel = int(num_channel)
        self.num_elements = int(num_elements)
        self.labels = tuple(labels)
        self.conf_threshold = float(conf_threshold)

    def decode(self, output: np.ndarray) -> List[BoundingBox]:
        """
        Returns boxes in ascending anchor order. The list is empty when no anchor
        clears the threshold and the range check.

        Raises:
            ValueError: the buffer does not hold num_channel * num_elements values.
            DecodeInconsistency: a surviving anchor's class is not in the label table.
        """

        p = self._as_planes(output)

        # NaN scores never win; argmax returns the first maximum, so ties go to
        # the lowest class index.
        class_scores = np.where(np.isnan(p[BOX_CHANNELS:, :]), -np.inf, p[BOX_CHANNELS:, :])
        class_ids = np.argmax(class_scores, axis=0)
        scores = class_scores[class_ids, np.arange(self.num_elements)]

        cx, cy, w, h = p[0], p[1], p[2], p[3]
        x1 = cx - w / 2
        y1 = cy - h / 2
        x2 = cx + w / 2
        y2 = cy + h / 2

        keep = scores > self.conf_threshold
        for corner in (x1, y1, x2, y2):
            keep &= (corner >= 0.0) & (corner <= 1.0)
        # Negative extents give inverted corners that still sit inside the frame.
        keep &= (x1 <= x2) & (y1 <= y2)

        boxes: List[BoundingBox] = []
        for e in np.flatnonzero(keep):
            class_index = int(class_ids[e])
            if class_index >= len(self.labels):
                raise DecodeInconsistency(class_index, len(self.labels))
            boxes.append(
                BoundingBox(
                    x1=float(x1[e]),
                    y1=float(y1[e]),
                    x2=float(x2[e]),
                    y2=float(y2[e]),
                    cx=float(cx[e]),
                    cy=float(cy[e]),
                    w=float(w[e]),
                    h=float(h[e]),
                    confidence=float(scores[e]),
                    class_index=class_index,
                    class_name=self.labels[class_index],
                )
            )
        return boxes

    def _as_planes(self, output: np.ndarray) -> np.ndarray:
        flat = np.asarray(output).astype(np.float32, copy=False).reshape(-1)
        expected = self.num_channel * self.num_elements
        if flat.size != expected:
            raise ValueError(
                f"Output holds {flat.size} values, expected {expected} "
                f"({self.num_channel} channels x {self.num_elements} anchors)."
            )
        return flat.reshape(self.num_channel, self.num_elements)


def decode_output(
    output: np.ndarray,
    num_channel: int,
    num_elements: int,
    labels: Sequence[str],
    conf_threshold: float = 0.3,
) -> List[BoundingBox]:
    return TensorDecoder(num_channel, num_elements, labels, conf_threshold).decode(output)
