from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class Preprocessor:
    """
    Resize + normalize a frame into the engine's input tensor.

    No letterboxing: the frame is stretched to (width, height), so normalized
    box coordinates map straight back onto the original frame.
    """

    width: int
    height: int
    mean: float = 0.0
    std: float = 255.0
    channels_first: bool = False

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Input size must be positive, got {self.width}x{self.height}")
        if self.std == 0:
            raise ValueError("std must not be 0")

    def __call__(self, image: np.ndarray, bgr: bool = False) -> np.ndarray:
        """
        Args:
            image: uint8 array (H, W, 3), RGB unless `bgr` is set (OpenCV frames)

        Returns:
            float32 blob shaped (1, H, W, 3), or (1, 3, H, W) if channels_first
        """

        try:
            import cv2  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("OpenCV is required for preprocessing. Install with `pip install opencv-python`.") from e

        if image is None or not hasattr(image, "shape"):
            raise TypeError("image must be a NumPy array.")
        if image.ndim != 3 or image.shape[2] != 3:
            raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image, 'shape', None)}")

        h, w = image.shape[:2]
        if (w, h) != (self.width, self.height):
            image = cv2.resize(image, (self.width, self.height), interpolation=cv2.INTER_LINEAR)
        if bgr:
            image = image[:, :, ::-1]

        blob = (image.astype(np.float32) - np.float32(self.mean)) / np.float32(self.std)
        if self.channels_first:
            blob = np.transpose(blob, (2, 0, 1))
        return np.ascontiguousarray(blob[None, ...])
