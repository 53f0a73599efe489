from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class BoundingBox:
    """
    One detection in normalized, image-relative coordinates.

    Corners and center/extent are both kept: IoU uses `w * h` directly and
    overlays draw from the corners.
    """

    x1: float
    y1: float
    x2: float
    y2: float
    cx: float
    cy: float
    w: float
    h: float
    confidence: float
    class_index: int
    class_name: str

    @property
    def area(self) -> float:
        return self.w * self.h

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.x1, self.y1, self.x2, self.y2

    @classmethod
    def from_xyxy(
        cls,
        x1: float,
        y1: float,
        x2: float,
        y2: float,
        confidence: float,
        class_index: int = 0,
        class_name: str = "object",
    ) -> "BoundingBox":
        """Create from corners, deriving center and extent."""
        return cls(
            x1=x1,
            y1=y1,
            x2=x2,
            y2=y2,
            cx=(x1 + x2) / 2,
            cy=(y1 + y2) / 2,
            w=x2 - x1,
            h=y2 - y1,
            confidence=confidence,
            class_index=class_index,
            class_name=class_name,
        )

    def to_pixels(self, width: int, height: int) -> Tuple[int, int, int, int]:
        """Scale the corners to an image of `width` x `height` pixels."""
        return (
            int(round(self.x1 * width)),
            int(round(self.y1 * height)),
            int(round(self.x2 * width)),
            int(round(self.y2 * height)),
        )
