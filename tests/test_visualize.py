import unittest

import numpy as np

from yolo_live.types import BoundingBox
from yolo_live.visualize import box_label, draw_boxes


class TestDrawBoxes(unittest.TestCase):
    def test_draws_on_a_copy(self) -> None:
        image = np.zeros((120, 160, 3), dtype=np.uint8)
        boxes = [BoundingBox.from_xyxy(0.25, 0.25, 0.75, 0.75, 0.87, 2, "car")]

        out = draw_boxes(image, boxes, inference_time_ms=12.3)

        self.assertEqual(out.shape, image.shape)
        self.assertEqual(int(image.sum()), 0)
        self.assertGreater(int(out.sum()), 0)
        # Left edge of the box at x = 0.25 * 160
        self.assertTrue(out[60, 40].any())

    def test_box_to_pixels(self) -> None:
        box = BoundingBox.from_xyxy(0.0, 0.5, 1.0, 1.0, 0.5)
        self.assertEqual(box.to_pixels(200, 100), (0, 50, 200, 100))

    def test_label(self) -> None:
        box = BoundingBox.from_xyxy(0.1, 0.1, 0.2, 0.2, 0.876, 0, "person")
        self.assertEqual(box_label(box), "person 0.88")
        self.assertEqual(box_label(box, show_score=False), "person")

    def test_rejects_non_images(self) -> None:
        with self.assertRaises(ValueError):
            draw_boxes(np.zeros((10, 10), dtype=np.uint8), [])


if __name__ == "__main__":
    unittest.main()
