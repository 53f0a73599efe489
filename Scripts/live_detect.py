import argparse
import dataclasses
import logging
import threading
from typing import List

import cv2

from yolo_live import (
    BoundingBox,
    DetectorConfig,
    LatestFrameWorker,
    SetupError,
    draw_boxes,
    load_detector,
    load_detector_config,
    setup_logging,
)
from yolo_live.config import parse_providers


logger = logging.getLogger("live_detect")


class OverlayState:
    """Latest result from the worker thread, read by the display loop."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.boxes: List[BoundingBox] = []
        self.inference_time_ms = None

    def on_empty_detect(self) -> None:
        with self._lock:
            self.boxes = []

    def on_detect(self, boxes: List[BoundingBox], inference_time_ms: float) -> None:
        with self._lock:
            self.boxes = list(boxes)
            self.inference_time_ms = inference_time_ms

    def snapshot(self):
        with self._lock:
            return list(self.boxes), self.inference_time_ms


def build_config(args: argparse.Namespace) -> DetectorConfig:
    cfg = load_detector_config(args.config) if args.config else DetectorConfig()
    overrides = {}
    if args.conf is not None:
        overrides["conf_threshold"] = float(args.conf)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    providers = parse_providers(args.providers)
    if providers is not None:
        overrides["providers"] = tuple(providers)
    return dataclasses.replace(cfg, **overrides) if overrides else cfg


def main() -> int:
    parser = argparse.ArgumentParser(description="Live YOLO detection with a keep-latest-frame worker.")
    src = parser.add_mutually_exclusive_group()
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")
    parser.add_argument("--model", default="Models/yolov8n.onnx", help="Path to an ONNX model with [1, 4+C, A] output.")
    parser.add_argument("--labels", default="Models/labels.txt", help="Label file (one class per line, or names: yaml).")
    parser.add_argument("--config", default=None, help="Optional detector config JSON.")
    parser.add_argument("--conf", type=float, default=None, help="Confidence threshold (overrides config).")
    parser.add_argument("--iou", type=float, default=None, help="IoU threshold for NMS (overrides config).")
    parser.add_argument(
        "--providers",
        default=None,
        help='Comma-separated ORT providers, e.g. "CUDAExecutionProvider,CPUExecutionProvider".',
    )
    parser.add_argument("--show", action="store_true", help="Show a window with the overlay.")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N captured frames (0 = no limit).")
    parser.add_argument("--log-level", default="INFO", help="Logging level.")
    parser.add_argument("--log-file", default=None, help="Optional log file path.")
    args = parser.parse_args()

    setup_logging(args.log_level, args.log_file)
    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    overlay = OverlayState()
    try:
        detector = load_detector(args.model, args.labels, overlay, build_config(args))
    except SetupError as exc:
        logger.error("Detector setup failed: %s", exc)
        return 2

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cam_index = 0 if args.webcam is None else int(args.webcam)
        cap = cv2.VideoCapture(cam_index)
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {cam_index}")

    worker = LatestFrameWorker(detector, bgr=True).start()
    captured = 0
    try:
        while worker.running:
            ok, frame = cap.read()
            if not ok or frame is None:
                break

            worker.submit(frame)
            captured += 1

            if args.show:
                boxes, inference_ms = overlay.snapshot()
                cv2.imshow("yolo-live", draw_boxes(frame, boxes, inference_time_ms=inference_ms))
                key = cv2.waitKey(1) & 0xFF
                if key in (27, ord("q")):
                    break

            if args.max_frames and captured >= args.max_frames:
                break
    finally:
        cap.release()
        if args.show:
            cv2.destroyAllWindows()
        try:
            worker.stop(timeout=5.0)
        finally:
            detector.close()

    boxes, inference_ms = overlay.snapshot()
    print(
        f"captured={captured} processed={worker.processed_frames} dropped={worker.dropped_frames} "
        f"last_inference_ms={inference_ms if inference_ms is None else round(inference_ms, 1)}"
    )
    for box in boxes:
        print(box.class_name, round(box.confidence, 3), box.as_xyxy())
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
