from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from yolo_live import TensorDecoder, suppress


@dataclass(frozen=True)
class TimingSummary:
    n: int
    mean_ms: float
    p50_ms: float
    p90_ms: float
    p95_ms: float


def _percentile(sorted_values: List[float], q: float) -> float:
    if not sorted_values:
        raise ValueError("No values provided.")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms),
        mean_ms=float(statistics.fmean(ms)),
        p50_ms=_percentile(ms, 50.0),
        p90_ms=_percentile(ms, 90.0),
        p95_ms=_percentile(ms, 95.0),
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def synthetic_output(rng: np.random.Generator, num_classes: int, anchors: int, hot_anchors: int) -> np.ndarray:
    """
    A [1, 4 + C, A] tensor where `hot_anchors` anchors carry a confident class
    and clustered boxes, and the rest are background noise.
    """

    out = np.zeros((4 + num_classes, anchors), dtype=np.float32)
    out[0:2, :] = rng.uniform(0.2, 0.8, size=(2, anchors))
    out[2:4, :] = rng.uniform(0.02, 0.3, size=(2, anchors))
    out[4:, :] = rng.uniform(0.0, 0.1, size=(num_classes, anchors))

    hot = rng.choice(anchors, size=min(hot_anchors, anchors), replace=False)
    cls = rng.integers(0, num_classes, size=hot.size)
    out[4 + cls, hot] = rng.uniform(0.4, 0.95, size=hot.size)
    return out[None, ...]


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark decode + NMS latency on synthetic YOLO outputs.")
    parser.add_argument("--classes", type=int, default=80, help="Number of classes.")
    parser.add_argument("--anchors", type=int, default=8400, help="Anchors per output (8400 for 640x640 YOLOv8).")
    parser.add_argument("--hot", type=int, default=200, help="Anchors above the confidence threshold.")
    parser.add_argument("--conf", type=float, default=0.3, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.5, help="IoU threshold for NMS.")
    parser.add_argument("--repeats", type=int, default=200, help="Timed iterations.")
    parser.add_argument("--warmup", type=int, default=10, help="Untimed iterations.")
    parser.add_argument("--seed", type=int, default=0, help="RNG seed.")
    args = parser.parse_args()

    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")

    rng = np.random.default_rng(args.seed)
    labels = [f"class_{i}" for i in range(args.classes)]
    decoder = TensorDecoder(4 + args.classes, args.anchors, labels, conf_threshold=args.conf)
    output = synthetic_output(rng, args.classes, args.anchors, args.hot)

    for _ in range(args.warmup):
        suppress(decoder.decode(output), args.iou)

    decode_s: List[float] = []
    nms_s: List[float] = []
    kept = 0
    candidates = []
    for _ in range(args.repeats):
        t0 = time.perf_counter()
        candidates = decoder.decode(output)
        t1 = time.perf_counter()
        kept = len(suppress(candidates, args.iou))
        t2 = time.perf_counter()
        decode_s.append(t1 - t0)
        nms_s.append(t2 - t1)

    print(f"candidates={len(candidates)} kept={kept}")
    print(_format_summary("decode", _summarize_ms(decode_s)))
    print(_format_summary("nms", _summarize_ms(nms_s)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
