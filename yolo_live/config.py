from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Sequence, Tuple


CPU_PROVIDER = "CPUExecutionProvider"


@dataclass(frozen=True)
class DetectorConfig:
    """
    Settings fixed when a `Detector` is built; never re-read per frame.

    - conf_threshold: an anchor needs a class score strictly above this
    - iou_threshold: NMS drops a box whose IoU with a kept box is >= this
    - input_mean/input_std: pixel normalization, (pixel - mean) / std
    - providers: preferred ONNX Runtime execution providers (None = ORT default)
    - fallback_providers: tried when the preferred providers fail to load
    - num_threads: intra-op threads for the fallback session (0 = ORT default)
    """

    conf_threshold: float = 0.3
    iou_threshold: float = 0.5
    input_mean: float = 0.0
    input_std: float = 255.0
    providers: Optional[Tuple[str, ...]] = None
    fallback_providers: Tuple[str, ...] = (CPU_PROVIDER,)
    num_threads: int = 2

    def __post_init__(self) -> None:
        if not 0.0 <= self.conf_threshold < 1.0:
            raise ValueError("conf_threshold must be in [0, 1)")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.input_std == 0:
            raise ValueError("input_std must not be 0")
        if self.num_threads < 0:
            raise ValueError("num_threads must be >= 0")
        if not self.fallback_providers:
            raise ValueError("fallback_providers must not be empty")


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _coerce_providers(value: object, key: str) -> Tuple[str, ...]:
    if isinstance(value, str):
        value = [value]
    if isinstance(value, list) and all(isinstance(item, str) for item in value):
        cleaned = tuple(item.strip() for item in value)
        if not cleaned or any(not item for item in cleaned):
            raise ValueError(f"{key} must not contain empty strings")
        return cleaned
    raise ValueError(f"{key} must be a string or list of strings")


def config_from_dict(payload: Dict[str, Any]) -> DetectorConfig:
    allowed = {
        "conf_threshold",
        "iou_threshold",
        "input_mean",
        "input_std",
        "providers",
        "fallback_providers",
        "num_threads",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    for key in ("conf_threshold", "iou_threshold", "input_mean", "input_std"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in ("providers", "fallback_providers"):
        if payload.get(key) is not None:
            kwargs[key] = _coerce_providers(payload[key], key)
    if "num_threads" in payload:
        value = payload["num_threads"]
        if isinstance(value, bool) or not isinstance(value, int):
            raise ValueError("num_threads must be an integer")
        kwargs["num_threads"] = value

    return DetectorConfig(**kwargs)


def load_detector_config(path: Path) -> DetectorConfig:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Detector config not found: {path}")
    raw = path.read_text(encoding="utf-8")
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid detector config JSON: {path}") from exc
    if not isinstance(payload, dict):
        raise ValueError("Detector config must be a JSON object")
    return config_from_dict(payload)


def parse_providers(value: Optional[str]) -> Optional[Sequence[str]]:
    """Split a comma-separated provider list as given on the command line."""
    if not value:
        return None
    providers = [p.strip() for p in str(value).split(",") if p.strip()]
    return providers or None
