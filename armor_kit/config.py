from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Tuple

from .postprocess import ArmorPostConfig


@dataclass(frozen=True)
class DetectorConfig:
    input_size: Tuple[int, int] = (416, 416)
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    max_detections: int = 100
    num_colors: int = 4
    num_classes: int = 8
    pad_color: Tuple[int, int, int] = (114, 114, 114)
    swap_rb: bool = True
    input_scale: float = 1.0

    def __post_init__(self) -> None:
        if len(self.input_size) != 2 or min(self.input_size) < 1:
            raise ValueError("input_size must be (width, height) with both > 0")
        if not 0.0 <= self.conf_threshold <= 1.0:
            raise ValueError("conf_threshold must be in [0, 1]")
        if not 0.0 <= self.iou_threshold <= 1.0:
            raise ValueError("iou_threshold must be in [0, 1]")
        if self.max_detections < 0:
            raise ValueError("max_detections must be >= 0")
        if self.num_colors < 1:
            raise ValueError("num_colors must be >= 1")
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if len(self.pad_color) != 3 or any(not 0 <= c <= 255 for c in self.pad_color):
            raise ValueError("pad_color must be three values in [0, 255]")
        if self.input_scale <= 0:
            raise ValueError("input_scale must be > 0")

    def post_config(self) -> ArmorPostConfig:
        return ArmorPostConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
            num_colors=self.num_colors,
            num_classes=self.num_classes,
        )


def _require_number(payload: Dict[str, Any], key: str) -> float:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{key} must be a number")
    return float(value)


def _require_int(payload: Dict[str, Any], key: str) -> int:
    value = payload[key]
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{key} must be an integer")
    return int(value)


def _require_int_list(payload: Dict[str, Any], key: str, length: int) -> Tuple[int, ...]:
    value = payload[key]
    if not isinstance(value, list) or len(value) != length:
        raise ValueError(f"{key} must be a list of {length} integers")
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise ValueError(f"{key} must be a list of {length} integers")
    return tuple(int(v) for v in value)


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

    allowed = {
        "input_size",
        "conf_threshold",
        "iou_threshold",
        "max_detections",
        "num_colors",
        "num_classes",
        "pad_color",
        "swap_rb",
        "input_scale",
    }
    unknown = sorted(set(payload.keys()) - allowed)
    if unknown:
        raise ValueError(f"Unknown detector config keys: {unknown}")

    kwargs: Dict[str, Any] = {}
    if "input_size" in payload:
        kwargs["input_size"] = _require_int_list(payload, "input_size", 2)
    if "pad_color" in payload:
        kwargs["pad_color"] = _require_int_list(payload, "pad_color", 3)
    for key in ("conf_threshold", "iou_threshold", "input_scale"):
        if key in payload:
            kwargs[key] = _require_number(payload, key)
    for key in ("max_detections", "num_colors", "num_classes"):
        if key in payload:
            kwargs[key] = _require_int(payload, key)
    if "swap_rb" in payload:
        if not isinstance(payload["swap_rb"], bool):
            raise ValueError("swap_rb must be a boolean")
        kwargs["swap_rb"] = payload["swap_rb"]

    return DetectorConfig(**kwargs)
