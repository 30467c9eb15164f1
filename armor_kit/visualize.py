from __future__ import annotations

from typing import Iterable, Optional, Tuple

import numpy as np

from .metadata import LabelNames
from .types import ArmorObject


def _color_for_armor(color_id: int) -> Tuple[int, int, int]:
    """
    BGR outline color per armor color id (OpenCV expects BGR).
    """

    # blue, red, none, purple
    palette = [
        (255, 128, 0),
        (0, 0, 255),
        (160, 160, 160),
        (255, 0, 255),
    ]
    if 0 <= color_id < len(palette):
        return palette[color_id]

    rng = np.random.default_rng(int(color_id))
    bgr = rng.integers(0, 256, size=3, dtype=np.uint8)
    return int(bgr[0]), int(bgr[1]), int(bgr[2])


def draw_armors(
    image_bgr: np.ndarray,
    armors: Iterable[ArmorObject],
    *,
    labels: Optional[LabelNames] = None,
    show_score: bool = True,
    thickness: int = 2,
    font_scale: float = 0.5,
    font_thickness: int = 1,
) -> np.ndarray:
    """
    Outline each armor quadrilateral and write its label; returns a copy.

    Args:
        image_bgr: input image in BGR (H, W, 3).
        armors: detections with points in original image coordinates.
        labels: optional color / number names; defaults are used when None.
    """

    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for draw_armors(). Install with `pip install opencv-python`.") from e

    if image_bgr is None or not hasattr(image_bgr, "shape"):
        raise TypeError("image_bgr must be a NumPy array (BGR).")
    if image_bgr.ndim != 3 or image_bgr.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image_bgr, 'shape', None)}")

    names = labels or LabelNames()
    out = image_bgr.copy()
    h, w = out.shape[:2]

    for armor in armors:
        color = _color_for_armor(armor.color_id)
        poly = np.round(armor.pts).astype(np.int32).reshape(-1, 1, 2)
        cv2.polylines(out, [poly], isClosed=True, color=color, thickness=thickness, lineType=cv2.LINE_AA)

        label = names.describe(armor)
        if show_score:
            label = f"{label} {armor.prob:.2f}"

        x0 = int(np.clip(round(float(armor.pts[0, 0])), 0, w - 1))
        y0 = int(np.clip(round(float(armor.pts[0, 1])), 0, h - 1))
        cv2.putText(
            out,
            label,
            (x0, max(y0 - 4, 0)),
            cv2.FONT_HERSHEY_SIMPLEX,
            font_scale,
            color,
            thickness=font_thickness,
            lineType=cv2.LINE_AA,
        )

    return out
