from dataclasses import dataclass
from typing import Tuple

import numpy as np


@dataclass(frozen=True)
class LetterboxResult:
    image: np.ndarray
    transform: np.ndarray
    scale: float
    pad: Tuple[float, float]
    borders: Tuple[int, int, int, int]

    @property
    def forward(self) -> np.ndarray:
        """3x3 map from source image coordinates to network input coordinates."""
        dw, dh = self.pad
        s = self.scale
        return np.array(
            [
                [s, 0.0, dw],
                [0.0, s, dh],
                [0.0, 0.0, 1.0],
            ],
            dtype=np.float64,
        )


def transform_points(matrix: np.ndarray, pts: np.ndarray) -> np.ndarray:
    """
    Apply a 3x3 affine matrix to (N, 2) points. Returns (N, 2) float array.
    """

    pts = np.asarray(pts, dtype=np.float64).reshape(-1, 2)
    homo = np.vstack([pts.T, np.ones((1, pts.shape[0]), dtype=np.float64)])  # (3, N)
    out = np.asarray(matrix, dtype=np.float64) @ homo
    return out[:2].T


def letterbox(
    image: np.ndarray,
    new_shape: Tuple[int, int] = (416, 416),
    color: Tuple[int, int, int] = (114, 114, 114),
) -> LetterboxResult:
    """
    Resize with unchanged aspect ratio and pad to exactly `new_shape` (w, h).

    Returns:
        LetterboxResult with the padded image and `transform`, the 3x3 matrix
        that maps network-input points back to source image points.
    """
    try:
        import cv2  # type: ignore
    except Exception as e:  # pragma: no cover
        raise ImportError("OpenCV is required for letterbox(). Install with `pip install opencv-python`.") from e

    if image is None or not hasattr(image, "shape"):
        raise TypeError("image must be a NumPy array.")
    if image.ndim != 3 or image.shape[2] != 3:
        raise ValueError(f"Expected image shape (H, W, 3), got {getattr(image, 'shape', None)}")

    if isinstance(new_shape, int):
        new_shape = (new_shape, new_shape)

    h, w = image.shape[:2]
    new_w, new_h = new_shape

    # Scale ratio (new / old)
    r = min(new_h / h, new_w / w)
    resized_w, resized_h = int(round(w * r)), int(round(h * r))

    dw = (new_w - resized_w) / 2
    dh = (new_h - resized_h) / 2

    if (w, h) != (resized_w, resized_h):
        image = cv2.resize(image, (resized_w, resized_h), interpolation=cv2.INTER_LINEAR)

    # Smaller half on the leading side when the padding is odd
    top, bottom = int(round(dh - 0.1)), int(round(dh + 0.1))
    left, right = int(round(dw - 0.1)), int(round(dw + 0.1))
    padded = cv2.copyMakeBorder(image, top, bottom, left, right, cv2.BORDER_CONSTANT, value=color)

    transform = np.array(
        [
            [1.0 / r, 0.0, -dw / r],
            [0.0, 1.0 / r, -dh / r],
            [0.0, 0.0, 1.0],
        ],
        dtype=np.float64,
    )

    return LetterboxResult(
        image=padded,
        transform=transform,
        scale=float(r),
        pad=(dw, dh),
        borders=(top, bottom, left, right),
    )
