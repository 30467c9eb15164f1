from dataclasses import dataclass
from typing import List

import numpy as np

from .layout import OutputLayout
from .nms import NMSConfig, nms
from .types import ArmorObject, Proposals


@dataclass
class ArmorPostConfig:
    """
    Konfigurasi untuk post processing output armor detector
    """
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    max_detections: int = 100
    num_colors: int = 4
    num_classes: int = 8

    @property
    def layout(self) -> OutputLayout:
        return OutputLayout(num_colors=self.num_colors, num_classes=self.num_classes)

    def nms_config(self) -> NMSConfig:
        return NMSConfig(
            conf_threshold=self.conf_threshold,
            iou_threshold=self.iou_threshold,
            max_detections=self.max_detections,
        )


class ArmorDecoder:
    """
    Post-process untuk raw output armor detector.

    Layout per row (lihat `OutputLayout`):
    - [x1, y1, x2, y2, x3, y3, x4, y4, conf, color_scores..., number_scores...]

    Titik-titik dalam koordinat network input; `decode` memetakan ke koordinat
    gambar awal dengan matrix transform dari letterbox.
    """

    def __init__(self, cfg: ArmorPostConfig):
        self.cfg = cfg
        self.layout = cfg.layout

    def process(self, output: np.ndarray, transform: np.ndarray) -> List[ArmorObject]:
        """
        Decode + NMS + top-K. Returns the final detections, best score first.
        """

        proposals = self.decode(output, transform)
        if len(proposals) == 0:
            return []
        keep = nms(proposals.boxes, proposals.scores, self.cfg.nms_config())
        return [proposals.objects[i] for i in keep]

    def decode(self, output: np.ndarray, transform: np.ndarray) -> Proposals:
        """
        Mengkonversikan raw output menjadi kandidat deteksi (urutan row tetap).

        Arg:
            output: (rows, cols) atau (1, rows, cols)
            transform: 3x3 matrix network -> gambar awal
        """

        p = self._as_rows(output)
        lay = self.layout

        # Inclusive threshold, compared in float32 like the model output
        rows = p[p[:, lay.conf_index] >= np.float32(self.cfg.conf_threshold)]
        if rows.shape[0] == 0:
            return Proposals()

        color_ids = np.argmax(rows[:, lay.color_start:lay.color_end], axis=1)
        number_ids = np.argmax(rows[:, lay.number_start:lay.number_end], axis=1)
        scores = rows[:, lay.conf_index].astype(np.float32)

        pts = self._map_points(rows[:, :lay.points_end], transform)  # (N, 4, 2)
        mins = pts.min(axis=1)
        maxs = pts.max(axis=1)
        boxes = np.concatenate([mins, maxs], axis=1).astype(np.float32)

        objects = [
            ArmorObject(
                pts=pts[k].astype(np.float32),
                box=(float(boxes[k, 0]), float(boxes[k, 1]), float(boxes[k, 2]), float(boxes[k, 3])),
                color_id=int(color_ids[k]),
                number_id=int(number_ids[k]),
                prob=float(scores[k]),
            )
            for k in range(rows.shape[0])
        ]
        return Proposals(objects=objects, boxes=boxes, scores=scores)

    # ------------------------------------------------------------------ #
    # Helper internal
    # ------------------------------------------------------------------ #
    def _as_rows(self, output: np.ndarray) -> np.ndarray:
        p = np.asarray(output, dtype=np.float32)
        if p.ndim == 3:
            if p.shape[0] != 1:
                raise ValueError(f"Batch > 1 is not supported (got shape {p.shape}). Pass one image at a time.")
            p = p[0]
        if p.ndim != 2:
            raise ValueError(f"Unsupported output shape: {p.shape}")
        if p.shape[1] != self.layout.num_columns:
            raise ValueError(
                f"Expected {self.layout.num_columns} columns "
                f"(9 + {self.layout.num_colors} colors + {self.layout.num_classes} classes), got {p.shape[1]}"
            )
        return p

    def _map_points(self, raw_pts: np.ndarray, transform: np.ndarray) -> np.ndarray:
        """
        (N, 8) network points -> (N, 4, 2) source points.
        """

        n = raw_pts.shape[0]
        xy = raw_pts.reshape(n, -1, 2).astype(np.float64)
        homo = np.concatenate([xy, np.ones((n, xy.shape[1], 1), dtype=np.float64)], axis=2)  # (N, 4, 3)
        # Column vectors: dst = T @ [x, y, 1]^T
        dst = homo @ np.asarray(transform, dtype=np.float64).T
        return dst[:, :, :2]
