from dataclasses import dataclass
import numpy as np


@dataclass
class NMSConfig:
    conf_threshold: float = 0.25
    iou_threshold: float = 0.45
    # <= 0 disables the cap
    max_detections: int = 100

def nms(boxes: np.ndarray, scores: np.ndarray, cfg: NMSConfig) -> np.ndarray:
    """
    Greedy NumPy NMS. Expects boxes shape (N,4) in xyxy and scores shape (N,).
    Returns indices into `boxes` of the kept candidates, best score first.
    """

    boxes = np.asarray(boxes, dtype=np.float64).reshape(-1, 4)
    # Confidences come from a float32 tensor; threshold compared in float32
    conf = np.asarray(scores, dtype=np.float32).reshape(-1)
    scores = conf.astype(np.float64)
    if boxes.shape[0] != scores.shape[0]:
        raise ValueError(f"boxes and scores length mismatch: {boxes.shape[0]} vs {scores.shape[0]}")

    if boxes.size == 0:
        return np.empty((0,), dtype=np.int32)

    x1 = boxes[:, 0]
    y1 = boxes[:, 1]
    x2 = boxes[:, 2]
    y2 = boxes[:, 3]
    areas = (x2 - x1) * (y2 - y1)

    candidates = np.where(conf >= np.float32(cfg.conf_threshold))[0]
    # Stable: equal scores keep input order
    order = candidates[np.argsort(-scores[candidates], kind="stable")]
    limit = cfg.max_detections if cfg.max_detections > 0 else order.size
    keep = []

    while order.size > 0 and len(keep) < limit:
        i = order[0]
        keep.append(i)

        xx1 = np.maximum(x1[i], x1[order[1:]])
        yy1 = np.maximum(y1[i], y1[order[1:]])
        xx2 = np.minimum(x2[i], x2[order[1:]])
        yy2 = np.minimum(y2[i], y2[order[1:]])

        w = np.maximum(0.0, xx2 - xx1)
        h = np.maximum(0.0, yy2 - yy1)
        inter = w * h
        union = areas[i] + areas[order[1:]] - inter
        iou = inter / np.maximum(union, 1e-6)

        inds = np.where(iou <= cfg.iou_threshold)[0]
        order = order[inds + 1]

    return np.array(keep, dtype=np.int32)
