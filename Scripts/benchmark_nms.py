from __future__ import annotations

import argparse
import statistics
import time
from dataclasses import dataclass
from typing import List

import numpy as np

from armor_kit import ArmorDecoder, ArmorPostConfig, OutputLayout


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
    if q < 0.0 or q > 100.0:
        raise ValueError("q must be in [0, 100].")
    if len(sorted_values) == 1:
        return float(sorted_values[0])
    # Linear interpolation between closest ranks.
    pos = (q / 100.0) * (len(sorted_values) - 1)
    lo = int(np.floor(pos))
    hi = int(np.ceil(pos))
    if lo == hi:
        return float(sorted_values[lo])
    t = pos - lo
    return float(sorted_values[lo] * (1.0 - t) + sorted_values[hi] * t)


def _summarize_ms(values_s: List[float]) -> TimingSummary:
    ms_sorted = sorted(v * 1000.0 for v in values_s)
    return TimingSummary(
        n=len(ms_sorted),
        mean_ms=float(statistics.fmean(ms_sorted)) if ms_sorted else 0.0,
        p50_ms=_percentile(ms_sorted, 50.0) if ms_sorted else 0.0,
        p90_ms=_percentile(ms_sorted, 90.0) if ms_sorted else 0.0,
        p95_ms=_percentile(ms_sorted, 95.0) if ms_sorted else 0.0,
    )


def _format_summary(label: str, s: TimingSummary) -> str:
    return (
        f"{label}: n={s.n} mean={s.mean_ms:.3f}ms p50={s.p50_ms:.3f}ms "
        f"p90={s.p90_ms:.3f}ms p95={s.p95_ms:.3f}ms"
    )


def synthetic_output(rows: int, layout: OutputLayout, imgsz: int, seed: int = 0) -> np.ndarray:
    """Random (1, rows, cols) raw output with small quadrilaterals."""
    rng = np.random.default_rng(seed)
    out = np.zeros((rows, layout.num_columns), dtype=np.float32)
    centers = rng.uniform(0, imgsz, size=(rows, 1, 2))
    offsets = rng.uniform(-20, 20, size=(rows, layout.num_points, 2))
    out[:, : layout.points_end] = (centers + offsets).reshape(rows, -1)
    out[:, layout.conf_index] = rng.uniform(0.0, 1.0, size=rows)
    out[:, layout.color_start : layout.color_end] = rng.uniform(size=(rows, layout.num_colors))
    out[:, layout.number_start : layout.number_end] = rng.uniform(size=(rows, layout.num_classes))
    return out[None, ...]


def main() -> int:
    parser = argparse.ArgumentParser(description="Benchmark armor decode vs decode + NMS on synthetic outputs.")
    parser.add_argument("--rows", type=int, default=3549, help="Candidate rows per output (416x416 model: 3549).")
    parser.add_argument("--imgsz", type=int, default=416, help="Network input size.")
    parser.add_argument("--conf", type=float, default=0.25, help="Confidence threshold.")
    parser.add_argument("--iou", type=float, default=0.45, help="IoU threshold for NMS.")
    parser.add_argument("--max-det", type=int, default=100, help="Max detections kept after NMS.")
    parser.add_argument("--warmup", type=int, default=10, help="Warmup iterations to run but not record.")
    parser.add_argument("--repeats", type=int, default=200, help="Recorded iterations.")
    args = parser.parse_args()

    if args.rows < 1:
        raise ValueError("--rows must be >= 1")
    if args.warmup < 0:
        raise ValueError("--warmup must be >= 0")
    if args.repeats < 1:
        raise ValueError("--repeats must be >= 1")

    decoder = ArmorDecoder(
        ArmorPostConfig(conf_threshold=args.conf, iou_threshold=args.iou, max_detections=args.max_det)
    )
    output = synthetic_output(int(args.rows), decoder.layout, int(args.imgsz))
    transform = np.eye(3)

    t_decode: List[float] = []
    t_full: List[float] = []
    for i in range(int(args.warmup) + int(args.repeats)):
        t0 = time.perf_counter()
        decoder.decode(output, transform)
        t1 = time.perf_counter()
        decoder.process(output, transform)
        t2 = time.perf_counter()
        if i >= args.warmup:
            t_decode.append(t1 - t0)
            t_full.append(t2 - t1)

    print(_format_summary("decode", _summarize_ms(t_decode)))
    print(_format_summary("decode+nms", _summarize_ms(t_full)))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
