from __future__ import annotations

import argparse
import logging
import time
from dataclasses import replace
from pathlib import Path
from typing import Iterable, List, Optional

import cv2
import numpy as np

from armor_kit import (
    ArmorObject,
    DetectorConfig,
    LabelNames,
    draw_armors,
    load_detector,
    load_detector_config,
    load_label_names,
)


logger = logging.getLogger("run_detector")


def _iter_frames(args: argparse.Namespace) -> Iterable[np.ndarray]:
    if args.image is not None:
        img = cv2.imread(args.image)
        if img is None:
            raise FileNotFoundError(f"Could not read image at path: {args.image}")
        yield img
        return

    if args.video is not None:
        cap = cv2.VideoCapture(args.video)
        if not cap.isOpened():
            raise FileNotFoundError(f"Could not open video: {args.video}")
    else:
        cap = cv2.VideoCapture(int(args.webcam))
        if not cap.isOpened():
            raise RuntimeError(f"Could not open webcam index: {args.webcam}")

    processed = 0
    try:
        while True:
            ok, frame = cap.read()
            if not ok or frame is None:
                break
            yield frame
            processed += 1
            if args.max_frames and processed >= int(args.max_frames):
                break
    finally:
        cap.release()


def _build_config(args: argparse.Namespace) -> DetectorConfig:
    cfg = load_detector_config(Path(args.config)) if args.config else DetectorConfig()
    overrides = {}
    if args.conf is not None:
        overrides["conf_threshold"] = float(args.conf)
    if args.iou is not None:
        overrides["iou_threshold"] = float(args.iou)
    if args.max_det is not None:
        overrides["max_detections"] = int(args.max_det)
    return replace(cfg, **overrides) if overrides else cfg


def main() -> int:
    parser = argparse.ArgumentParser(description="Run the async armor detector on an image, video or webcam.")
    src = parser.add_mutually_exclusive_group(required=True)
    src.add_argument("--image", default=None, help="Path to an input image.")
    src.add_argument("--video", default=None, help="Path to an input video file.")
    src.add_argument("--webcam", type=int, default=None, help="Webcam index (e.g., 0).")

    parser.add_argument("--model", default="Models/armor.onnx", help="Path to the armor model (.onnx/.xml/.pt).")
    parser.add_argument("--backend", default=None, help="Force backend: onnxruntime / openvino / torchscript.")
    parser.add_argument("--config", default=None, help="Detector config JSON.")
    parser.add_argument("--labels", default=None, help="Color / number names file.")
    parser.add_argument("--conf", type=float, default=None, help="Override confidence threshold.")
    parser.add_argument("--iou", type=float, default=None, help="Override NMS IoU threshold.")
    parser.add_argument("--max-det", type=int, default=None, help="Override max detections (0 = no limit).")
    parser.add_argument("--max-frames", type=int, default=0, help="Stop after N frames (0 = no limit).")
    parser.add_argument("--show", action="store_true", help="Display annotated frames.")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, ...).")
    args = parser.parse_args()

    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.max_frames < 0:
        raise ValueError("--max-frames must be >= 0")

    cfg = _build_config(args)
    labels = load_label_names(args.labels) if args.labels else LabelNames()

    latest: List[Optional[np.ndarray]] = [None]

    def on_detections(armors: List[ArmorObject], timestamp_ns: int, frame: np.ndarray) -> None:
        for armor in armors:
            logger.info(
                "t=%d %s prob=%.3f box=%s",
                timestamp_ns,
                labels.describe(armor),
                armor.prob,
                tuple(round(v, 1) for v in armor.as_xyxy()),
            )
        if args.show:
            latest[0] = draw_armors(frame, armors, labels=labels)

    detector = load_detector(args.model, backend=args.backend, cfg=cfg, callback=on_detections)
    with detector:
        for frame in _iter_frames(args):
            # Wait per frame so callbacks arrive in capture order
            delivered = detector.submit(frame, time.time_ns()).result()
            if not delivered:
                logger.warning("Frame was not delivered")
            if args.show and latest[0] is not None:
                cv2.imshow("armors", latest[0])
                if cv2.waitKey(0 if args.image is not None else 1) & 0xFF == ord("q"):
                    break

    if args.show:
        cv2.destroyAllWindows()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
