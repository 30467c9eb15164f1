"""
Armor plate detection front-end: letterbox, async inference dispatch,
raw-tensor decoding and NMS.

Core pieces only need NumPy and OpenCV. Inference runtimes live in
`armor_kit.backends` and are imported on demand.
"""

from .types import ArmorObject, Proposals
from .layout import OutputLayout
from .letterbox import LetterboxResult, letterbox, transform_points
from .nms import NMSConfig, nms
from .postprocess import ArmorDecoder, ArmorPostConfig
from .config import DetectorConfig, load_detector_config
from .runtime import (
    CompiledModel,
    DispatchOutcome,
    InferenceDispatcher,
    find_project_root,
    load_detector,
    make_blob,
    resolve_path,
)
from .metadata import DEFAULT_COLOR_NAMES, DEFAULT_NUMBER_NAMES, LabelNames, load_label_names
from .visualize import draw_armors

__all__ = [
    "ArmorObject",
    "Proposals",
    "OutputLayout",
    "LetterboxResult",
    "letterbox",
    "transform_points",
    "NMSConfig",
    "nms",
    "ArmorDecoder",
    "ArmorPostConfig",
    "DetectorConfig",
    "load_detector_config",
    "CompiledModel",
    "DispatchOutcome",
    "InferenceDispatcher",
    "find_project_root",
    "load_detector",
    "make_blob",
    "resolve_path",
    "DEFAULT_COLOR_NAMES",
    "DEFAULT_NUMBER_NAMES",
    "LabelNames",
    "load_label_names",
    "draw_armors",
]
