from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np


PathLike = Union[str, Path]


@dataclass(frozen=True)
class OpenVINOBackendConfig:
    """
    Configuration for OpenVINO inference.

    - device: OpenVINO device name ("CPU", "GPU", "AUTO", ...)
    - performance_hint: "LATENCY" or "THROUGHPUT"
    """

    device: str = "CPU"
    performance_hint: str = "LATENCY"


class OpenVINOBackend:
    """
    OpenVINO backend: reads an IR/ONNX model, forces f32 input/output and
    compiles it for `device`. Every `infer()` uses a fresh infer request.
    """

    def __init__(self, model_path: PathLike, cfg: OpenVINOBackendConfig = OpenVINOBackendConfig()):
        try:
            import openvino as ov  # type: ignore
            from openvino.preprocess import PrePostProcessor  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError("openvino is required for the OpenVINO backend. Install with `pip install openvino`.") from e

        self._ov = ov
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        self.core = ov.Core()
        model = self.core.read_model(str(self.model_path))

        ppp = PrePostProcessor(model)
        ppp.input().tensor().set_element_type(ov.Type.f32)
        ppp.output().tensor().set_element_type(ov.Type.f32)
        model = ppp.build()

        self.device = cfg.device
        self.compiled_model = self.core.compile_model(
            model,
            cfg.device,
            {"PERFORMANCE_HINT": cfg.performance_hint},
        )

    def infer(self, blob: np.ndarray) -> np.ndarray:
        request = self.compiled_model.create_infer_request()
        request.infer({0: np.ascontiguousarray(blob, dtype=np.float32)})
        return np.array(request.get_output_tensor().data, dtype=np.float32)
