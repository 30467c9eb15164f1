from __future__ import annotations

import enum
import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union

import numpy as np

from .config import DetectorConfig
from .letterbox import LetterboxResult, letterbox
from .postprocess import ArmorDecoder
from .types import ArmorObject


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]
DetectionCallback = Callable[[List[ArmorObject], int, np.ndarray], None]


def find_project_root(
    start: Optional[PathLike] = None,
    markers: Sequence[str] = ("pyproject.toml", "setup.py", ".git", "requirements.txt"),
) -> Path:
    """
    Best-effort project root discovery.

    Useful when models live next to the project (`Models/armor.onnx`) and the
    process is started from somewhere else.
    """

    p = Path(start) if start is not None else Path.cwd()
    p = p.resolve()

    # If a file is provided, start from its directory.
    if p.is_file():
        p = p.parent

    for parent in (p, *p.parents):
        for m in markers:
            if (parent / m).exists():
                return parent
    return p


def resolve_path(path: PathLike, root: Optional[PathLike] = "auto") -> Path:
    """
    Resolve `path` to an absolute Path.

    - Absolute paths are returned as-is.
    - Relative paths are resolved against:
      - `root` if provided
      - project root (auto) otherwise
    """

    p = Path(path)
    if p.is_absolute():
        return p

    if root == "auto" or root is None:
        base = find_project_root()
    else:
        base = Path(root).resolve()

    return (base / p).resolve()


class CompiledModel(Protocol):
    """
    Anything that runs one inference: (1, 3, H, W) float32 in, (1, rows, cols) out.
    """

    def infer(self, blob: np.ndarray) -> np.ndarray:
        ...


class _FunctionModel:
    def __init__(self, fn: Callable[[np.ndarray], np.ndarray]):
        self._fn = fn

    def infer(self, blob: np.ndarray) -> np.ndarray:
        return self._fn(blob)


class DispatchOutcome(enum.Enum):
    DELIVERED = "delivered"
    NO_CALLBACK = "no_callback"
    EMPTY_FRAME = "empty_frame"


def make_blob(image: np.ndarray, swap_rb: bool = True, scale: float = 1.0) -> np.ndarray:
    """
    HWC uint8 image -> (1, 3, H, W) float32 planar blob.

    The exported armor model expects raw 0..255 values, hence `scale=1.0`.
    """

    blob = image[:, :, ::-1] if swap_rb else image
    blob = blob.astype(np.float32)
    if scale != 1.0:
        blob *= np.float32(scale)
    blob = np.transpose(blob, (2, 0, 1))[None, ...]
    return np.ascontiguousarray(blob)


def _is_empty(frame: Optional[np.ndarray]) -> bool:
    if frame is None or not hasattr(frame, "shape"):
        return True
    if frame.size == 0 or frame.ndim < 2:
        return True
    return frame.shape[0] == 0 or frame.shape[1] == 0


def _resolved(value) -> Future:
    fut: Future = Future()
    fut.set_result(value)
    return fut


class InferenceDispatcher:
    """
    Asynchronous armor detector: letterbox -> inference -> decode -> NMS -> callback.

    `submit()` letterboxes on the calling thread and runs the rest on a worker
    pool. Results from different frames may complete out of order; callers that
    need ordering should wait on each future before submitting the next frame.

    Model calls are serialized with a lock unless `serialize_inference=False`
    (only for models that are safe to call from several threads at once).

    The worker pool lives until `close()`; use the dispatcher as a context
    manager (`with load_detector(...) as det:`) so its threads are released.
    """

    def __init__(
        self,
        model: Union[CompiledModel, Callable[[np.ndarray], np.ndarray]],
        cfg: DetectorConfig = DetectorConfig(),
        *,
        callback: Optional[DetectionCallback] = None,
        max_workers: Optional[int] = None,
        serialize_inference: bool = True,
        backend_name: Optional[str] = None,
    ):
        if hasattr(model, "infer"):
            self.model = model
        elif callable(model):
            self.model = _FunctionModel(model)
        else:
            raise TypeError("model must provide infer(blob) or be callable")

        self.cfg = cfg
        self.backend_name = backend_name
        self.decoder = ArmorDecoder(cfg.post_config())

        self._callback = callback
        self._callback_lock = threading.Lock()
        self._model_lock = threading.Lock() if serialize_inference else None
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="armor-infer")

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #
    def set_callback(self, callback: Optional[DetectionCallback]) -> None:
        """Replace the callback; frames already submitted keep the old one."""
        with self._callback_lock:
            self._callback = callback

    def submit(self, frame: np.ndarray, timestamp_ns: int) -> Future:
        """
        Schedule one frame. The future resolves to True if a callback received
        the detections, False otherwise (empty frame or no callback).
        """

        outcome = self.submit_outcome(frame, timestamp_ns)
        result: Future = Future()

        def _chain(f: Future) -> None:
            exc = f.exception()
            if exc is not None:
                result.set_exception(exc)
            else:
                result.set_result(f.result() is DispatchOutcome.DELIVERED)

        outcome.add_done_callback(_chain)
        return result

    def submit_outcome(self, frame: np.ndarray, timestamp_ns: int) -> Future:
        """Like `submit()`, but resolves to a `DispatchOutcome`."""
        if _is_empty(frame):
            logger.debug("Skipping empty frame (timestamp=%s)", timestamp_ns)
            return _resolved(DispatchOutcome.EMPTY_FRAME)

        prep = self.preprocess(frame)
        with self._callback_lock:
            callback = self._callback
        return self._executor.submit(self._process, prep, int(timestamp_ns), frame, callback)

    def detect(self, frame: np.ndarray) -> List[ArmorObject]:
        """Synchronous variant: returns detections without touching the callback."""
        if _is_empty(frame):
            return []
        prep = self.preprocess(frame)
        return self._run(prep)

    def preprocess(self, frame: np.ndarray) -> LetterboxResult:
        return letterbox(frame, new_shape=self.cfg.input_size, color=self.cfg.pad_color)

    def close(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "InferenceDispatcher":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # Worker side
    # ------------------------------------------------------------------ #
    def _infer(self, blob: np.ndarray) -> np.ndarray:
        if self._model_lock is None:
            return self.model.infer(blob)
        with self._model_lock:
            return self.model.infer(blob)

    def _run(self, prep: LetterboxResult) -> List[ArmorObject]:
        blob = make_blob(prep.image, swap_rb=self.cfg.swap_rb, scale=self.cfg.input_scale)
        output = self._infer(blob)
        return self.decoder.process(output, prep.transform)

    def _process(
        self,
        prep: LetterboxResult,
        timestamp_ns: int,
        src: np.ndarray,
        callback: Optional[DetectionCallback],
    ) -> DispatchOutcome:
        try:
            armors = self._run(prep)
        except Exception:
            logger.exception("Armor inference failed (timestamp=%d)", timestamp_ns)
            raise

        if callback is None:
            logger.debug("No callback registered, dropping %d detections (timestamp=%d)", len(armors), timestamp_ns)
            return DispatchOutcome.NO_CALLBACK

        callback(armors, timestamp_ns, src)
        return DispatchOutcome.DELIVERED


def load_detector(
    model_path: PathLike,
    *,
    backend: Optional[str] = None,
    root: Optional[PathLike] = "auto",
    cfg: DetectorConfig = DetectorConfig(),
    callback: Optional[DetectionCallback] = None,
    max_workers: Optional[int] = None,
    onnx_providers: Optional[Sequence[str]] = None,
    onnx_input_name: Optional[str] = None,
    onnx_output_name: Optional[str] = None,
    openvino_device: str = "CPU",
    torch_device: str = "cpu",
    torch_half: bool = False,
    torch_output_index: int = 0,
) -> InferenceDispatcher:
    """
    Create an async detector for a model on disk.

        det = load_detector("Models/armor.onnx")  # resolves from project root by default

    Args:
        model_path: path to the model file; relative paths resolve against project root by default
        backend: "onnxruntime", "openvino", "torchscript" or None to infer from extension
        root: base directory for resolving relative model paths ("auto" uses best-effort project root)
    """

    resolved = resolve_path(model_path, root=root)
    chosen = backend
    if chosen is None:
        suffix = resolved.suffix.lower()
        if suffix == ".onnx":
            chosen = "onnxruntime"
        elif suffix == ".xml":
            chosen = "openvino"
        elif suffix in {".torchscript", ".ts", ".pt"}:
            chosen = "torchscript"
        else:
            raise ValueError(
                f"Could not infer backend from extension '{suffix}'. Pass backend=... explicitly."
            )

    chosen = chosen.lower()
    if chosen == "onnxruntime":
        from .backends.onnxruntime_backend import OnnxRuntimeBackend, OnnxRuntimeBackendConfig

        model = OnnxRuntimeBackend(
            resolved,
            OnnxRuntimeBackendConfig(
                providers=onnx_providers,
                input_name=onnx_input_name,
                output_name=onnx_output_name,
            ),
        )
    elif chosen == "openvino":
        from .backends.openvino_backend import OpenVINOBackend, OpenVINOBackendConfig

        model = OpenVINOBackend(resolved, OpenVINOBackendConfig(device=openvino_device))
    elif chosen == "torchscript":
        from .backends.torchscript_backend import TorchScriptBackend, TorchScriptBackendConfig

        model = TorchScriptBackend(
            resolved,
            TorchScriptBackendConfig(device=torch_device, half=torch_half, output_index=torch_output_index),
        )
    else:
        raise ValueError(f"Unsupported backend: {backend!r}")

    logger.info("Loaded %s model from %s", chosen, resolved)
    return InferenceDispatcher(
        model,
        cfg,
        callback=callback,
        max_workers=max_workers,
        backend_name=chosen,
    )
