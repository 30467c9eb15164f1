"""
Optional model adapters for armor_kit.

Each backend exposes `infer(blob) -> np.ndarray` and can be handed straight to
`InferenceDispatcher`. They live apart from the core so pre/post-processing can
be used without installing an inference runtime.
"""

from __future__ import annotations

__all__ = []
