from dataclasses import dataclass, field
from typing import List, Tuple

import numpy as np


@dataclass(frozen=True, eq=False)
class ArmorObject:
    """
    One detected armor plate in source image coordinates.

    `pts` keeps the corner order emitted by the network. `box` is the tightest
    axis-aligned (x1, y1, x2, y2) box around `pts`.
    """

    pts: np.ndarray
    box: Tuple[float, float, float, float]
    color_id: int
    number_id: int
    prob: float

    def __post_init__(self) -> None:
        pts = np.array(self.pts, dtype=np.float32)
        pts.setflags(write=False)
        object.__setattr__(self, "pts", pts)

    def as_xyxy(self) -> Tuple[float, float, float, float]:
        return self.box

    @property
    def width(self) -> float:
        return self.box[2] - self.box[0]

    @property
    def height(self) -> float:
        return self.box[3] - self.box[1]

    @property
    def center(self) -> Tuple[float, float]:
        c = self.pts.mean(axis=0)
        return float(c[0]), float(c[1])


@dataclass
class Proposals:
    """
    Decoder output: candidate objects plus parallel arrays for suppression.
    """

    objects: List[ArmorObject] = field(default_factory=list)
    boxes: np.ndarray = field(default_factory=lambda: np.empty((0, 4), dtype=np.float32))
    scores: np.ndarray = field(default_factory=lambda: np.empty((0,), dtype=np.float32))

    def __len__(self) -> int:
        return len(self.objects)
