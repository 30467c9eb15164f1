from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OutputLayout:
    """
    Column offsets of one raw output row.

        [x1, y1, x2, y2, x3, y3, x4, y4, conf, color_scores..., number_scores...]

    This is the contract with the exported model; change it here only.
    """

    num_colors: int = 4
    num_classes: int = 8
    num_points: int = 4

    def __post_init__(self) -> None:
        if self.num_colors < 1:
            raise ValueError("num_colors must be >= 1")
        if self.num_classes < 1:
            raise ValueError("num_classes must be >= 1")
        if self.num_points < 1:
            raise ValueError("num_points must be >= 1")

    @property
    def points_end(self) -> int:
        return 2 * self.num_points

    @property
    def conf_index(self) -> int:
        return self.points_end

    @property
    def color_start(self) -> int:
        return self.conf_index + 1

    @property
    def color_end(self) -> int:
        return self.color_start + self.num_colors

    @property
    def number_start(self) -> int:
        return self.color_end

    @property
    def number_end(self) -> int:
        return self.number_start + self.num_classes

    @property
    def num_columns(self) -> int:
        return self.number_end
