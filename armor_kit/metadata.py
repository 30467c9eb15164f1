from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Sequence

from .types import ArmorObject


DEFAULT_COLOR_NAMES = ("blue", "red", "none", "purple")
DEFAULT_NUMBER_NAMES = ("sentry", "1", "2", "3", "4", "5", "outpost", "base")


def _as_mapping(names: Sequence[str]) -> Dict[int, str]:
    return {i: n for i, n in enumerate(names)}


@dataclass(frozen=True)
class LabelNames:
    colors: Dict[int, str] = field(default_factory=lambda: _as_mapping(DEFAULT_COLOR_NAMES))
    numbers: Dict[int, str] = field(default_factory=lambda: _as_mapping(DEFAULT_NUMBER_NAMES))

    def color(self, color_id: int) -> str:
        return self.colors.get(color_id, str(color_id))

    def number(self, number_id: int) -> str:
        return self.numbers.get(number_id, str(number_id))

    def describe(self, obj: ArmorObject) -> str:
        return f"{self.color(obj.color_id)} {self.number(obj.number_id)}"


def load_label_names(metadata_path: str) -> LabelNames:
    """
    Load color / number names from a lightweight YAML-like file:

        colors:
          0: blue
          1: red
        numbers:
          0: sentry
          1: "1"
          ...

    Sections that are missing keep the defaults. No PyYAML dependency.
    """

    sections: Dict[str, Dict[int, str]] = {}
    current = None

    with open(metadata_path, "r", encoding="utf-8") as f:
        for raw in f:
            line = raw.strip()
            if not line or line.startswith("#"):
                continue
            if line in ("colors:", "numbers:"):
                current = line[:-1]
                sections.setdefault(current, {})
                continue
            if current is None:
                continue

            # Parse "id: label"
            if ":" not in line:
                continue
            left, right = line.split(":", 1)
            left = left.strip()
            right = right.strip().strip("'").strip('"')
            if not left.isdigit():
                # Unindented non-numeric key ends the section
                if not raw[:1].isspace():
                    current = None
                continue
            sections[current][int(left)] = right

    defaults = LabelNames()
    return LabelNames(
        colors=sections.get("colors") or defaults.colors,
        numbers=sections.get("numbers") or defaults.numbers,
    )
