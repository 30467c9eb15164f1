import tempfile
import unittest
from pathlib import Path

import numpy as np

from armor_kit.metadata import LabelNames, load_label_names
from armor_kit.types import ArmorObject


def _armor(color_id: int, number_id: int) -> ArmorObject:
    pts = np.array([[0, 0], [0, 10], [20, 10], [20, 0]], dtype=np.float32)
    return ArmorObject(pts=pts, box=(0.0, 0.0, 20.0, 10.0), color_id=color_id, number_id=number_id, prob=0.9)


class TestLabelNames(unittest.TestCase):
    def _write(self, text: str) -> str:
        tmpdir = tempfile.TemporaryDirectory()
        self.addCleanup(tmpdir.cleanup)
        path = Path(tmpdir.name) / "labels.yaml"
        path.write_text(text, encoding="utf-8")
        return str(path)

    def test_defaults(self) -> None:
        names = LabelNames()
        self.assertEqual(names.describe(_armor(1, 3)), "red 3")
        self.assertEqual(names.describe(_armor(0, 7)), "blue base")
        self.assertEqual(names.number(42), "42")

    def test_load_both_sections(self) -> None:
        path = self._write(
            "# armor labels\n"
            "colors:\n"
            "  0: blue\n"
            "  1: 'red'\n"
            "numbers:\n"
            "  0: \"guard\"\n"
            "  1: hero\n"
        )
        names = load_label_names(path)
        self.assertEqual(names.colors, {0: "blue", 1: "red"})
        self.assertEqual(names.numbers, {0: "guard", 1: "hero"})
        self.assertEqual(names.describe(_armor(1, 1)), "red hero")

    def test_missing_section_keeps_defaults(self) -> None:
        path = self._write("colors:\n  0: cyan\nmodel: armor\n  5: ignored\n")
        names = load_label_names(path)
        self.assertEqual(names.colors, {0: "cyan"})
        self.assertEqual(names.number(6), "outpost")


class TestArmorObject(unittest.TestCase):
    def test_geometry_helpers(self) -> None:
        a = _armor(0, 0)
        self.assertEqual(a.as_xyxy(), (0.0, 0.0, 20.0, 10.0))
        self.assertEqual((a.width, a.height), (20.0, 10.0))
        self.assertEqual(a.center, (10.0, 5.0))

    def test_points_are_read_only(self) -> None:
        source = np.array([[0, 0], [0, 10], [20, 10], [20, 0]], dtype=np.float32)
        a = ArmorObject(pts=source, box=(0.0, 0.0, 20.0, 10.0), color_id=0, number_id=0, prob=0.9)
        with self.assertRaises(ValueError):
            a.pts[0, 0] = 5.0
        # The caller's array is not frozen or shared
        source[0, 0] = 1.0
        self.assertEqual(float(a.pts[0, 0]), 0.0)


if __name__ == "__main__":
    unittest.main()
