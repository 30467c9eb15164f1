import unittest
from typing import Sequence

import numpy as np

from armor_kit.layout import OutputLayout
from armor_kit.postprocess import ArmorDecoder, ArmorPostConfig


def make_row(
    pts: Sequence[float],
    conf: float,
    color_id: int,
    number_id: int,
    layout: OutputLayout = OutputLayout(),
) -> np.ndarray:
    row = np.zeros(layout.num_columns, dtype=np.float32)
    row[: layout.points_end] = pts
    row[layout.conf_index] = conf
    row[layout.color_start + color_id] = 0.9
    row[layout.number_start + number_id] = 0.8
    return row


SQUARE = [10, 20, 10, 40, 30, 40, 30, 20]


class TestOutputLayout(unittest.TestCase):
    def test_default_offsets(self) -> None:
        lay = OutputLayout()
        self.assertEqual(lay.conf_index, 8)
        self.assertEqual((lay.color_start, lay.color_end), (9, 13))
        self.assertEqual((lay.number_start, lay.number_end), (13, 21))
        self.assertEqual(lay.num_columns, 21)

    def test_custom_counts(self) -> None:
        lay = OutputLayout(num_colors=2, num_classes=9)
        self.assertEqual(lay.num_columns, 9 + 2 + 9)


class TestArmorDecoder(unittest.TestCase):
    def test_threshold_is_inclusive(self) -> None:
        below = np.nextafter(np.float32(0.5), np.float32(0.0))
        p = np.stack(
            [
                make_row(SQUARE, 0.5, 0, 0),
                make_row(SQUARE, below, 1, 1),
            ]
        )
        dec = ArmorDecoder(ArmorPostConfig(conf_threshold=0.5))
        props = dec.decode(p, np.eye(3))
        self.assertEqual(len(props), 1)
        self.assertEqual(props.objects[0].color_id, 0)
        self.assertAlmostEqual(props.objects[0].prob, 0.5)

    def test_threshold_inclusive_for_inexact_float32_value(self) -> None:
        # 0.7 has no exact float32 form; a row equal to it in float32 is kept
        below = np.nextafter(np.float32(0.7), np.float32(0.0))
        p = np.stack(
            [
                make_row(SQUARE, 0.7, 0, 0),
                make_row(SQUARE, below, 1, 1),
            ]
        )
        dec = ArmorDecoder(ArmorPostConfig(conf_threshold=0.7))
        props = dec.decode(p, np.eye(3))
        self.assertEqual(len(props), 1)
        self.assertEqual(props.objects[0].color_id, 0)
        self.assertEqual(len(dec.process(p, np.eye(3))), 1)

    def test_labels_from_argmax(self) -> None:
        p = make_row(SQUARE, 0.9, 3, 6)[None, :]
        props = ArmorDecoder(ArmorPostConfig()).decode(p, np.eye(3))
        self.assertEqual(props.objects[0].color_id, 3)
        self.assertEqual(props.objects[0].number_id, 6)

    def test_argmax_tie_picks_first(self) -> None:
        lay = OutputLayout()
        row = make_row(SQUARE, 0.9, 2, 1)
        row[lay.color_start + 1] = row[lay.color_start + 2]
        props = ArmorDecoder(ArmorPostConfig()).decode(row[None, :], np.eye(3))
        self.assertEqual(props.objects[0].color_id, 1)

    def test_points_mapped_to_source(self) -> None:
        # scale 0.5 with (4, 6) half padding
        s, dw, dh = 0.5, 4.0, 6.0
        transform = np.array([[1 / s, 0, -dw / s], [0, 1 / s, -dh / s], [0, 0, 1]])
        p = make_row(SQUARE, 0.9, 0, 0)[None, :]
        obj = ArmorDecoder(ArmorPostConfig()).decode(p, transform).objects[0]

        expected = (np.array(SQUARE, dtype=np.float64).reshape(4, 2) - [dw, dh]) / s
        self.assertEqual(obj.pts.shape, (4, 2))
        self.assertTrue(np.allclose(obj.pts, expected))
        self.assertEqual(obj.box, (12.0, 28.0, 52.0, 68.0))

    def test_box_encloses_rotated_quad(self) -> None:
        diamond = [20, 0, 40, 20, 20, 40, 0, 20]
        props = ArmorDecoder(ArmorPostConfig()).decode(make_row(diamond, 0.9, 0, 0)[None, :], np.eye(3))
        self.assertEqual(props.objects[0].as_xyxy(), (0.0, 0.0, 40.0, 40.0))
        self.assertTrue(np.allclose(props.boxes[0], [0, 0, 40, 40]))
        # Point order is kept
        self.assertTrue(np.allclose(props.objects[0].pts[0], [20, 0]))

    def test_row_order_preserved(self) -> None:
        p = np.stack(
            [
                make_row(SQUARE, 0.4, 0, 0),
                make_row(SQUARE, 0.1, 1, 0),
                make_row(SQUARE, 0.95, 2, 0),
                make_row(SQUARE, 0.6, 3, 0),
            ]
        )
        props = ArmorDecoder(ArmorPostConfig(conf_threshold=0.3)).decode(p[None, ...], np.eye(3))
        self.assertEqual([o.color_id for o in props.objects], [0, 2, 3])
        self.assertTrue(np.allclose(props.scores, [0.4, 0.95, 0.6]))
        self.assertEqual(props.boxes.shape, (3, 4))

    def test_nothing_above_threshold(self) -> None:
        p = make_row(SQUARE, 0.1, 0, 0)[None, :]
        props = ArmorDecoder(ArmorPostConfig(conf_threshold=0.5)).decode(p, np.eye(3))
        self.assertEqual(len(props), 0)
        self.assertEqual(props.boxes.shape, (0, 4))
        self.assertEqual(ArmorDecoder(ArmorPostConfig(conf_threshold=0.5)).process(p, np.eye(3)), [])

    def test_custom_class_counts(self) -> None:
        lay = OutputLayout(num_colors=2, num_classes=3)
        p = make_row(SQUARE, 0.9, 1, 2, layout=lay)[None, :]
        obj = ArmorDecoder(ArmorPostConfig(num_colors=2, num_classes=3)).decode(p, np.eye(3)).objects[0]
        self.assertEqual((obj.color_id, obj.number_id), (1, 2))

    def test_column_mismatch_rejected(self) -> None:
        p = np.zeros((3, 20), dtype=np.float32)
        with self.assertRaises(ValueError):
            ArmorDecoder(ArmorPostConfig()).decode(p, np.eye(3))

    def test_batch_rejected(self) -> None:
        p = np.zeros((2, 3, 21), dtype=np.float32)
        with self.assertRaises(ValueError):
            ArmorDecoder(ArmorPostConfig()).decode(p, np.eye(3))

    def test_process_applies_nms_and_cap(self) -> None:
        shifted = [v + 1 for v in SQUARE]
        far = [v + 200 for v in SQUARE]
        p = np.stack(
            [
                make_row(SQUARE, 0.8, 0, 0),
                make_row(shifted, 0.9, 1, 0),
                make_row(far, 0.7, 2, 0),
            ]
        )
        dec = ArmorDecoder(ArmorPostConfig(iou_threshold=0.5, max_detections=5))
        self.assertEqual([o.color_id for o in dec.process(p, np.eye(3))], [1, 2])

        capped = ArmorDecoder(ArmorPostConfig(iou_threshold=0.5, max_detections=1))
        self.assertEqual([o.color_id for o in capped.process(p, np.eye(3))], [1])


if __name__ == "__main__":
    unittest.main()
