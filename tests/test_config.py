import json
import tempfile
import unittest
from pathlib import Path

from yolo_live.config import DetectorConfig, config_from_dict, load_detector_config, parse_providers
from yolo_live.errors import SetupError
from yolo_live.labels import load_labels


class TestDetectorConfig(unittest.TestCase):
    def test_defaults(self) -> None:
        cfg = DetectorConfig()
        self.assertEqual(cfg.conf_threshold, 0.3)
        self.assertEqual(cfg.iou_threshold, 0.5)
        self.assertEqual((cfg.input_mean, cfg.input_std), (0.0, 255.0))
        self.assertIsNone(cfg.providers)
        self.assertEqual(cfg.fallback_providers, ("CPUExecutionProvider",))

    def test_invalid_values(self) -> None:
        with self.assertRaises(ValueError):
            DetectorConfig(conf_threshold=1.0)
        with self.assertRaises(ValueError):
            DetectorConfig(iou_threshold=-0.1)
        with self.assertRaises(ValueError):
            DetectorConfig(input_std=0)
        with self.assertRaises(ValueError):
            DetectorConfig(fallback_providers=())

    def test_from_dict(self) -> None:
        cfg = config_from_dict({"conf_threshold": 0.45, "iou_threshold": 0.6, "providers": "CUDAExecutionProvider"})
        self.assertEqual(cfg.conf_threshold, 0.45)
        self.assertEqual(cfg.iou_threshold, 0.6)
        self.assertEqual(cfg.providers, ("CUDAExecutionProvider",))

    def test_from_dict_rejects_unknown_and_bad_types(self) -> None:
        with self.assertRaises(ValueError):
            config_from_dict({"conf": 0.4})
        with self.assertRaises(ValueError):
            config_from_dict({"conf_threshold": "0.4"})
        with self.assertRaises(ValueError):
            config_from_dict({"conf_threshold": True})
        with self.assertRaises(ValueError):
            config_from_dict({"num_threads": 1.5})
        with self.assertRaises(ValueError):
            config_from_dict({"providers": ["CUDAExecutionProvider", " "]})

    def test_load_from_file(self) -> None:
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "detector.json"
            path.write_text(json.dumps({"conf_threshold": 0.25, "num_threads": 4}), encoding="utf-8")
            cfg = load_detector_config(path)
            self.assertEqual(cfg.conf_threshold, 0.25)
            self.assertEqual(cfg.num_threads, 4)

            bad = Path(tmp) / "bad.json"
            bad.write_text("{not json", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_detector_config(bad)

            not_object = Path(tmp) / "list.json"
            not_object.write_text("[1, 2]", encoding="utf-8")
            with self.assertRaises(ValueError):
                load_detector_config(not_object)

            with self.assertRaises(FileNotFoundError):
                load_detector_config(Path(tmp) / "missing.json")

    def test_parse_providers(self) -> None:
        self.assertIsNone(parse_providers(None))
        self.assertIsNone(parse_providers(" , "))
        self.assertEqual(
            parse_providers("CUDAExecutionProvider, CPUExecutionProvider"),
            ["CUDAExecutionProvider", "CPUExecutionProvider"],
        )


class TestLoadLabels(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.root = Path(self._tmp.name)

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_plain_text_stops_at_first_blank_line(self) -> None:
        path = self.root / "labels.txt"
        path.write_text("person\nbicycle \ncar\n\nignored\n", encoding="utf-8")
        self.assertEqual(load_labels(path), ("person", "bicycle", "car"))

    def test_names_mapping(self) -> None:
        path = self.root / "metadata.yaml"
        path.write_text(
            "# exported\nnames:\n  0: person\n  1: 'traffic light'\n  2: \"car\"\nimgsz: [640, 640]\n",
            encoding="utf-8",
        )
        self.assertEqual(load_labels(path), ("person", "traffic light", "car"))

    def test_names_mapping_must_be_contiguous(self) -> None:
        path = self.root / "metadata.yaml"
        path.write_text("names:\n  0: person\n  2: car\n", encoding="utf-8")
        with self.assertRaises(SetupError):
            load_labels(path)

    def test_missing_and_empty_files(self) -> None:
        with self.assertRaises(SetupError):
            load_labels(self.root / "missing.txt")
        empty = self.root / "empty.txt"
        empty.write_text("\n", encoding="utf-8")
        with self.assertRaises(SetupError):
            load_labels(empty)


if __name__ == "__main__":
    unittest.main()
