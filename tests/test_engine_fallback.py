import tempfile
import unittest
from pathlib import Path

import numpy as np

from yolo_live.backends.onnxruntime_backend import OnnxRuntimeBackendConfig, OnnxRuntimeEngine, _static_shape, open_engine
from yolo_live.errors import SetupError


class FlakyFactory:
    """Fails for the first `failures` attempts, then returns a marker engine."""

    def __init__(self, failures: int):
        self.failures = failures
        self.configs = []

    def __call__(self, path: Path, cfg: OnnxRuntimeBackendConfig):
        self.configs.append(cfg)
        if len(self.configs) <= self.failures:
            raise RuntimeError("delegate not supported")
        return ("engine", path, cfg)


class TestOpenEngine(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = tempfile.TemporaryDirectory()
        self.model = Path(self._tmp.name) / "model.onnx"
        self.model.write_bytes(b"stub")

    def tearDown(self) -> None:
        self._tmp.cleanup()

    def test_preferred_providers_used_when_they_work(self) -> None:
        factory = FlakyFactory(failures=0)
        engine = open_engine(self.model, providers=["CUDAExecutionProvider"], factory=factory)
        self.assertEqual(engine[0], "engine")
        self.assertEqual(len(factory.configs), 1)
        self.assertEqual(list(factory.configs[0].providers), ["CUDAExecutionProvider"])

    def test_falls_back_to_cpu(self) -> None:
        factory = FlakyFactory(failures=1)
        with self.assertLogs("yolo_live.backends.onnxruntime_backend", level="WARNING"):
            engine = open_engine(self.model, providers=["CUDAExecutionProvider"], num_threads=2, factory=factory)
        self.assertEqual(engine[0], "engine")
        self.assertEqual(len(factory.configs), 2)
        fallback = factory.configs[1]
        self.assertEqual(tuple(fallback.providers), ("CPUExecutionProvider",))
        self.assertEqual(fallback.num_threads, 2)

    def test_every_mode_failing_is_setup_error(self) -> None:
        factory = FlakyFactory(failures=2)
        with self.assertRaises(SetupError):
            open_engine(self.model, providers=["CUDAExecutionProvider"], factory=factory)
        self.assertEqual(len(factory.configs), 2)

    def test_missing_model_is_setup_error(self) -> None:
        factory = FlakyFactory(failures=0)
        with self.assertRaises(SetupError):
            open_engine(Path(self._tmp.name) / "missing.onnx", factory=factory)
        self.assertEqual(factory.configs, [])

    def test_shape_errors_are_not_retried(self) -> None:
        configs = []

        def factory(path, cfg):
            configs.append(cfg)
            raise SetupError("dynamic shape")

        with self.assertRaises(SetupError):
            open_engine(self.model, factory=factory)
        self.assertEqual(len(configs), 1)


class TestClosedEngine(unittest.TestCase):
    def test_infer_after_close_raises(self) -> None:
        # Skip __init__: no ONNX model is needed to check the closed state.
        engine = OnnxRuntimeEngine.__new__(OnnxRuntimeEngine)
        engine.model_path = Path("model.onnx")
        engine.session = object()
        engine.close()
        with self.assertRaisesRegex(RuntimeError, "closed"):
            engine.infer(np.zeros((1, 8, 8, 3), dtype=np.float32))


class TestStaticShape(unittest.TestCase):
    def test_symbolic_batch_reads_as_one(self) -> None:
        self.assertEqual(_static_shape(["batch", 84, 8400], "Output"), (1, 84, 8400))
        self.assertEqual(_static_shape([None, 640, 640, 3], "Input"), (1, 640, 640, 3))

    def test_other_symbolic_dims_rejected(self) -> None:
        with self.assertRaises(SetupError):
            _static_shape([1, 84, "anchors"], "Output")


if __name__ == "__main__":
    unittest.main()
