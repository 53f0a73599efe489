from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Sequence, Tuple, Union

import numpy as np

from ..config import CPU_PROVIDER
from ..errors import SetupError


PathLike = Union[str, Path]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OnnxRuntimeBackendConfig:
    """
    Configuration for ONNX Runtime inference.

    - providers: ORT execution providers (e.g., ["CUDAExecutionProvider", "CPUExecutionProvider"])
    - num_threads: intra-op threads; 0 keeps the ORT default
    """

    providers: Optional[Sequence[str]] = None
    num_threads: int = 0


def _static_shape(shape: Sequence[object], what: str) -> Tuple[int, ...]:
    # Exports often leave the batch dim symbolic ("batch", None); we always run batch 1.
    dims = []
    for i, d in enumerate(shape):
        if isinstance(d, int) and d > 0:
            dims.append(d)
        elif i == 0:
            dims.append(1)
        else:
            raise SetupError(f"{what} shape {list(shape)} has a dynamic dimension at axis {i}; a fixed shape is required.")
    return tuple(dims)


class OnnxRuntimeEngine:
    """
    Minimal ONNX Runtime engine.

    Exposes the declared input/output shapes so the pipeline can size its
    preprocessing and decoding once, and returns the first output as a NumPy
    array.
    """

    def __init__(self, model_path: PathLike, cfg: OnnxRuntimeBackendConfig = OnnxRuntimeBackendConfig()):
        try:
            import onnxruntime as ort  # type: ignore
        except Exception as e:  # pragma: no cover
            raise ImportError(
                "onnxruntime is required for the ONNX backend. Install it with `pip install onnxruntime` "
                "(or `onnxruntime-gpu`)."
            ) from e

        self._ort = ort
        self.model_path = Path(model_path)
        if not self.model_path.exists():
            raise FileNotFoundError(str(self.model_path))

        sess_opts = ort.SessionOptions()
        if cfg.num_threads:
            sess_opts.intra_op_num_threads = int(cfg.num_threads)
        providers = list(cfg.providers) if cfg.providers is not None else None
        self.session = ort.InferenceSession(str(self.model_path), sess_options=sess_opts, providers=providers)

        inp = self.session.get_inputs()[0]
        out = self.session.get_outputs()[0]
        self.input_name = inp.name
        self.output_name = out.name
        self._input_shape = _static_shape(inp.shape, "Input")
        self._output_shape = _static_shape(out.shape, "Output")

    @property
    def input_shape(self) -> Tuple[int, ...]:
        return self._input_shape

    @property
    def output_shape(self) -> Tuple[int, ...]:
        return self._output_shape

    @property
    def providers_in_use(self) -> Sequence[str]:
        # ORT returns providers in priority order for this session.
        return tuple(self.session.get_providers())

    def infer(self, blob: np.ndarray) -> np.ndarray:
        if self.session is None:
            raise RuntimeError(f"Engine for {self.model_path.name} has been closed.")
        outputs = self.session.run([self.output_name], {self.input_name: blob})
        return outputs[0]

    def close(self) -> None:
        self.session = None


EngineFactory = Callable[[Path, OnnxRuntimeBackendConfig], object]


def open_engine(
    model_path: PathLike,
    *,
    providers: Optional[Sequence[str]] = None,
    fallback_providers: Sequence[str] = (CPU_PROVIDER,),
    num_threads: int = 2,
    factory: EngineFactory = OnnxRuntimeEngine,
):
    """
    Create an engine on the preferred providers, falling back to a generic
    execution mode if that fails.

    The preferred attempt uses `providers` (ORT default if None). On failure the
    error is logged and the engine is rebuilt on `fallback_providers` with
    `num_threads` intra-op threads. If the fallback also fails, or the model file
    is missing, a `SetupError` is raised.
    """

    path = Path(model_path)
    if not path.exists():
        raise SetupError(f"Model file not found: {path}")

    try:
        engine = factory(path, OnnxRuntimeBackendConfig(providers=providers))
        logger.info("Loaded %s with providers %s", path.name, getattr(engine, "providers_in_use", providers))
        return engine
    except SetupError:
        raise
    except Exception as exc:
        logger.warning("Engine failed on providers %s: %s", providers, exc)

    logger.info("Falling back to %s (%d threads)", list(fallback_providers), num_threads)
    try:
        return factory(path, OnnxRuntimeBackendConfig(providers=fallback_providers, num_threads=num_threads))
    except SetupError:
        raise
    except Exception as exc:
        raise SetupError(f"Could not load {path} on any execution provider: {exc}") from exc
