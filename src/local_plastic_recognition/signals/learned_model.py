"""Optional pretrained classifier used as one more weighted vote.

The model is an ultralytics classification checkpoint whose class names
are material labels ("PET", "HDPE", ..., "non_plastic"). It is loaded at
most once per adapter, and every load or inference problem turns into
"no signal" so classification can carry on with visual evidence only.

Inference runs on one worker thread. ``timeout`` is counted from the moment
a prediction starts, so waiting behind other calls does not eat into it;
the wait itself is bounded separately by ``queue_timeout``.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Tuple

import numpy as np

from ..config import Settings, get_settings
from ..errors import ModelUnavailableError
from ..types import MaterialType, ModelSignal

try:
    from ultralytics import YOLO
    YOLO_AVAILABLE = True
except ImportError:
    YOLO_AVAILABLE = False

logger = logging.getLogger(__name__)

ModelLoader = Callable[[str], Any]


def load_yolo_classifier(model_path: str) -> Any:
    """Default loader: an ultralytics YOLO classification model."""

    if not YOLO_AVAILABLE:
        raise ModelUnavailableError(
            "ultralytics is not installed. Install it with: pip install 'local-plastic-recognition[model]'"
        )
    if not Path(model_path).exists():
        raise ModelUnavailableError(f"Model file not found: {model_path}")
    return YOLO(model_path, task="classify")


class LearnedModelAdapter:
    """Lazily loads the model and maps its top prediction onto a material."""

    def __init__(
        self,
        model_path: Optional[str] = None,
        device: str = "cpu",
        timeout: float = 5.0,
        queue_timeout: float = 30.0,
        loader: Optional[ModelLoader] = None,
        model: Any = None,
    ) -> None:
        self.model_path = model_path
        self.device = device
        self.timeout = timeout
        self.queue_timeout = queue_timeout
        self._loader = loader or load_yolo_classifier
        self._model = model
        self._load_error: Optional[ModelUnavailableError] = None
        self._lock = threading.Lock()
        self._executor: Optional[ThreadPoolExecutor] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "LearnedModelAdapter":
        return cls(
            model_path=settings.model_path,
            device=settings.model_device,
            timeout=settings.model_timeout,
            queue_timeout=settings.model_queue_timeout,
        )

    @property
    def enabled(self) -> bool:
        return self._model is not None or self.model_path is not None

    @property
    def loaded(self) -> bool:
        return self._model is not None

    def signal(self, image: np.ndarray) -> Optional[ModelSignal]:
        """Return the model's vote for ``image`` (BGR ndarray), or None."""

        if not self.enabled:
            return None
        try:
            model = self._get_model()
            started = threading.Event()
            future = self._get_executor().submit(self._run, started, model, image)
            if not started.wait(self.queue_timeout):
                future.cancel()
                logger.warning(
                    "Learned model was busy for more than %.1fs; ignoring model signal", self.queue_timeout
                )
                return None
            label, confidence = future.result(timeout=self.timeout)
        except FutureTimeoutError:
            logger.warning("Learned model inference exceeded %.1fs; ignoring model signal", self.timeout)
            return None
        except ModelUnavailableError as exc:
            logger.warning("Learned model unavailable: %s", exc)
            return None
        except Exception as exc:  # noqa: BLE001 - any inference failure means "no signal"
            logger.warning("Learned model inference failed: %s", exc)
            return None

        material = MaterialType.from_label(label)
        if material is None:
            logger.debug("Model label %r does not map to a material", label)
            return None
        return ModelSignal(material=material, confidence=float(max(0.0, min(1.0, confidence))), label=label)

    def shutdown(self) -> None:
        with self._lock:
            if self._executor is not None:
                self._executor.shutdown(wait=False)
                self._executor = None

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _get_model(self) -> Any:
        if self._model is not None:
            return self._model
        with self._lock:
            # Another thread may have finished loading while we waited.
            if self._model is not None:
                return self._model
            if self._load_error is not None:
                raise self._load_error
            try:
                self._model = self._loader(str(self.model_path))
            except ModelUnavailableError as exc:
                self._load_error = exc
                raise
            except Exception as exc:  # noqa: BLE001 - loader errors are reported as unavailability
                self._load_error = ModelUnavailableError(f"Failed to load {self.model_path}: {exc}")
                raise self._load_error from exc
            logger.info("Loaded learned model from %s", self.model_path)
            return self._model

    def _get_executor(self) -> ThreadPoolExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="plastic-model")
            return self._executor

    def _run(self, started: threading.Event, model: Any, image: np.ndarray) -> Tuple[str, float]:
        started.set()
        return self._predict(model, image)

    def _predict(self, model: Any, image: np.ndarray) -> Tuple[str, float]:
        results = model(image, device=self.device, verbose=False)
        if not results:
            raise ModelUnavailableError("Model returned no results")
        result = results[0]
        if result.probs is None:
            raise ModelUnavailableError("Model is not a classification model")
        top1 = int(result.probs.top1)
        return str(result.names[top1]), float(result.probs.top1conf)


AdapterKey = Tuple[Optional[str], str, float, float]

_default_adapters: Dict[AdapterKey, LearnedModelAdapter] = {}
_default_lock = threading.Lock()


def adapter_key(settings: Settings) -> AdapterKey:
    return (settings.model_path, settings.model_device, settings.model_timeout, settings.model_queue_timeout)


def get_default_adapter(settings: Optional[Settings] = None) -> LearnedModelAdapter:
    """Process-wide adapter for the model configuration in ``settings``.

    Classifiers that share a model configuration share one adapter, so each
    model file is loaded at most once per process.
    """

    settings = settings or get_settings()
    key = adapter_key(settings)
    with _default_lock:
        adapter = _default_adapters.get(key)
        if adapter is None:
            adapter = LearnedModelAdapter.from_settings(settings)
            _default_adapters[key] = adapter
        return adapter


def reset_default_adapter() -> None:
    """Drop every process-wide adapter (used by tests and reconfiguration)."""

    with _default_lock:
        for adapter in _default_adapters.values():
            adapter.shutdown()
        _default_adapters.clear()
