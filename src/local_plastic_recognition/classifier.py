"""High level API that runs every signal source and fuses the results."""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from .analysis.features import FeatureExtractor
from .analysis.profiler import ImageProfiler
from .config import Settings, get_settings
from .fusion import FusionEngine
from .image_utils import ImageInput, ensure_color, load_image, to_rgba
from .materials import build_detected_object
from .signals.filename import FilenameMatcher
from .signals.learned_model import LearnedModelAdapter, get_default_adapter
from .types import ClassificationResult, DetectedObject, FilenameMatch, ModelSignal

logger = logging.getLogger(__name__)


class PlasticClassifier:
    """Classifies the plastic material shown in an image.

    Only structural input problems (:class:`InvalidInputError`,
    :class:`DecodeFailureError`) propagate. Failures inside the optional
    filename and learned-model signals are logged and treated as absent
    evidence.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        extractor: Optional[FeatureExtractor] = None,
        profiler: Optional[ImageProfiler] = None,
        filename_matcher: Optional[FilenameMatcher] = None,
        model_adapter: Optional[LearnedModelAdapter] = None,
        fusion: Optional[FusionEngine] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.extractor = extractor or FeatureExtractor()
        self.profiler = profiler or ImageProfiler(self.settings)
        self.filename_matcher = filename_matcher or FilenameMatcher.seeded(self.settings.filename_jitter_seed)
        self.model_adapter = model_adapter or get_default_adapter(self.settings)
        self.fusion = fusion or FusionEngine(self.settings)

    def classify(self, image_input: ImageInput, filename: Optional[str] = None) -> ClassificationResult:
        """Return the best-guess material for the provided image input."""

        image = load_image(image_input, keep_alpha=True, max_kb=self.settings.max_image_kb)
        return self.classify_array(image, filename)

    def classify_array(self, image: np.ndarray, filename: Optional[str] = None) -> ClassificationResult:
        """Classify an already-loaded BGR/BGRA ndarray."""

        features = self.extractor.extract_rgba(to_rgba(image))
        analysis = self.profiler.profile(image)
        filename_match = self._filename_signal(filename)
        model_signal = self._model_signal(image)

        result = self.fusion.fuse(features, analysis, filename_match, model_signal)
        logger.debug(
            "Classified as %s (%.2f) via %s",
            result.material.value,
            result.confidence,
            result.strategy.value,
        )
        return result

    def detect_object(self, image_input: ImageInput, filename: Optional[str] = None) -> DetectedObject:
        """Classify and attach the static material metadata."""

        return build_detected_object(self.classify(image_input, filename), filename)

    def _filename_signal(self, filename: Optional[str]) -> Optional[FilenameMatch]:
        if not filename:
            return None
        try:
            return self.filename_matcher.match(filename)
        except Exception as exc:  # noqa: BLE001 - optional signal
            logger.warning("Filename matching failed for %r: %s", filename, exc)
            return None

    def _model_signal(self, image: np.ndarray) -> Optional[ModelSignal]:
        try:
            return self.model_adapter.signal(ensure_color(image))
        except Exception as exc:  # noqa: BLE001 - optional signal
            logger.warning("Learned model signal failed: %s", exc)
            return None


_default_classifier: Optional[PlasticClassifier] = None


def get_default_classifier() -> PlasticClassifier:
    global _default_classifier
    if _default_classifier is None:
        _default_classifier = PlasticClassifier()
    return _default_classifier


def classify(image_input: ImageInput, filename: Optional[str] = None) -> ClassificationResult:
    """Module-level shortcut for :meth:`PlasticClassifier.classify`."""

    return get_default_classifier().classify(image_input, filename)
