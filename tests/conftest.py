from __future__ import annotations

import pytest

from local_plastic_recognition.classifier import PlasticClassifier
from local_plastic_recognition.config import Settings
from local_plastic_recognition.signals.learned_model import LearnedModelAdapter, reset_default_adapter


@pytest.fixture
def settings() -> Settings:
    return Settings()


@pytest.fixture
def classifier(settings: Settings) -> PlasticClassifier:
    """Heuristic-only classifier: the learned model is disabled."""
    return PlasticClassifier(settings, model_adapter=LearnedModelAdapter())


@pytest.fixture(autouse=True)
def _reset_model_singleton():
    yield
    reset_default_adapter()
