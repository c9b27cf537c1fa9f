"""Unit tests for the pixel feature extractor."""

from __future__ import annotations

import numpy as np
import pytest

from local_plastic_recognition.analysis.features import FeatureExtractor, extract_features
from local_plastic_recognition.errors import InvalidInputError

from . import image_factory as factory


def _assert_unit_range(features) -> None:
    for value in (
        features.brightness,
        features.saturation,
        features.contrast,
        features.edge_density,
        features.transparency,
    ):
        assert 0.0 <= value <= 1.0


@pytest.mark.parametrize(
    "image_fn",
    [
        factory.create_blank_image,
        factory.create_noise_image,
        factory.create_stripes_image,
        factory.create_transparent_image,
        factory.create_bottle_image,
    ],
)
def test_features_stay_in_unit_range(image_fn):
    _assert_unit_range(extract_features(image_fn()))


def test_white_opaque_image_reads_as_bright_and_clear():
    features = extract_features(factory.create_blank_image())
    assert features.brightness == pytest.approx(1.0)
    assert features.saturation == pytest.approx(0.0)
    assert features.edge_density == 0.0
    assert features.transparency == pytest.approx(1.0)


def test_black_image_is_dark_and_opaque():
    features = extract_features(factory.create_blank_image(color=(0, 0, 0)))
    assert features.brightness == pytest.approx(0.0)
    assert features.saturation == 0.0
    assert features.transparency == 0.0


def test_alpha_channel_counts_as_transparency():
    features = extract_features(factory.create_transparent_image())
    assert features.transparency == pytest.approx(1.0)


def test_saturated_colour_has_full_saturation():
    features = extract_features(factory.create_blank_image(color=(0, 0, 255)))
    assert features.saturation == pytest.approx(1.0)
    assert features.transparency == 0.0


def test_stripes_produce_dense_edges():
    image = factory.create_stripes_image()
    features = extract_features(image)
    pixels = image.shape[0] * image.shape[1]
    assert features.edge_density == pytest.approx((pixels - 1) / pixels)
    assert features.contrast == features.edge_density


def test_empty_buffer_is_rejected():
    with pytest.raises(InvalidInputError):
        extract_features(np.zeros((0, 0, 3), dtype=np.uint8))


def test_extract_rgba_requires_four_channels():
    with pytest.raises(InvalidInputError):
        FeatureExtractor().extract_rgba(np.zeros((4, 4, 3), dtype=np.uint8))
