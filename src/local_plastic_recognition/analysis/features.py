"""Pixel-level visual statistics used by the additive fusion path."""

from __future__ import annotations

import logging

import numpy as np

from ..errors import InvalidInputError
from ..image_utils import ImageInput, load_image, to_rgba
from ..types import VisualFeatures

logger = logging.getLogger(__name__)


class FeatureExtractor:
    """Reduce an RGBA pixel buffer to brightness, saturation, edges and transparency.

    Transparency counts pixels whose alpha is below ``alpha_threshold``, plus
    near-white pixels (any channel above ``white_threshold``) when the
    image's overall saturation is below ``low_saturation``. The overall
    saturation is computed in a first pass over the whole buffer, so the
    result does not depend on pixel order.

    Edge density compares each pixel with the previous one in row-major
    order and counts summed channel deltas above ``edge_threshold``. The
    same ratio is reported as ``contrast``.
    """

    def __init__(
        self,
        edge_threshold: int = 40,
        alpha_threshold: int = 200,
        white_threshold: int = 240,
        low_saturation: float = 0.1,
    ) -> None:
        self.edge_threshold = edge_threshold
        self.alpha_threshold = alpha_threshold
        self.white_threshold = white_threshold
        self.low_saturation = low_saturation

    def extract(self, image_input: ImageInput) -> VisualFeatures:
        image = load_image(image_input, keep_alpha=True)
        return self.extract_rgba(to_rgba(image))

    def extract_rgba(self, rgba: np.ndarray) -> VisualFeatures:
        """Compute features from an H x W x 4 RGBA uint8 buffer."""

        if rgba.ndim != 3 or rgba.shape[2] != 4:
            raise InvalidInputError(f"Expected an RGBA buffer, got shape {rgba.shape}")
        pixels = rgba.shape[0] * rgba.shape[1]
        if pixels == 0:
            raise InvalidInputError("Pixel buffer is empty")

        flat = rgba.reshape(-1, 4).astype(np.int32)
        rgb = flat[:, :3]
        alpha = flat[:, 3]
        channel_max = rgb.max(axis=1)
        channel_min = rgb.min(axis=1)

        brightness = float(rgb.sum(axis=1).mean() / 3.0 / 255.0)
        with np.errstate(divide="ignore", invalid="ignore"):
            per_pixel_saturation = np.where(
                channel_max == 0, 0.0, (channel_max - channel_min) / np.maximum(channel_max, 1)
            )
        saturation = float(per_pixel_saturation.mean())

        transparent = alpha < self.alpha_threshold
        if saturation < self.low_saturation:
            transparent |= channel_max > self.white_threshold
        transparency = float(np.count_nonzero(transparent)) / pixels

        deltas = np.abs(np.diff(rgb, axis=0)).sum(axis=1)
        edge_density = float(np.count_nonzero(deltas > self.edge_threshold)) / pixels

        features = VisualFeatures(
            brightness=_unit(brightness),
            saturation=_unit(saturation),
            contrast=_unit(edge_density),
            edge_density=_unit(edge_density),
            transparency=_unit(transparency),
        )
        logger.debug("Extracted visual features: %s", features)
        return features


def _unit(value: float) -> float:
    return float(max(0.0, min(1.0, value)))


_default_extractor = FeatureExtractor()


def extract_features(image_input: ImageInput) -> VisualFeatures:
    """Module-level shortcut for :meth:`FeatureExtractor.extract`."""

    return _default_extractor.extract(image_input)
