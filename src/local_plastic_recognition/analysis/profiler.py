"""Colour, texture and coarse shape profiling of a downsampled image.

Texture and shape are threshold heuristics over global statistics. They do
not locate or measure any object outline; a "bottle" here only means the
image statistics resemble those of typical bottle photos.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Sequence, Tuple

import cv2
import numpy as np

from ..config import Settings, get_settings
from ..errors import DecodeFailureError, DegradedAnalysisError, InvalidInputError
from ..image_utils import ImageInput, load_image, resize_square, to_rgba
from ..types import RGB, DominantColor, ImageAnalysis, Shape, Texture

logger = logging.getLogger(__name__)

QUANT_STEP = 32
TOP_COLORS = 5
DIAGONAL_EDGE_THRESHOLD = 50

LOW_VARIANCE = 0.03
HIGH_VARIANCE = 0.15
VERY_BRIGHT = 0.8
ACHROMATIC = 0.1

DEFAULT_ANALYSIS = ImageAnalysis(
    dominant_colors=(),
    brightness=0.5,
    saturation=0.5,
    transparency=0.0,
    texture=Texture.MATTE,
    shape=Shape.IRREGULAR,
    edge_ratio=0.0,
    color_variance=0.0,
    estimated_objects=(),
    degraded=True,
)

# Typical colours of common plastic items and what they usually are.
COLOR_SIGNATURES: Sequence[Tuple[str, Sequence[RGB], Sequence[str]]] = (
    ("white/clear", ((255, 255, 255), (245, 245, 245), (224, 224, 224)), ("water bottle", "food container", "plastic bag")),
    ("green", ((0, 255, 0), (0, 128, 0), (144, 238, 144)), ("soda bottle", "vegetable tray")),
    ("blue", ((0, 0, 255), (30, 144, 255), (135, 206, 235)), ("mineral water bottle", "bottle cap", "water jug")),
    ("red", ((255, 0, 0), (220, 20, 60), (255, 99, 71)), ("bottle cap", "food container", "straw")),
    ("yellow/orange", ((255, 255, 0), (255, 215, 0), (255, 165, 0)), ("juice bottle", "cooking oil bottle", "snack wrapper")),
    ("black", ((0, 0, 0), (51, 51, 51), (102, 102, 102)), ("plastic bag", "electronics casing", "pipe")),
    ("brown", ((139, 69, 19), (160, 82, 45), (210, 105, 30)), ("tea bottle", "coffee container")),
)
SIGNATURE_DISTANCE = 100.0
MAX_ESTIMATED_OBJECTS = 5


class ImageProfiler:
    """Summarise an image as dominant colours, texture and a coarse shape."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    def profile(self, image_input: ImageInput) -> ImageAnalysis:
        """Return an :class:`ImageAnalysis`, or :data:`DEFAULT_ANALYSIS` on failure."""

        try:
            image = load_image(image_input, keep_alpha=True)
            return self.profile_array(image)
        except (DegradedAnalysisError, InvalidInputError, DecodeFailureError, cv2.error) as exc:
            logger.warning("Image profiling degraded to defaults: %s", exc)
            return DEFAULT_ANALYSIS

    def profile_array(self, image: np.ndarray) -> ImageAnalysis:
        height, width = image.shape[:2]
        if height < 2 or width < 2:
            raise DegradedAnalysisError(f"Image too small to sample: {width}x{height}")
        size = self.settings.analysis_size
        rgba = to_rgba(resize_square(image, size)).astype(np.int32)
        rgb = rgba[:, :, :3]
        alpha = rgba[:, :, 3]
        total = float(size * size)

        channel_max = rgb.max(axis=2)
        channel_min = rgb.min(axis=2)
        gray = rgb.sum(axis=2) / 3.0 / 255.0
        pixel_saturation = np.where(
            channel_max == 0, 0.0, (channel_max - channel_min) / np.maximum(channel_max, 1)
        )
        brightness = float(gray.mean())
        saturation = float(pixel_saturation.mean())
        color_variance = float(gray.std())

        clear = (alpha < 200) | ((channel_max > 240) & (pixel_saturation < ACHROMATIC))
        transparency = float(np.count_nonzero(clear)) / total

        diagonal = np.abs(rgb[1:, 1:] - rgb[:-1, :-1]).sum(axis=2)
        edge_ratio = float(np.count_nonzero(diagonal > DIAGONAL_EDGE_THRESHOLD)) / total

        dominant = dominant_colors(rgb, alpha)
        texture = classify_texture(color_variance, brightness, saturation)
        shape = classify_shape(edge_ratio, color_variance, dominant, width / float(height))

        analysis = ImageAnalysis(
            dominant_colors=dominant,
            brightness=brightness,
            saturation=saturation,
            transparency=transparency,
            texture=texture,
            shape=shape,
            edge_ratio=edge_ratio,
            color_variance=color_variance,
            estimated_objects=estimate_objects(dominant),
        )
        logger.debug(
            "Profiled image: brightness=%.3f saturation=%.3f variance=%.3f edges=%.3f texture=%s shape=%s",
            brightness,
            saturation,
            color_variance,
            edge_ratio,
            texture.value,
            shape.value,
        )
        return analysis


def dominant_colors(rgb: np.ndarray, alpha: np.ndarray) -> Tuple[DominantColor, ...]:
    """Top quantized colour buckets among visible pixels, largest first."""

    pixels = rgb.reshape(-1, 3)
    total = float(pixels.shape[0])
    visible = alpha.reshape(-1) >= 128
    pixels = pixels[visible]
    if pixels.shape[0] == 0:
        return ()

    quantized = np.clip(np.floor(pixels / QUANT_STEP + 0.5) * QUANT_STEP, 0, 255).astype(np.int64)
    keys = (quantized[:, 0] << 16) | (quantized[:, 1] << 8) | quantized[:, 2]
    buckets, inverse, counts = np.unique(keys, return_inverse=True, return_counts=True)
    inverse = inverse.reshape(-1)
    sums = np.stack(
        [np.bincount(inverse, weights=pixels[:, channel], minlength=len(buckets)) for channel in range(3)],
        axis=1,
    )

    order = np.argsort(-counts, kind="stable")[:TOP_COLORS]
    colors: List[DominantColor] = []
    for index in order:
        mean = sums[index] / counts[index]
        colors.append(
            DominantColor(
                rgb=(int(round(mean[0])), int(round(mean[1])), int(round(mean[2]))),
                percentage=float(counts[index]) / total,
            )
        )
    return tuple(colors)


def classify_texture(variance: float, brightness: float, saturation: float) -> Texture:
    """Threshold texture rule.

    A bright achromatic surface reads as foam both when it is speckled
    (high variance) and when it is completely flat; flat bright colour is
    glossy.
    """

    bright_achromatic = brightness > VERY_BRIGHT and saturation < ACHROMATIC
    if bright_achromatic and (variance > HIGH_VARIANCE or variance < LOW_VARIANCE):
        return Texture.FOAM
    if variance < LOW_VARIANCE and brightness > VERY_BRIGHT:
        return Texture.GLOSSY
    if variance > HIGH_VARIANCE:
        return Texture.TEXTURED
    return Texture.MATTE


def classify_shape(
    edge_ratio: float,
    variance: float,
    colors: Sequence[DominantColor],
    aspect_ratio: float = 1.0,
) -> Shape:
    """Threshold shape rule over edge ratio, variance and colour coverage."""

    top_coverage = colors[0].percentage if colors else 0.0
    elongation = max(aspect_ratio, 1.0 / aspect_ratio) if aspect_ratio > 0 else 1.0
    if edge_ratio < 0.05 and variance < 0.05:
        return Shape.BAG
    if edge_ratio > 0.3:
        return Shape.IRREGULAR
    if elongation >= 3.0:
        return Shape.TUBE
    if top_coverage > 0.5:
        return Shape.CONTAINER
    if 0.1 <= edge_ratio <= 0.3 and elongation <= 1.25 and top_coverage > 0.3:
        return Shape.CUP
    return Shape.BOTTLE


def estimate_objects(colors: Sequence[DominantColor]) -> Tuple[str, ...]:
    """Guess likely items from how close the top colours are to known signatures."""

    found: List[str] = []
    for _, signature_colors, items in COLOR_SIGNATURES:
        if any(
            _distance(color.rgb, reference) < SIGNATURE_DISTANCE
            for reference in signature_colors
            for color in colors[:3]
        ):
            found.extend(item for item in items if item not in found)
    return tuple(found[:MAX_ESTIMATED_OBJECTS])


def describe_analysis(analysis: ImageAnalysis) -> str:
    """Render a human-readable summary of an analysis."""

    colors = ", ".join(
        f"{color.hex} ({color.percentage * 100:.0f}%)" for color in analysis.dominant_colors[:3]
    ) or "unknown"
    if analysis.brightness < 1 / 3:
        brightness = "dark"
    elif analysis.brightness > 2 / 3:
        brightness = "bright"
    else:
        brightness = "medium"
    if analysis.edge_ratio < 0.05:
        edges = "low"
    elif analysis.edge_ratio > 0.15:
        edges = "high"
    else:
        edges = "medium"
    if analysis.estimated_objects:
        objects = "Possible objects: " + ", ".join(analysis.estimated_objects) + "."
    else:
        objects = "No object clearly identified."

    lines = [
        "Visual analysis:",
        f"- Dominant colours: {colors}",
        f"- Brightness: {brightness}",
        f"- Transparency: {'yes' if analysis.transparency > 0.1 else 'no'}",
        f"- Surface texture: {analysis.texture.value}",
        f"- Shape estimate: {analysis.shape.value}",
        f"- Edge density: {edges}",
        f"- {objects}",
    ]
    if analysis.degraded:
        lines.append("- (image could not be sampled; default profile used)")
    return "\n".join(lines)


def _distance(a: RGB, b: RGB) -> float:
    return math.sqrt(sum((x - y) ** 2 for x, y in zip(a, b)))


def profile_image(image_input: ImageInput, settings: Optional[Settings] = None) -> ImageAnalysis:
    """Module-level shortcut for :meth:`ImageProfiler.profile`."""

    return ImageProfiler(settings).profile(image_input)
