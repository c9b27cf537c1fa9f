"""Multi-object detection via edge-density grid segmentation.

The image is split into a coarse grid. Cells with enough edges are treated
as places where a separate object might be, and each is classified on its
own. A region only adds an object when it finds a material nothing else
has reported yet, so overlapping crops of one item do not multiply.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Set

import cv2
import numpy as np

from .classifier import PlasticClassifier
from .config import Settings, get_settings
from .image_utils import ImageInput, crop_region, ensure_color, load_image, resize_square
from .materials import build_detected_object
from .types import DetectedObject, DetectedRegion, MaterialType, MultiObjectResult

logger = logging.getLogger(__name__)

EDGE_THRESHOLD = 50
FALLBACK_CONFIDENCE = 0.5
REGION_SUFFIX = " (Region)"


class RegionSegmenter:
    """Finds grid cells whose edge density suggests an object is present."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or get_settings()

    @property
    def extent(self) -> int:
        """Side length of the square grid coordinate space."""
        return self.settings.segmentation_size

    def segment(self, image: np.ndarray) -> List[DetectedRegion]:
        """Return candidate regions; never empty."""

        try:
            edges = self.edge_map(image)
        except cv2.error as exc:
            logger.warning("Region segmentation failed, using the whole frame: %s", exc)
            return [DetectedRegion(0, 0, self.extent, self.extent, FALLBACK_CONFIDENCE)]

        regions = self.grid_regions(edges)
        if not regions:
            size = self.extent
            regions.append(
                DetectedRegion(
                    x=size // 4,
                    y=size // 4,
                    width=size // 2,
                    height=size // 2,
                    confidence=FALLBACK_CONFIDENCE,
                )
            )
        return regions

    def edge_map(self, image: np.ndarray) -> np.ndarray:
        """Binary map of pixels that differ strongly from their right neighbour."""

        size = self.extent
        pixels = resize_square(ensure_color(image), size).astype(np.int32)
        edges = np.zeros((size, size), dtype=bool)
        horizontal = np.abs(pixels[:, 1:] - pixels[:, :-1]).sum(axis=2) > EDGE_THRESHOLD
        # The last row and column have no neighbour to compare with.
        edges[: size - 1, : size - 1] = horizontal[: size - 1, :]
        return edges

    def grid_regions(self, edges: np.ndarray) -> List[DetectedRegion]:
        size = edges.shape[0]
        grid = self.settings.grid_size
        cell_width = size / grid
        cell_height = size / grid
        regions: List[DetectedRegion] = []

        for gy in range(grid):
            for gx in range(grid):
                x = gx * cell_width
                y = gy * cell_height
                x0, y0 = int(math.floor(x)), int(math.floor(y))
                x1 = min(size, int(math.ceil(x + cell_width)))
                y1 = min(size, int(math.ceil(y + cell_height)))
                cell = edges[y0:y1, x0:x1]
                if cell.size == 0:
                    continue
                density = float(np.count_nonzero(cell)) / cell.size
                if density > self.settings.region_min_edge_density:
                    regions.append(
                        DetectedRegion(
                            x=x0,
                            y=y0,
                            width=int(math.floor(cell_width)),
                            height=int(math.floor(cell_height)),
                            confidence=min(0.9, density * 5),
                        )
                    )
        return regions


class MultiObjectDetector:
    """Classifies the whole image and its most promising regions."""

    def __init__(
        self,
        classifier: Optional[PlasticClassifier] = None,
        segmenter: Optional[RegionSegmenter] = None,
        settings: Optional[Settings] = None,
    ) -> None:
        self.settings = settings or (classifier.settings if classifier else get_settings())
        self.classifier = classifier or PlasticClassifier(self.settings)
        self.segmenter = segmenter or RegionSegmenter(self.settings)

    def detect(self, image_input: ImageInput, filename: Optional[str] = None) -> MultiObjectResult:
        image = load_image(image_input, keep_alpha=True, max_kb=self.settings.max_image_kb)
        regions = self.segmenter.segment(image)

        full = self.classifier.classify_array(image, filename)
        objects: List[DetectedObject] = [build_detected_object(full, filename)]
        seen = {full.material}

        top_regions = sorted(regions, key=lambda region: -region.confidence)[: self.settings.max_regions]
        for region in top_regions:
            try:
                crop = crop_region(image, region, self.segmenter.extent)
                result = self.classifier.classify_array(crop, filename)
            except Exception as exc:  # noqa: BLE001 - one bad region must not stop the rest
                logger.warning("Region classification failed for %s: %s", region, exc)
                continue
            if self._is_new(result.material, result.confidence, seen):
                objects.append(build_detected_object(result, filename, name_suffix=REGION_SUFFIX))
                seen.add(result.material)

        logger.info(
            "Detected %d object(s) across %d region(s): %s",
            len(objects),
            len(top_regions),
            ", ".join(obj.material.value for obj in objects),
        )
        return MultiObjectResult(objects=tuple(objects), regions=tuple(top_regions))

    def _is_new(self, material: MaterialType, confidence: float, seen: Set[MaterialType]) -> bool:
        return material not in seen and confidence > self.settings.region_accept_confidence


_default_detector: Optional[MultiObjectDetector] = None


def detect_objects(image_input: ImageInput, filename: Optional[str] = None) -> MultiObjectResult:
    """Module-level shortcut for :meth:`MultiObjectDetector.detect`."""

    global _default_detector
    if _default_detector is None:
        _default_detector = MultiObjectDetector()
    return _default_detector.detect(image_input, filename)
