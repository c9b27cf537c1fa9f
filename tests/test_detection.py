from __future__ import annotations

from unittest.mock import MagicMock

import numpy as np
import pytest

from local_plastic_recognition.config import Settings
from local_plastic_recognition.detection import MultiObjectDetector, RegionSegmenter
from local_plastic_recognition.types import ClassificationResult, DetectedRegion, FusionStrategy, MaterialType

from . import image_factory as factory


def _result(material: MaterialType, confidence: float) -> ClassificationResult:
    return ClassificationResult(
        material=material,
        confidence=confidence,
        reasoning=(f"stub {material.value}",),
        strategy=FusionStrategy.RULE_SCORE,
    )


class TestRegionSegmenter:
    def test_uniform_image_falls_back_to_centered_region(self, settings):
        regions = RegionSegmenter(settings).segment(factory.create_blank_image())
        assert regions == [DetectedRegion(50, 50, 100, 100, 0.5)]

    def test_busy_image_fills_the_grid(self, settings):
        regions = RegionSegmenter(settings).segment(factory.create_stripes_image())
        assert len(regions) == 9
        assert all(region.confidence == pytest.approx(0.9) for region in regions)
        assert (regions[0].x, regions[0].y) == (0, 0)
        assert regions[0].width == 66

    def test_edge_map_skips_last_row_and_column(self, settings):
        edges = RegionSegmenter(settings).edge_map(factory.create_stripes_image())
        assert edges.shape == (200, 200)
        assert edges[:199, :199].all()
        assert not edges[199, :].any()
        assert not edges[:, 199].any()

    def test_only_busy_cells_become_regions(self, settings):
        image = factory.create_blank_image(200, 200, color=(0, 0, 0))
        image[:60, :60:2] = 255
        regions = RegionSegmenter(settings).segment(image)
        assert [(region.x, region.y) for region in regions] == [(0, 0)]

    def test_confidence_is_capped(self, settings):
        edges = np.ones((200, 200), dtype=bool)
        regions = RegionSegmenter(settings).grid_regions(edges)
        assert max(region.confidence for region in regions) == pytest.approx(0.9)


class TestMultiObjectDetector:
    def _detector(self, settings, results):
        classifier = MagicMock()
        classifier.classify_array.side_effect = results
        return MultiObjectDetector(classifier, settings=settings), classifier

    def test_whole_image_result_comes_first(self, settings):
        detector, _ = self._detector(settings, [_result(MaterialType.PET, 0.8), _result(MaterialType.PET, 0.9)])
        result = detector.detect(factory.create_blank_image())
        assert result.objects[0].material is MaterialType.PET
        assert result.total_detected == 1
        assert len(result.regions) == 1

    def test_regions_only_add_new_confident_materials(self, settings):
        detector, classifier = self._detector(
            settings,
            [
                _result(MaterialType.PET, 0.8),
                _result(MaterialType.PET, 0.9),
                _result(MaterialType.PP, 0.45),
                _result(MaterialType.HDPE, 0.7),
            ],
        )
        result = detector.detect(factory.create_stripes_image(), filename="botol.jpg")
        assert [obj.material for obj in result.objects] == [MaterialType.PET, MaterialType.HDPE]
        assert result.objects[1].name.endswith(" (Region)")
        assert classifier.classify_array.call_count == 1 + settings.max_regions

    def test_region_failure_is_skipped(self, settings):
        detector, _ = self._detector(
            settings,
            [
                _result(MaterialType.PS, 0.7),
                RuntimeError("bad crop"),
                _result(MaterialType.LDPE, 0.6),
                _result(MaterialType.PS, 0.9),
            ],
        )
        result = detector.detect(factory.create_stripes_image())
        assert [obj.material for obj in result.objects] == [MaterialType.PS, MaterialType.LDPE]

    def test_max_regions_setting_limits_work(self):
        settings = Settings(max_regions=1)
        detector, classifier = self._detector(
            settings, [_result(MaterialType.PET, 0.8), _result(MaterialType.PP, 0.8)]
        )
        result = detector.detect(factory.create_stripes_image())
        assert len(result.regions) == 1
        assert classifier.classify_array.call_count == 2

    def test_real_classifier_reports_unique_materials(self, settings, classifier):
        detector = MultiObjectDetector(classifier, settings=settings)
        result = detector.detect(factory.create_bottle_image(), filename="bottle.png")
        materials = [obj.material for obj in result.objects]
        assert len(materials) == len(set(materials))
        assert all(0.4 <= obj.confidence <= 0.95 for obj in result.objects)
        assert 1 <= len(result.regions) <= settings.max_regions
