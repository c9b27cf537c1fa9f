from __future__ import annotations

import pytest

from local_plastic_recognition.eco_score import (
    average_eco_score,
    calculate_eco_score,
    eco_level,
    eco_score_for_object,
)
from local_plastic_recognition.materials import MATERIAL_DATABASE, build_detected_object
from local_plastic_recognition.types import (
    ClassificationResult,
    EcoLevel,
    FusionStrategy,
    MaterialType,
    RiskTier,
)


def _score_for(material: MaterialType, confidence: float = 0.9):
    info = MATERIAL_DATABASE[material]
    return calculate_eco_score(material, info.microplastic_risk, info.decomposition_time, confidence)


@pytest.mark.parametrize(
    "material,expected,level",
    [
        (MaterialType.PET, 25, EcoLevel.POOR),
        (MaterialType.HDPE, 45, EcoLevel.NEEDS_REDUCTION),
        (MaterialType.PP, 45, EcoLevel.NEEDS_REDUCTION),
        (MaterialType.LDPE, 25, EcoLevel.POOR),
        (MaterialType.PVC, 0, EcoLevel.POOR),
        (MaterialType.PS, 0, EcoLevel.POOR),
        (MaterialType.OTHER, 0, EcoLevel.POOR),
        (MaterialType.NON_PLASTIC, 90, EcoLevel.BETTER),
    ],
)
def test_material_database_scores(material, expected, level):
    score = _score_for(material)
    assert score.score == expected
    assert score.level is level


def test_higher_risk_never_scores_better():
    scores = [
        calculate_eco_score(MaterialType.HDPE, tier, "500 years", 0.9).score
        for tier in (RiskTier.LOW, RiskTier.MEDIUM, RiskTier.HIGH)
    ]
    assert scores == sorted(scores, reverse=True)


@pytest.mark.parametrize(
    "decomposition,expected",
    [("1000+ years", 50), ("500-1000 years", 50), ("500 years", 60), ("450 years", 65), ("Unknown", 70)],
)
def test_first_decomposition_marker_wins(decomposition, expected):
    assert calculate_eco_score(MaterialType.HDPE, RiskTier.LOW, decomposition, 0.9).score == expected


@pytest.mark.parametrize("confidence,expected", [(0.5, 80), (0.6, 85), (0.65, 85), (0.7, 90), (0.95, 90)])
def test_low_confidence_is_penalized(confidence, expected):
    assert calculate_eco_score(MaterialType.NON_PLASTIC, RiskTier.LOW, "", confidence).score == expected


def test_level_boundaries():
    assert eco_level(39) is EcoLevel.POOR
    assert eco_level(40) is EcoLevel.NEEDS_REDUCTION
    assert eco_level(64) is EcoLevel.NEEDS_REDUCTION
    assert eco_level(65) is EcoLevel.BETTER


def test_level_colors():
    assert _score_for(MaterialType.PS).color == "#ef4444"
    assert _score_for(MaterialType.HDPE).color == "#f59e0b"
    assert _score_for(MaterialType.NON_PLASTIC).color == "#22c55e"


def test_score_for_detected_object():
    result = ClassificationResult(
        material=MaterialType.PET,
        confidence=0.65,
        reasoning=("stub",),
        strategy=FusionStrategy.RULE_SCORE,
    )
    assert eco_score_for_object(build_detected_object(result)).score == 20


def test_average_of_scores():
    average = average_eco_score([_score_for(MaterialType.PET), _score_for(MaterialType.HDPE, 0.7)])
    assert average.score == 35
    assert average.level is EcoLevel.POOR
    assert average.confidence == pytest.approx(0.8)


def test_average_of_nothing_is_neutral():
    average = average_eco_score([])
    assert average.score == 50
    assert average.level is EcoLevel.NEEDS_REDUCTION
    assert average.confidence == 0.0
