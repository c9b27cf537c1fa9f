"""Eco-score: a 0-100 index of how harmful a detected material is."""

from __future__ import annotations

from typing import Mapping, Sequence, Tuple

from .types import DetectedObject, EcoLevel, EcoScore, MaterialType, RiskTier

BASE_SCORES: Mapping[MaterialType, int] = {
    MaterialType.PET: 60,
    MaterialType.HDPE: 70,
    MaterialType.PVC: 20,
    MaterialType.LDPE: 50,
    MaterialType.PP: 70,
    MaterialType.PS: 10,
    MaterialType.OTHER: 30,
    MaterialType.NON_PLASTIC: 90,
}

RISK_PENALTIES: Mapping[RiskTier, int] = {
    RiskTier.LOW: 0,
    RiskTier.MEDIUM: -15,
    RiskTier.HIGH: -30,
}

# First substring found in the decomposition text decides the penalty.
DECOMPOSITION_PENALTIES: Sequence[Tuple[str, int]] = (
    ("1000", -20),
    ("500", -10),
    ("450", -5),
)

POOR_BELOW = 40
NEEDS_REDUCTION_BELOW = 65

_LEVELS = {
    EcoLevel.POOR: (
        "#ef4444",
        "This plastic is very harmful to the environment. It takes a very long time to "
        "decompose and is likely to shed microplastics. Avoid it where possible.",
    ),
    EcoLevel.NEEDS_REDUCTION: (
        "#f59e0b",
        "This plastic has a sizeable environmental impact. It can be recycled, but it is "
        "better to use less of it and look for greener alternatives.",
    ),
    EcoLevel.BETTER: (
        "#22c55e",
        "This plastic is relatively safer than other types. Recycle it properly and prefer "
        "non-plastic alternatives when you can.",
    ),
}


def eco_level(score: float) -> EcoLevel:
    if score < POOR_BELOW:
        return EcoLevel.POOR
    if score < NEEDS_REDUCTION_BELOW:
        return EcoLevel.NEEDS_REDUCTION
    return EcoLevel.BETTER


def calculate_eco_score(
    material: MaterialType,
    risk_tier: RiskTier,
    decomposition_time: str,
    confidence: float,
) -> EcoScore:
    """Score a material; lower means worse for the environment."""

    score = BASE_SCORES[material]
    score += RISK_PENALTIES[risk_tier]
    for marker, penalty in DECOMPOSITION_PENALTIES:
        if marker in decomposition_time:
            score += penalty
            break
    if confidence < 0.6:
        score -= 10
    elif confidence < 0.7:
        score -= 5

    score = max(0, min(100, score))
    level = eco_level(score)
    color, explanation = _LEVELS[level]
    return EcoScore(score=score, level=level, color=color, explanation=explanation, confidence=confidence)


def eco_score_for_object(obj: DetectedObject) -> EcoScore:
    return calculate_eco_score(obj.material, obj.microplastic_risk, obj.decomposition_time, obj.confidence)


def average_eco_score(scores: Sequence[EcoScore]) -> EcoScore:
    """Mean score and confidence over several detections."""

    if not scores:
        color, _ = _LEVELS[EcoLevel.NEEDS_REDUCTION]
        return EcoScore(
            score=50,
            level=EcoLevel.NEEDS_REDUCTION,
            color=color,
            explanation="No detections to average",
            confidence=0.0,
        )

    average = sum(item.score for item in scores) / len(scores)
    confidence = sum(item.confidence for item in scores) / len(scores)
    level = eco_level(average)
    color, explanation = _LEVELS[level]
    return EcoScore(
        score=int(round(average)),
        level=level,
        color=color,
        explanation=explanation,
        confidence=confidence,
    )
