"""Combine visual, filename and learned-model evidence into one decision.

Two strategies are kept, chosen by what evidence is available:

* rule-score fusion scores every material profile against an
  :class:`ImageAnalysis`; it is used when there is no model vote.
* additive fusion starts every material at zero, adds fixed bonuses for
  visual thresholds and folds in the model vote with a soft-competitive
  update; it is used when the learned model produced a signal.

A filename match is applied on top of either result. Reported confidence
is always clamped into ``[confidence_floor, confidence_ceiling]``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, FrozenSet, List, Mapping, Optional, Sequence, Tuple

from .config import Settings, get_settings
from .types import (
    ClassificationResult,
    FilenameMatch,
    FusionStrategy,
    ImageAnalysis,
    MaterialType,
    ModelSignal,
    Shape,
    Texture,
    VisualFeatures,
)

logger = logging.getLogger(__name__)

Range = Tuple[float, float]

WEIGHT_BRIGHTNESS = 0.15
WEIGHT_SATURATION = 0.15
WEIGHT_TRANSPARENCY = 0.2
WEIGHT_TEXTURE = 0.2
WEIGHT_SHAPE = 0.15
WEIGHT_HUE = 0.15

# Dominant colours less saturated than this have no meaningful hue.
ACHROMATIC_SATURATION = 0.15


@dataclass(frozen=True)
class HuePattern:
    """A hue band in degrees, or the achromatic (white/grey/black) band."""

    low: float = 0.0
    high: float = 0.0
    weight: float = 1.0
    achromatic: bool = False

    def matches(self, hue: float, saturation: float) -> bool:
        if saturation < ACHROMATIC_SATURATION:
            return self.achromatic
        return not self.achromatic and self.low <= hue <= self.high


ACHROMATIC = HuePattern(achromatic=True)


@dataclass(frozen=True)
class MaterialProfile:
    """What a material typically looks like in a photo."""

    brightness: Range
    saturation: Range
    transparency: Range
    textures: FrozenSet[Texture]
    shapes: FrozenSet[Shape]
    hues: Tuple[HuePattern, ...]
    base_confidence: float


MATERIAL_PROFILES: Mapping[MaterialType, MaterialProfile] = MappingProxyType(
    {
        MaterialType.PET: MaterialProfile(
            brightness=(0.5, 1.0),
            saturation=(0.0, 0.35),
            transparency=(0.3, 1.0),
            textures=frozenset({Texture.GLOSSY}),
            shapes=frozenset({Shape.BOTTLE}),
            hues=(
                HuePattern(180.0, 240.0, 1.0),
                HuePattern(90.0, 150.0, 0.8),
                HuePattern(achromatic=True, weight=0.5),
            ),
            base_confidence=0.95,
        ),
        MaterialType.HDPE: MaterialProfile(
            brightness=(0.45, 0.95),
            saturation=(0.0, 0.5),
            transparency=(0.0, 0.25),
            textures=frozenset({Texture.MATTE}),
            shapes=frozenset({Shape.BOTTLE, Shape.CONTAINER}),
            hues=(HuePattern(achromatic=True, weight=0.8), HuePattern(190.0, 250.0, 0.6)),
            base_confidence=0.85,
        ),
        MaterialType.PVC: MaterialProfile(
            brightness=(0.2, 0.7),
            saturation=(0.0, 0.4),
            transparency=(0.0, 0.3),
            textures=frozenset({Texture.GLOSSY, Texture.MATTE}),
            shapes=frozenset({Shape.TUBE}),
            hues=(HuePattern(achromatic=True, weight=0.6),),
            base_confidence=0.7,
        ),
        MaterialType.LDPE: MaterialProfile(
            brightness=(0.2, 0.9),
            saturation=(0.0, 0.6),
            transparency=(0.1, 0.7),
            textures=frozenset({Texture.MATTE, Texture.GLOSSY}),
            shapes=frozenset({Shape.BAG}),
            hues=(HuePattern(achromatic=True, weight=0.7), HuePattern(30.0, 60.0, 0.5)),
            base_confidence=0.9,
        ),
        MaterialType.PP: MaterialProfile(
            brightness=(0.3, 0.9),
            saturation=(0.2, 1.0),
            transparency=(0.0, 0.4),
            textures=frozenset({Texture.MATTE, Texture.GLOSSY}),
            shapes=frozenset({Shape.CUP, Shape.CONTAINER}),
            hues=(
                HuePattern(0.0, 20.0, 1.0),
                HuePattern(340.0, 360.0, 1.0),
                HuePattern(40.0, 70.0, 0.6),
            ),
            base_confidence=0.85,
        ),
        MaterialType.PS: MaterialProfile(
            brightness=(0.75, 1.0),
            saturation=(0.0, 0.12),
            transparency=(0.0, 1.0),
            textures=frozenset({Texture.FOAM}),
            shapes=frozenset({Shape.CONTAINER, Shape.CUP, Shape.IRREGULAR}),
            hues=(HuePattern(achromatic=True, weight=1.0),),
            base_confidence=0.9,
        ),
        MaterialType.OTHER: MaterialProfile(
            brightness=(0.0, 1.0),
            saturation=(0.0, 1.0),
            transparency=(0.0, 0.5),
            textures=frozenset({Texture.TEXTURED}),
            shapes=frozenset({Shape.IRREGULAR}),
            hues=(),
            base_confidence=0.6,
        ),
    }
)


class FusionEngine:
    """Turns the available signals into a :class:`ClassificationResult`."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        profiles: Optional[Mapping[MaterialType, MaterialProfile]] = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.profiles = profiles or MATERIAL_PROFILES

    def fuse(
        self,
        features: VisualFeatures,
        analysis: ImageAnalysis,
        filename_match: Optional[FilenameMatch] = None,
        model_signal: Optional[ModelSignal] = None,
    ) -> ClassificationResult:
        if model_signal is not None:
            result = self.additive(features, model_signal)
        else:
            result = self.rule_score(analysis)
        if filename_match is not None:
            result = self.apply_filename(result, filename_match)
        return result

    # -- Rule-score fusion ---------------------------------------------------

    def score_profile(self, profile: MaterialProfile, analysis: ImageAnalysis) -> float:
        score = 0.0
        if _within(analysis.brightness, profile.brightness):
            score += WEIGHT_BRIGHTNESS
        if _within(analysis.saturation, profile.saturation):
            score += WEIGHT_SATURATION
        if _within(analysis.transparency, profile.transparency):
            score += WEIGHT_TRANSPARENCY
        if analysis.texture in profile.textures:
            score += WEIGHT_TEXTURE
        if analysis.shape in profile.shapes:
            score += WEIGHT_SHAPE
        score += WEIGHT_HUE * _hue_weight(profile.hues, analysis)
        return score * profile.base_confidence

    def rank_profiles(self, analysis: ImageAnalysis) -> List[Tuple[MaterialType, float]]:
        """Score every profile, best first; ties keep declaration order."""

        scored = [(material, self.score_profile(profile, analysis)) for material, profile in self.profiles.items()]
        return sorted(scored, key=lambda item: -item[1])

    def rule_score(self, analysis: ImageAnalysis) -> ClassificationResult:
        ranking = self.rank_profiles(analysis)
        scores = dict(ranking)
        reasoning = _describe_analysis(analysis)
        material, best = ranking[0]
        logger.debug("Rule-score ranking: %s", ", ".join(f"{m.value}={s:.3f}" for m, s in ranking))

        if best > self.settings.rule_score_threshold:
            reasoning.append(f"Visual profile best matches {material.value} (score {best:.2f})")
            return ClassificationResult(
                material=material,
                confidence=self.clamp(best),
                reasoning=tuple(reasoning),
                strategy=FusionStrategy.RULE_SCORE,
                scores=scores,
            )

        material, confidence, reason = self._default_rule(analysis)
        reasoning.append(f"No profile scored above {self.settings.rule_score_threshold:.2f}; {reason}")
        return ClassificationResult(
            material=material,
            confidence=self.clamp(confidence),
            reasoning=tuple(reasoning),
            strategy=FusionStrategy.FALLBACK,
            scores=scores,
        )

    @staticmethod
    def _default_rule(analysis: ImageAnalysis) -> Tuple[MaterialType, float, str]:
        if analysis.texture is Texture.FOAM:
            return MaterialType.PS, 0.5, "foam-like surface defaults to PS"
        if analysis.transparency > 0.5:
            return MaterialType.PET, 0.48, "highly transparent object defaults to PET"
        if analysis.shape is Shape.BAG:
            return MaterialType.LDPE, 0.45, "bag-like shape defaults to LDPE"
        return MaterialType.PP, 0.45, "defaulting to PP"

    # -- Additive fusion -----------------------------------------------------

    def additive(self, features: VisualFeatures, signal: ModelSignal) -> ClassificationResult:
        scores: Dict[MaterialType, float] = {material: 0.0 for material in _ADDITIVE_MATERIALS}
        reasoning: List[str] = []

        if features.transparency > 0.45:
            scores[MaterialType.PET] += 0.4
            scores[MaterialType.PP] += 0.2
            reasoning.append("Transparent object detected")
        if features.edge_density < 0.25 and features.contrast < 0.3:
            scores[MaterialType.LDPE] += 0.45
            reasoning.append("Thin, flexible surface")
        if features.edge_density > 0.6:
            scores[MaterialType.HDPE] += 0.4
            reasoning.append("Rigid, thick structure")
        if features.saturation < 0.15 and features.contrast < 0.2:
            scores[MaterialType.PS] += 0.5
            reasoning.append("Styrofoam characteristics detected")

        reasoning.append(f"Visual model detected {signal.material.value} ({signal.confidence * 100:.0f}%)")
        scores.setdefault(signal.material, 0.0)
        for material in scores:
            if material is signal.material:
                scores[material] += signal.confidence * 0.5
            else:
                scores[material] -= signal.confidence * 0.1
        if signal.material is MaterialType.NON_PLASTIC and signal.confidence > 0.8:
            scores[MaterialType.NON_PLASTIC] += 0.6
            reasoning.append("Most likely not plastic")

        material, raw = max(scores.items(), key=lambda item: item[1])
        logger.debug("Additive scores: %s", ", ".join(f"{m.value}={s:.3f}" for m, s in scores.items()))
        return ClassificationResult(
            material=material,
            confidence=self.clamp(raw),
            reasoning=tuple(reasoning),
            strategy=FusionStrategy.ADDITIVE,
            scores=scores,
        )

    # -- Filename ------------------------------------------------------------

    def apply_filename(self, result: ClassificationResult, match: FilenameMatch) -> ClassificationResult:
        """Let a filename keyword confirm or override the image decision."""

        reasoning = list(result.reasoning)
        material = result.material
        confidence = result.confidence
        if match.material is result.material:
            confidence = max(result.confidence, match.confidence)
            reasoning.append(f"Filename keyword '{match.keyword}' agrees: {match.material.value}")
        elif match.confidence > result.confidence:
            material = match.material
            confidence = match.confidence
            reasoning.append(
                f"Filename keyword '{match.keyword}' suggests {match.material.value} "
                f"({match.confidence * 100:.0f}%), outweighing image evidence for {result.material.value}"
            )
        else:
            reasoning.append(
                f"Filename keyword '{match.keyword}' suggests {match.material.value}, "
                f"but image evidence for {result.material.value} is stronger"
            )
        return ClassificationResult(
            material=material,
            confidence=self.clamp(confidence),
            reasoning=tuple(reasoning),
            strategy=result.strategy,
            scores=result.scores,
        )

    def clamp(self, value: float) -> float:
        return float(max(self.settings.confidence_floor, min(self.settings.confidence_ceiling, value)))


_ADDITIVE_MATERIALS: Sequence[MaterialType] = (
    MaterialType.PET,
    MaterialType.HDPE,
    MaterialType.PVC,
    MaterialType.LDPE,
    MaterialType.PP,
    MaterialType.PS,
    MaterialType.NON_PLASTIC,
)


def _within(value: float, bounds: Range) -> bool:
    return bounds[0] <= value <= bounds[1]


def _hue_weight(patterns: Sequence[HuePattern], analysis: ImageAnalysis) -> float:
    if not patterns or not analysis.dominant_colors:
        return 0.0
    color = analysis.dominant_colors[0]
    hue, saturation = color.hue, color.saturation
    return max((pattern.weight for pattern in patterns if pattern.matches(hue, saturation)), default=0.0)


def _describe_analysis(analysis: ImageAnalysis) -> List[str]:
    if analysis.degraded:
        return ["Image could not be sampled; using a neutral visual profile"]
    reasons = [
        f"Surface texture looks {analysis.texture.value}",
        f"Overall shape resembles a {analysis.shape.value}",
    ]
    if analysis.dominant_colors:
        top = analysis.dominant_colors[0]
        reasons.append(f"Dominant colour {top.hex} covers {top.percentage * 100:.0f}% of the image")
    if analysis.transparency > 0.45:
        reasons.append("Large clear or transparent area")
    return reasons
