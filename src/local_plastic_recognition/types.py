"""Common types used throughout the plastic recognition pipeline."""

from __future__ import annotations

import colorsys
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

RGB = Tuple[int, int, int]


class MaterialType(str, Enum):
    """Material buckets the classifier can report.

    Declaration order doubles as the tie-break order when two materials
    end up with exactly the same score.
    """

    PET = "PET"
    HDPE = "HDPE"
    PVC = "PVC"
    LDPE = "LDPE"
    PP = "PP"
    PS = "PS"
    NON_PLASTIC = "NON_PLASTIC"
    OTHER = "OTHER"

    @classmethod
    def from_label(cls, label: str) -> Optional["MaterialType"]:
        """Map a free-form model/class label onto a material, if possible."""

        key = "".join(ch for ch in label.lower() if ch.isalnum())
        return _LABEL_ALIASES.get(key)


_LABEL_ALIASES: Dict[str, MaterialType] = {
    "pet": MaterialType.PET,
    "pete": MaterialType.PET,
    "1": MaterialType.PET,
    "hdpe": MaterialType.HDPE,
    "2": MaterialType.HDPE,
    "pvc": MaterialType.PVC,
    "3": MaterialType.PVC,
    "ldpe": MaterialType.LDPE,
    "4": MaterialType.LDPE,
    "pp": MaterialType.PP,
    "5": MaterialType.PP,
    "ps": MaterialType.PS,
    "styrofoam": MaterialType.PS,
    "6": MaterialType.PS,
    "other": MaterialType.OTHER,
    "7": MaterialType.OTHER,
    "nonplastic": MaterialType.NON_PLASTIC,
    "notplastic": MaterialType.NON_PLASTIC,
}


class RiskTier(str, Enum):
    """Baseline microplastic release risk."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class Texture(str, Enum):
    GLOSSY = "glossy"
    MATTE = "matte"
    TEXTURED = "textured"
    FOAM = "foam"


class Shape(str, Enum):
    BOTTLE = "bottle"
    BAG = "bag"
    CONTAINER = "container"
    TUBE = "tube"
    CUP = "cup"
    IRREGULAR = "irregular"


class FusionStrategy(str, Enum):
    """Which decision path produced a classification."""

    RULE_SCORE = "rule_score"
    ADDITIVE = "additive"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class VisualFeatures:
    """Compact per-image statistics, every value in [0, 1]."""

    brightness: float
    saturation: float
    contrast: float
    edge_density: float
    transparency: float


@dataclass(frozen=True)
class DominantColor:
    """A quantized colour bucket and the share of pixels it covers."""

    rgb: RGB
    percentage: float

    @property
    def hex(self) -> str:
        return "#{:02X}{:02X}{:02X}".format(*self.rgb)

    @property
    def hue(self) -> float:
        """Hue in degrees [0, 360)."""

        r, g, b = (channel / 255.0 for channel in self.rgb)
        h, _, _ = colorsys.rgb_to_hsv(r, g, b)
        return h * 360.0

    @property
    def saturation(self) -> float:
        r, g, b = (channel / 255.0 for channel in self.rgb)
        _, s, _ = colorsys.rgb_to_hsv(r, g, b)
        return s


@dataclass(frozen=True)
class ImageAnalysis:
    """Profiler output: colour, texture and coarse shape of an image.

    ``dominant_colors`` is sorted by coverage, largest first, and the
    percentages never sum to more than 1.
    """

    dominant_colors: Tuple[DominantColor, ...]
    brightness: float
    saturation: float
    transparency: float
    texture: Texture
    shape: Shape
    edge_ratio: float
    color_variance: float
    estimated_objects: Tuple[str, ...] = ()
    degraded: bool = False


@dataclass(frozen=True)
class FilenameMatch:
    material: MaterialType
    confidence: float
    keyword: str


@dataclass(frozen=True)
class ModelSignal:
    """Top prediction of the learned model mapped onto a material."""

    material: MaterialType
    confidence: float
    label: str


@dataclass(frozen=True)
class ClassificationResult:
    """Single material decision with its explanation trail."""

    material: MaterialType
    confidence: float
    reasoning: Tuple[str, ...]
    strategy: FusionStrategy
    scores: Mapping[MaterialType, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "scores", MappingProxyType(dict(self.scores)))


@dataclass(frozen=True)
class DetectedRegion:
    """Bounding box in segmentation-grid coordinates."""

    x: int
    y: int
    width: int
    height: int
    confidence: float


@dataclass(frozen=True)
class MaterialInfo:
    """Static metadata describing one material."""

    plastic_type: str
    plastic_code: str
    decomposition_time: str
    microplastic_risk: RiskTier
    eco_alternative: str
    description: str
    display_name: str


@dataclass(frozen=True)
class DetectedObject:
    """Classification joined with the static material metadata."""

    name: str
    material: MaterialType
    confidence: float
    plastic_type: str
    plastic_code: str
    decomposition_time: str
    microplastic_risk: RiskTier
    eco_alternative: str
    description: str
    reasoning: Tuple[str, ...] = ()

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "material": self.material.value,
            "confidence": round(self.confidence, 4),
            "plastic_type": self.plastic_type,
            "plastic_code": self.plastic_code,
            "decomposition_time": self.decomposition_time,
            "microplastic_risk": self.microplastic_risk.value,
            "eco_alternative": self.eco_alternative,
            "description": self.description,
            "reasoning": list(self.reasoning),
        }


@dataclass(frozen=True)
class MultiObjectResult:
    objects: Tuple[DetectedObject, ...]
    regions: Tuple[DetectedRegion, ...]

    @property
    def total_detected(self) -> int:
        return len(self.objects)


class EcoLevel(str, Enum):
    POOR = "poor"
    NEEDS_REDUCTION = "needs reduction"
    BETTER = "better"


@dataclass(frozen=True)
class EcoScore:
    score: int
    level: EcoLevel
    color: str
    explanation: str
    confidence: float
