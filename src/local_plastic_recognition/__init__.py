"""Public exports for the local plastic recognition package."""

from .analysis import DEFAULT_ANALYSIS, describe_analysis, extract_features, profile_image
from .classifier import PlasticClassifier, classify
from .detection import MultiObjectDetector, RegionSegmenter, detect_objects
from .eco_score import average_eco_score, calculate_eco_score, eco_score_for_object
from .errors import (
    DecodeFailureError,
    DegradedAnalysisError,
    InvalidInputError,
    ModelUnavailableError,
    PlasticRecognitionError,
)
from .signals import FilenameMatcher, LearnedModelAdapter, match_filename
from .types import (
    ClassificationResult,
    DetectedObject,
    DetectedRegion,
    EcoLevel,
    EcoScore,
    ImageAnalysis,
    MaterialType,
    MultiObjectResult,
    RiskTier,
    VisualFeatures,
)

__all__ = [
    "DEFAULT_ANALYSIS",
    "ClassificationResult",
    "DecodeFailureError",
    "DegradedAnalysisError",
    "DetectedObject",
    "DetectedRegion",
    "EcoLevel",
    "EcoScore",
    "FilenameMatcher",
    "ImageAnalysis",
    "InvalidInputError",
    "LearnedModelAdapter",
    "MaterialType",
    "ModelUnavailableError",
    "MultiObjectDetector",
    "MultiObjectResult",
    "PlasticClassifier",
    "PlasticRecognitionError",
    "RegionSegmenter",
    "RiskTier",
    "VisualFeatures",
    "average_eco_score",
    "calculate_eco_score",
    "classify",
    "describe_analysis",
    "detect_objects",
    "eco_score_for_object",
    "extract_features",
    "match_filename",
    "profile_image",
]
