"""Image analysis: pixel features and colour/texture/shape profiles."""

from .features import FeatureExtractor, extract_features
from .profiler import DEFAULT_ANALYSIS, ImageProfiler, describe_analysis, profile_image

__all__ = [
    "DEFAULT_ANALYSIS",
    "FeatureExtractor",
    "ImageProfiler",
    "describe_analysis",
    "extract_features",
    "profile_image",
]
