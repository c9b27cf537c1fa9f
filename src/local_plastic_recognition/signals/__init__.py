"""Optional classification signals: filename keywords and the learned model."""

from .filename import DEFAULT_RULES, FilenameMatcher, FilenameRule, match_filename
from .learned_model import LearnedModelAdapter, get_default_adapter, reset_default_adapter

__all__ = [
    "DEFAULT_RULES",
    "FilenameMatcher",
    "FilenameRule",
    "LearnedModelAdapter",
    "get_default_adapter",
    "match_filename",
    "reset_default_adapter",
]
