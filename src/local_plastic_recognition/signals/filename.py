"""Keyword heuristics over a user-supplied filename."""

from __future__ import annotations

import logging
import random
import re
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..types import FilenameMatch, MaterialType

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\W_]+")

# Keywords shorter than this must equal a whole token; longer ones may
# appear inside a token ("styrofoamcup" still says styrofoam).
MIN_SUBSTRING_KEYWORD = 4

CONFIDENCE_LOW = 0.75
CONFIDENCE_HIGH = 0.95


@dataclass(frozen=True)
class FilenameRule:
    material: MaterialType
    keywords: Tuple[str, ...]
    confidence: float = 0.85


# Most specific first: the first rule with a matching keyword wins, so
# "botol_susu" is an HDPE milk jug rather than a PET bottle.
DEFAULT_RULES: Sequence[FilenameRule] = (
    FilenameRule(MaterialType.PS, ("styrofoam", "styro", "foam", "gabus", "busa", "polystyrene", "ps"), 0.9),
    FilenameRule(MaterialType.PVC, ("pvc", "pipa", "pipe", "vinyl", "selang", "hose"), 0.88),
    FilenameRule(MaterialType.HDPE, ("hdpe", "galon", "jerigen", "jerrycan", "susu", "milk", "deterjen", "detergent", "shampoo"), 0.85),
    FilenameRule(MaterialType.PP, ("sedotan", "straw", "tutup", "cap", "lid", "gelas", "cup", "pp"), 0.82),
    FilenameRule(MaterialType.LDPE, ("kresek", "kantong", "wrap", "ldpe", "bag"), 0.85),
    FilenameRule(MaterialType.PET, ("botol", "bottle", "aqua", "sprite", "coca", "cola", "fanta", "mineral", "pet"), 0.88),
    FilenameRule(MaterialType.LDPE, ("plastik", "plastic"), 0.75),
)


class FilenameMatcher:
    """First-match keyword lookup from filename to material.

    Without ``rng`` every rule reports its fixed confidence. With an
    injected ``random.Random`` the confidence is drawn uniformly from
    ``[0.75, 0.90]`` instead, which stays inside the matcher's band.
    """

    def __init__(
        self,
        rules: Optional[Sequence[FilenameRule]] = None,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.rules: List[FilenameRule] = list(rules or DEFAULT_RULES)
        self.rng = rng

    @classmethod
    def seeded(cls, seed: Optional[int]) -> "FilenameMatcher":
        return cls(rng=random.Random(seed) if seed is not None else None)

    def match(self, filename: Optional[str]) -> Optional[FilenameMatch]:
        if not filename:
            return None
        tokens = self.tokenize(filename)
        if not tokens:
            return None

        for rule in self.rules:
            for keyword in rule.keywords:
                if self._keyword_in(keyword, tokens):
                    confidence = self._confidence(rule)
                    logger.debug("Filename %r matched %s via %r", filename, rule.material.value, keyword)
                    return FilenameMatch(material=rule.material, confidence=confidence, keyword=keyword)
        return None

    @staticmethod
    def tokenize(filename: str) -> List[str]:
        stem = filename.rsplit("/", 1)[-1].rsplit("\\", 1)[-1]
        if "." in stem:
            stem = stem.rsplit(".", 1)[0]
        return [token for token in _SEPARATORS.split(stem.lower()) if token]

    @staticmethod
    def _keyword_in(keyword: str, tokens: Sequence[str]) -> bool:
        if len(keyword) < MIN_SUBSTRING_KEYWORD:
            return keyword in tokens
        return any(keyword in token for token in tokens)

    def _confidence(self, rule: FilenameRule) -> float:
        if self.rng is None:
            value = rule.confidence
        else:
            value = CONFIDENCE_LOW + self.rng.random() * 0.15
        return float(max(CONFIDENCE_LOW, min(CONFIDENCE_HIGH, value)))


_default_matcher = FilenameMatcher()


def match_filename(filename: Optional[str] = None) -> Optional[FilenameMatch]:
    """Module-level shortcut for :meth:`FilenameMatcher.match` with fixed confidences."""

    return _default_matcher.match(filename)
