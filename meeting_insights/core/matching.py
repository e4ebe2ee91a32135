"""
Item text normalization and similarity matching.

Normalized keys give exact-match identity for deduplication; token sets and
substring containment give the fuzzy "same work item" judgment used when an
open item is checked against completed ones. Matching is a heuristic: false
positives and negatives are expected.
"""

import re
from typing import List, Literal, Set

from rapidfuzz import fuzz

from .config import config

DEFAULT_OVERLAP_THRESHOLD = 0.70
MIN_TOKEN_LENGTH = 3

_NON_ALNUM = re.compile(r"[\W_]+")


def normalize(text: str) -> str:
    """
    Canonicalize item text into a dedup key.

    Lowercases, collapses every run of non-alphanumeric characters into a
    single space and trims. Letters and digits of any script are kept.
    Empty or whitespace-only input yields "", which callers must never
    treat as a valid key.
    """
    return _NON_ALNUM.sub(" ", (text or "").lower()).strip()


def tokenize(text: str) -> List[str]:
    """Split normalized text on spaces, dropping tokens of two characters or fewer."""
    normalized = normalize(text)
    if not normalized:
        return []
    return [token for token in normalized.split(" ") if len(token) >= MIN_TOKEN_LENGTH]


def token_set(text: str) -> Set[str]:
    return set(tokenize(text))


def overlap_ratio(a: str, b: str) -> float:
    """Shared tokens divided by the size of the smaller token set (0.0 if either is empty)."""
    tokens_a = token_set(a)
    tokens_b = token_set(b)
    if not tokens_a or not tokens_b:
        return 0.0
    return len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))


class SimilarityMatcher:
    """
    Decides whether two item strings denote the same work item.

    The default "overlap" strategy checks substring containment of the
    normalized forms, then token overlap against the threshold. The "edit"
    strategy swaps the overlap step for rapidfuzz's token-set ratio so the
    heuristic can be tuned without touching the reconciler.
    """

    def __init__(self, threshold: float = DEFAULT_OVERLAP_THRESHOLD, strategy: Literal["overlap", "edit"] = "overlap"):
        if not 0.0 <= threshold <= 1.0:
            raise ValueError(f"Threshold must be between 0 and 1, got {threshold}")
        if strategy not in ("overlap", "edit"):
            raise ValueError(f"Unsupported match strategy: {strategy}")
        self.threshold = threshold
        self.strategy = strategy

    def is_same_item(self, a: str, b: str) -> bool:
        norm_a = normalize(a)
        norm_b = normalize(b)
        if not norm_a or not norm_b:
            return False

        if norm_a in norm_b or norm_b in norm_a:
            return True

        tokens_a = token_set(norm_a)
        tokens_b = token_set(norm_b)
        if not tokens_a or not tokens_b:
            return False

        if self.strategy == "edit":
            score = fuzz.token_set_ratio(" ".join(sorted(tokens_a)), " ".join(sorted(tokens_b))) / 100.0
            return score >= self.threshold

        ratio = len(tokens_a & tokens_b) / min(len(tokens_a), len(tokens_b))
        return ratio >= self.threshold


def get_matcher() -> SimilarityMatcher:
    """Matcher built from MATCH_THRESHOLD / MATCH_STRATEGY."""
    return SimilarityMatcher(threshold=config.match_threshold, strategy=config.match_strategy)  # type: ignore[arg-type]


_default_matcher = SimilarityMatcher()


def is_same_item(a: str, b: str) -> bool:
    """Default-threshold overlap match."""
    return _default_matcher.is_same_item(a, b)
