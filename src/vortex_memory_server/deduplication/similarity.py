"""
Text Similarity Utilities for Memory Deduplication

Implements text normalization and the bigram (Dice coefficient) string
similarity used by bulk deduplication, upsert matching and retrieval.

The scorer follows the ``compareTwoStrings`` contract of the
``string-similarity`` package, so thresholds tuned against existing
snapshots keep their meaning.
"""

import re
import logging
from collections import Counter
from typing import Any, Callable, Optional

# Bulk cleanup over fully normalized text
DUPLICATE_THRESHOLD = 0.70
# Single-item upsert over lowercased/trimmed text
UPSERT_MATCH_THRESHOLD = 0.68
# Question-to-fact relevance
RETRIEVAL_THRESHOLD = 0.50

# \w is Unicode-aware, so accented letters and ñ survive normalization
_NON_WORD_RE = re.compile(r'[^\w\s]')
_WHITESPACE_RE = re.compile(r'\s+')


def normalize_text(text: Any) -> str:
    """Canonicalize text for comparison.

    Lowercases, strips punctuation and symbols, collapses whitespace and
    trims. Missing or non-string input yields an empty string.

    Args:
        text: Raw value, possibly None or not a string

    Returns:
        Normalized text
    """
    if not text or not isinstance(text, str):
        return ""
    normalized = _NON_WORD_RE.sub('', text.lower())
    return _WHITESPACE_RE.sub(' ', normalized).strip()


def simple_normalize(text: Any) -> str:
    """Lowercase and trim only; the upsert matching key."""
    if not isinstance(text, str):
        return ""
    return text.lower().strip()


def _bigrams(text: str) -> Counter:
    return Counter(text[i:i + 2] for i in range(len(text) - 1))


def compare_two_strings(first: str, second: str) -> float:
    """Dice coefficient over character bigrams.

    Whitespace is ignored. Identical inputs score 1.0 (including two empty
    strings); inputs shorter than two characters otherwise score 0.0.

    Args:
        first: First string, already normalized by the caller
        second: Second string, already normalized by the caller

    Returns:
        Similarity score (0-1)
    """
    first = _WHITESPACE_RE.sub('', first)
    second = _WHITESPACE_RE.sub('', second)

    if first == second:
        return 1.0
    if len(first) < 2 or len(second) < 2:
        return 0.0

    shared = sum((_bigrams(first) & _bigrams(second)).values())
    return (2.0 * shared) / (len(first) + len(second) - 2)


class SimilarityCalculator:
    """Thresholded text similarity with a pluggable normalization strategy."""

    def __init__(self, similarity_threshold: float = DUPLICATE_THRESHOLD,
                 normalizer: Optional[Callable[[Any], str]] = normalize_text):
        """Initialize similarity calculator.

        Args:
            similarity_threshold: Score at or above which texts are the same memory
            normalizer: Applied to both sides before scoring
        """
        self.similarity_threshold = similarity_threshold
        self.normalizer = normalizer

    def calculate_similarity(self, text1: Any, text2: Any) -> float:
        """Normalize both texts and score them."""
        return compare_two_strings(self.normalizer(text1), self.normalizer(text2))

    def is_similar(self, text1: Any, text2: Any) -> bool:
        """Check whether two texts reach the configured threshold."""
        similarity = self.calculate_similarity(text1, text2)
        logging.debug(f"Comparing '{text1}' <-> '{text2}' -> similarity {similarity:.3f}")
        return similarity >= self.similarity_threshold
