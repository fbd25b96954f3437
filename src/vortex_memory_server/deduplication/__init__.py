"""
Vortex Memory Server - Deduplication Module

Text normalization, bigram similarity scoring and the bulk duplicate
cleanup that keeps the memory list free of near-identical entries.

Components:
- similarity.py: Normalization, Dice-coefficient scoring and thresholds
- deduplicator.py: Date-ordered duplicate collapsing and dry-run preview
"""

from .deduplicator import MemoryDeduplicator
from .similarity import (
    SimilarityCalculator, normalize_text, simple_normalize, compare_two_strings,
    DUPLICATE_THRESHOLD, UPSERT_MATCH_THRESHOLD, RETRIEVAL_THRESHOLD
)

__all__ = [
    'MemoryDeduplicator', 'SimilarityCalculator',
    'normalize_text', 'simple_normalize', 'compare_two_strings',
    'DUPLICATE_THRESHOLD', 'UPSERT_MATCH_THRESHOLD', 'RETRIEVAL_THRESHOLD'
]
