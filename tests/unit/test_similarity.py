"""
Unit tests for text normalization and bigram similarity

Tests cover:
- normalize_text: case, punctuation, whitespace, accents, non-string input
- simple_normalize: the lowercase/trim upsert key
- compare_two_strings: Dice coefficient edge cases and symmetry
- SimilarityCalculator: thresholded comparisons
"""

import pytest

from vortex_memory_server.deduplication.similarity import (
    SimilarityCalculator, normalize_text, simple_normalize, compare_two_strings,
    DUPLICATE_THRESHOLD, UPSERT_MATCH_THRESHOLD, RETRIEVAL_THRESHOLD
)


class TestNormalizeText:

    def test_lowercases_and_strips_punctuation(self):
        assert normalize_text("  Hola,   MUNDO!! ") == "hola mundo"

    def test_collapses_inner_whitespace(self):
        assert normalize_text("me\tgusta\n\n el   jazz") == "me gusta el jazz"

    def test_keeps_accented_letters(self):
        assert normalize_text("¿Canción de ÑANDÚ?") == "canción de ñandú"

    @pytest.mark.parametrize("value", [None, "", 42, ["texto"], {"texto": "x"}])
    def test_non_string_or_empty_is_empty(self, value):
        assert normalize_text(value) == ""

    def test_idempotent(self):
        samples = ["Me gusta el Jazz!!", "  ¿Quién te creó?  ", "El cielo es azul.", "a-b_c"]
        for sample in samples:
            once = normalize_text(sample)
            assert normalize_text(once) == once


class TestSimpleNormalize:

    def test_lowercase_and_trim_only(self):
        assert simple_normalize("  Me Gusta el Jazz!! ") == "me gusta el jazz!!"

    def test_non_string_is_empty(self):
        assert simple_normalize(None) == ""


class TestCompareTwoStrings:

    def test_identical_strings_score_one(self):
        assert compare_two_strings("me gusta el jazz", "me gusta el jazz") == 1.0

    def test_two_empty_strings_score_one(self):
        assert compare_two_strings("", "") == 1.0

    def test_short_strings_score_zero(self):
        assert compare_two_strings("a", "b") == 0.0
        assert compare_two_strings("a", "abc") == 0.0
        assert compare_two_strings("", "abc") == 0.0

    def test_whitespace_is_ignored(self):
        assert compare_two_strings("abc def", "abcdef") == 1.0

    def test_known_value(self):
        # ni ig gh ht / na ac ch ht share only "ht"
        assert compare_two_strings("night", "nacht") == pytest.approx(0.25)

    def test_bigram_multiplicity_counts(self):
        # "aaaa" has aa x3, "aa" has aa x1: one shared bigram
        assert compare_two_strings("aaaa", "aa") == pytest.approx(0.5)

    def test_disjoint_strings_score_zero(self):
        assert compare_two_strings("abcd", "wxyz") == 0.0

    def test_symmetric_and_bounded(self):
        pairs = [
            ("me gusta el jazz", "me gusta el jazz!!"),
            ("vivo en madrid", "vivo en ciudad de méxico"),
            ("quién te creó", "carlos pérez"),
            ("aaaa", "aa"),
        ]
        for first, second in pairs:
            score = compare_two_strings(first, second)
            assert score == compare_two_strings(second, first)
            assert 0.0 <= score <= 1.0

    def test_near_identical_upsert_key_above_threshold(self):
        score = compare_two_strings(simple_normalize("me gusta el jazz"),
                                    simple_normalize("Me gusta el Jazz!!"))
        assert score == pytest.approx(24 / 26)
        assert score >= UPSERT_MATCH_THRESHOLD


class TestSimilarityCalculator:

    def test_default_threshold_is_duplicate_threshold(self):
        assert SimilarityCalculator().similarity_threshold == DUPLICATE_THRESHOLD

    def test_is_similar_after_normalization(self):
        calculator = SimilarityCalculator()
        assert calculator.calculate_similarity("El Cielo Es Azul.", "el cielo es azul") == 1.0
        assert calculator.is_similar("El Cielo Es Azul.", "el cielo es azul")

    def test_is_not_similar_for_unrelated_texts(self):
        calculator = SimilarityCalculator(similarity_threshold=RETRIEVAL_THRESHOLD)
        assert not calculator.is_similar("vivo en madrid", "odio el brócoli")

    def test_custom_normalizer(self):
        calculator = SimilarityCalculator(similarity_threshold=1.0, normalizer=simple_normalize)
        # Punctuation survives the simple key, so these are no longer identical
        assert not calculator.is_similar("El Cielo Es Azul.", "el cielo es azul")

    def test_thresholds_are_distinct(self):
        assert (DUPLICATE_THRESHOLD, UPSERT_MATCH_THRESHOLD, RETRIEVAL_THRESHOLD) == (0.70, 0.68, 0.50)
