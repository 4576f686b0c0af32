"""
Report Come Play Backend — Duplicate Detector Unit Tests
==========================================================

What:  Tests for the fuzzy name/location matcher used before a field insert.
How:   Pure functions, no fixtures needed.

Test Strategy:
    ✅ similarity_ratio bounds, symmetry and case-insensitivity
    ✅ is_similar: empty inputs, exact, substring, fuzzy and threshold edges
    ✅ detect_duplicate: name-or-location rule, first match wins, no I/O
"""

import pytest

from reportcomeplay.services.duplicate_detector import (
    FieldRecord,
    collapse_whitespace,
    detect_duplicate,
    is_similar,
    normalize_for_comparison,
    similarity_ratio,
)


class TestNormalization:

    def test_collapse_whitespace(self):
        assert collapse_whitespace("  Old   Trafford\t Pitch \n") == "Old Trafford Pitch"

    def test_normalize_lowercases(self):
        assert normalize_for_comparison("  LEKKI  Phase 1 ") == "lekki phase 1"


class TestSimilarityRatio:

    def test_identical_strings(self):
        assert similarity_ratio("stadium", "stadium") == 1.0

    def test_case_insensitive(self):
        assert similarity_ratio("Stadium", "sTADIUM") == 1.0

    def test_one_edit(self):
        # "kitten" → "sitten": 1 substitution over 6 chars
        assert similarity_ratio("kitten", "sitten") == pytest.approx(5 / 6)

    def test_classic_levenshtein(self):
        # kitten/sitting: distance 3, longer length 7
        assert similarity_ratio("kitten", "sitting") == pytest.approx(4 / 7)

    def test_symmetric(self):
        assert similarity_ratio("Onikan", "Onikan Stadium") == similarity_ratio(
            "Onikan Stadium", "Onikan"
        )

    def test_completely_different(self):
        assert similarity_ratio("abc", "xyz") == 0.0

    def test_empty_returns_zero(self):
        assert similarity_ratio("", "abc") == 0.0
        assert similarity_ratio("", "") == 0.0


class TestIsSimilar:

    @pytest.mark.parametrize("a, b", [("", "x"), ("x", ""), (None, "x"), ("x", None), ("   ", "x")])
    def test_empty_never_matches(self, a, b):
        assert is_similar(a, b) is False

    def test_exact_after_normalization(self):
        assert is_similar("  Teslim  Balogun ", "teslim balogun") is True

    def test_substring_containment(self):
        assert is_similar("Onikan", "Onikan Stadium Lagos") is True
        assert is_similar("Onikan Stadium Lagos", "onikan") is True

    def test_short_substring_does_not_count(self):
        # both sides must be longer than 3 chars for containment
        assert is_similar("abc", "abcdefgh") is False

    def test_four_char_substring_counts(self):
        assert is_similar("abcd", "abcdefgh") is True

    def test_short_exact_still_matches(self):
        assert is_similar("ab", "AB") is True

    def test_fuzzy_above_threshold(self):
        # one typo in a 14-char name: ratio ≈ 0.93
        assert is_similar("Campos Stadium", "Campos Stadiun") is True

    def test_fuzzy_below_threshold(self):
        assert is_similar("Yaba Pitch", "Surulere Arena") is False

    def test_custom_threshold(self):
        # ratio 5/6 ≈ 0.833
        assert is_similar("kitten", "sitten", threshold=0.8) is True
        assert is_similar("kitten", "sitten", threshold=0.9) is False


class TestDetectDuplicate:

    def setup_method(self):
        self.existing = [
            FieldRecord(id=1, name="Mini Stadium", location="Surulere, Lagos"),
            FieldRecord(id=2, name="Campos Square Pitch", location="Lagos Island"),
            FieldRecord(id=3, name="Campos Square Pitch", location="Lagos Island"),
        ]

    def test_no_existing_records(self):
        assert detect_duplicate("Anything", "Anywhere", []) is None

    def test_unrelated_submission(self):
        assert detect_duplicate("Agege Stadium", "Agege", self.existing) is None

    def test_name_match(self):
        match = detect_duplicate("mini  stadium", "Ikeja", self.existing)
        assert match is not None
        assert match.id == 1

    def test_location_match_alone_is_enough(self):
        match = detect_duplicate("Brand New Ground", "Surulere, Lagos", self.existing)
        assert match is not None
        assert match.id == 1

    def test_first_match_wins(self):
        match = detect_duplicate("Campos Square", "Elsewhere", self.existing)
        assert match.id == 2

    def test_threshold_applies_to_fuzzy_step(self):
        existing = [FieldRecord(id=9, name="kitten", location="zzzzzz")]
        assert detect_duplicate("sitten", "qqqqqq", existing, threshold=0.8) is not None
        assert detect_duplicate("sitten", "qqqqqq", existing, threshold=0.9) is None

    def test_accepts_any_object_with_name_and_location(self):
        class Row:
            def __init__(self, name, location):
                self.name = name
                self.location = location

        row = Row("Legacy Pitch", "Ikoyi")
        assert detect_duplicate("legacy pitch", "Yaba", [row]) is row

    def test_consumes_iterables_lazily(self):
        def records():
            yield FieldRecord(id=1, name="Mini Stadium", location="Surulere")
            raise AssertionError("scan should stop at the first match")

        assert detect_duplicate("Mini Stadium", "x", records()).id == 1


class TestDocumentedExamples:

    def test_case_and_spacing_only(self):
        assert is_similar("Central Park", "central   park", 0.75) is True

    def test_name_contained_in_longer_name(self):
        assert is_similar("Green Field", "Green Field Complex", 0.75) is True

    def test_short_strings_fall_back_to_ratio(self):
        # no substring shortcut at 2 chars; ratio is 0.5
        assert similarity_ratio("Hi", "Ho") == 0.5
        assert is_similar("Hi", "Ho", 0.75) is False

    def test_empty_candidate(self):
        assert is_similar("", "Field", 0.75) is False

    def test_stored_record_with_trailing_space(self):
        stored = FieldRecord(id=7, name="New Pitch ", location="Unknown")
        assert detect_duplicate("New Pitch", "5th Ave", [stored], threshold=0.75) is stored

    def test_stored_record_with_inner_whitespace(self):
        stored = FieldRecord(id=8, name="  Old   Pitch", location="Ikeja\t GRA")
        assert detect_duplicate("Brand New", "ikeja gra", [stored]) is stored

    def test_empty_catalog(self):
        assert detect_duplicate("Unique Arena", "Nowhere", [], threshold=0.75) is None

    def test_first_of_two_matches(self):
        first = FieldRecord(id=1, name="Onikan Pitch", location="Lagos Island")
        second = FieldRecord(id=2, name="Onikan Pitch", location="Lagos Island")
        assert detect_duplicate("Onikan Pitch", "Ikoyi", [first, second]) is first
