"""Tests for naive search, the LPS table, KMP search and regex matching."""

import pytest

from steptrace.errors import MalformedInstanceError
from steptrace.matching import (
    build_lps,
    kmp_string_match,
    match_regex,
    naive_string_match,
)

TEXT = "AABAACAADAABAABA"


class TestNaiveStringMatch:
    def test_finds_every_occurrence(self):
        assert naive_string_match(TEXT, "AABA").matches == (0, 9, 12)

    def test_overlapping_occurrences(self):
        assert naive_string_match("AAAA", "AA").matches == (0, 1, 2)

    def test_pattern_longer_than_text(self):
        result = naive_string_match("AB", "ABC")
        assert result.matches == ()
        assert result.total_comparisons == 0
        assert result.steps == ()

    def test_comparison_count(self):
        # alignments 0..2: two matches | B!=A | two matches
        result = naive_string_match("ABAB", "AB")
        assert result.total_comparisons == 5
        assert result.matches == (0, 2)

    def test_found_step_marks_match(self):
        result = naive_string_match("XAB", "AB")
        found = [s for s in result.steps if s.found]
        assert len(found) == 1
        assert found[0].text_index == 1
        assert all(s.shift == 0 for s in result.steps)

    def test_empty_pattern_raises(self):
        with pytest.raises(MalformedInstanceError):
            naive_string_match("abc", "")


class TestBuildLps:
    @pytest.mark.parametrize(
        "pattern,expected",
        [
            ("A", (0,)),
            ("AAAA", (0, 1, 2, 3)),
            ("ABAB", (0, 0, 1, 2)),
            ("AABAACAABAA", (0, 1, 0, 1, 2, 0, 1, 2, 3, 4, 5)),
            ("ABCDE", (0, 0, 0, 0, 0)),
            ("AAACAAAA", (0, 1, 2, 0, 1, 2, 3, 3)),
        ],
    )
    def test_known_tables(self, pattern, expected):
        assert build_lps(pattern) == expected

    def test_empty_pattern(self):
        assert build_lps("") == ()


class TestKmpStringMatch:
    def test_matches_and_lps(self):
        result = kmp_string_match(TEXT, "AABA")
        assert result.matches == (0, 9, 12)
        assert result.lps == (0, 1, 0, 1)

    def test_overlapping_occurrences(self):
        assert kmp_string_match("AAAA", "AA").matches == (0, 1, 2)

    def test_first_step_is_preprocessing(self):
        result = kmp_string_match(TEXT, "AABA")
        assert result.steps[0].comparison == "Preprocessing"
        assert result.steps[0].step_index == 0

    def test_text_pointer_never_moves_back(self):
        result = kmp_string_match(TEXT, "AABA")
        compared = [s.text_index for s in result.steps[1:] if not s.found]
        assert compared == sorted(compared)

    def test_found_step_shift_uses_lps(self):
        result = kmp_string_match("ABABAB", "ABAB")
        found = [s for s in result.steps if s.found]
        assert [s.text_index for s in found] == [0, 2]
        assert all(s.shift == 2 for s in found)

    def test_mismatch_shifts(self):
        result = kmp_string_match("ABX", "ABC")
        mismatches = [s for s in result.steps[1:] if not s.matched]
        # "X" vs "C" at j=2 slides by 2 - lps[1] = 2, then stops early
        assert [(m.pattern_index, m.shift) for m in mismatches] == [(2, 2)]

    def test_mismatch_at_pattern_start_shifts_by_one(self):
        result = kmp_string_match("XXAB", "AB")
        first = result.steps[1]
        assert (first.matched, first.shift, first.pattern_index) == (False, 1, 0)

    def test_stops_when_remaining_text_too_short(self):
        result = kmp_string_match("XYZAB", "ABC")
        # X, Y, Z mismatch; 'A' at index 3 leaves 2 chars for a 3-char pattern
        assert result.total_comparisons == 3
        assert result.matches == ()

    def test_pattern_longer_than_text(self):
        result = kmp_string_match("AB", "ABC")
        assert result.matches == ()
        assert result.total_comparisons == 0
        assert result.step_count == 1

    def test_fewer_comparisons_than_naive_on_repetitive_text(self):
        text = "A" * 30 + "B"
        pattern = "A" * 5 + "B"
        kmp = kmp_string_match(text, pattern)
        naive = naive_string_match(text, pattern)
        assert kmp.matches == naive.matches == (25,)
        assert kmp.total_comparisons < naive.total_comparisons

    def test_empty_pattern_raises(self):
        with pytest.raises(MalformedInstanceError):
            kmp_string_match("abc", "")


class TestMatchRegex:
    def test_whole_input_must_match(self):
        assert match_regex("a*b", "aaab").matched is True
        assert match_regex("a*b", "aaabc").matched is False
        assert match_regex("b", "ab").matched is False

    def test_steps_describe_run(self):
        result = match_regex("(ab)+", "abab")
        assert result.steps[0] == "Pattern: (ab)+"
        assert result.steps[-1] == "Result: MATCH"
        assert result.error is None

    def test_invalid_pattern_reported_not_raised(self):
        result = match_regex("(a", "a")
        assert result.matched is False
        assert result.error
        assert result.steps[-1].startswith("Error")

    def test_to_dict(self):
        data = match_regex("a", "a").to_dict()
        assert data["matched"] is True
        assert data["input"] == "a"
