"""Naive and Knuth-Morris-Pratt substring search with comparison traces."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass

from .errors import MalformedInstanceError
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatchStep:
    step_index: int
    description: str
    text_index: int
    pattern_index: int
    comparison: str
    matched: bool = False
    found: bool = False
    shift: int = 0


@dataclass(frozen=True)
class NaiveMatchResult(TraceResult):
    matches: tuple[int, ...]
    total_comparisons: int
    steps: tuple[MatchStep, ...]


@dataclass(frozen=True)
class KMPMatchResult(TraceResult):
    matches: tuple[int, ...]
    lps: tuple[int, ...]
    total_comparisons: int
    steps: tuple[MatchStep, ...]


@dataclass(frozen=True)
class RegexResult(TraceResult):
    """Outcome of anchoring *pattern* against the whole of *input*."""

    matched: bool
    pattern: str
    input: str
    error: str | None
    steps: tuple[str, ...]


def _require_pattern(pattern: str) -> None:
    if not pattern:
        raise MalformedInstanceError("pattern must be non-empty")


def naive_string_match(text: str, pattern: str) -> NaiveMatchResult:
    """Try every alignment of *pattern* against *text*, left to right."""
    _require_pattern(pattern)
    n, m = len(text), len(pattern)
    logger.info("Naive search: text=%d chars, pattern=%d chars", n, m)

    trace: TraceRecorder[MatchStep] = TraceRecorder(MatchStep)
    matches: list[int] = []
    comparisons = 0

    for i in range(n - m + 1):
        trace.record(
            description=f"Starting comparison at text position {i}",
            text_index=i,
            pattern_index=0,
            comparison=f"'{text[i]}' vs '{pattern[0]}'",
        )
        j = 0
        while j < m:
            comparisons += 1
            a, b = text[i + j], pattern[j]
            if a != b:
                trace.record(
                    description=f"Character mismatch: '{a}' != '{b}'",
                    text_index=i + j,
                    pattern_index=j,
                    comparison=f"'{a}' vs '{b}'",
                )
                break
            trace.record(
                description=f"Character match: '{a}' == '{b}'",
                text_index=i + j,
                pattern_index=j,
                comparison=f"'{a}' vs '{b}'",
                matched=True,
            )
            j += 1
        else:
            matches.append(i)
            trace.record(
                description=f"Pattern found at position {i}",
                text_index=i,
                pattern_index=0,
                comparison="Complete match",
                matched=True,
                found=True,
            )

    trace.stats.bump("comparisons", comparisons)
    logger.info("Naive search found %d matches, %s", len(matches), trace.stats.report())
    return NaiveMatchResult(
        matches=tuple(matches), total_comparisons=comparisons, steps=trace.steps
    )


def build_lps(pattern: str) -> tuple[int, ...]:
    """Longest proper prefix of ``pattern[:i + 1]`` that is also its suffix, per i."""
    lps = [0] * len(pattern)
    length = 0
    i = 1
    while i < len(pattern):
        if pattern[i] == pattern[length]:
            length += 1
            lps[i] = length
            i += 1
        elif length:
            length = lps[length - 1]
        else:
            i += 1
    return tuple(lps)


def kmp_string_match(text: str, pattern: str) -> KMPMatchResult:
    """Search with the KMP failure function; the text pointer never moves back.

    After a full match the scan resumes from ``lps[m - 1]`` so overlapping
    occurrences are reported. The scan stops as soon as the unread text is
    shorter than the unmatched tail of the pattern.
    """
    _require_pattern(pattern)
    n, m = len(text), len(pattern)
    lps = build_lps(pattern)
    logger.info("KMP search: text=%d chars, pattern=%d chars", n, m)

    trace: TraceRecorder[MatchStep] = TraceRecorder(MatchStep)
    trace.record(
        description=f"KMP preprocessing complete. LPS array: {list(lps)}",
        text_index=0,
        pattern_index=0,
        comparison="Preprocessing",
    )
    matches: list[int] = []
    comparisons = 0
    i = j = 0

    while i < n and n - i >= m - j:
        comparisons += 1
        a, b = text[i], pattern[j]
        if a == b:
            trace.record(
                description=f"Character match: '{a}' == '{b}'",
                text_index=i,
                pattern_index=j,
                comparison=f"'{a}' vs '{b}'",
                matched=True,
            )
            i += 1
            j += 1
            if j == m:
                start = i - m
                matches.append(start)
                trace.record(
                    description=f"Pattern found at position {start}",
                    text_index=start,
                    pattern_index=0,
                    comparison="Complete match",
                    matched=True,
                    found=True,
                    shift=m - lps[m - 1],
                )
                j = lps[m - 1]
        elif j:
            trace.record(
                description=(
                    f"Character mismatch: '{a}' != '{b}', "
                    f"fall back to pattern index {lps[j - 1]}"
                ),
                text_index=i,
                pattern_index=j,
                comparison=f"'{a}' vs '{b}'",
                shift=j - lps[j - 1],
            )
            j = lps[j - 1]
        else:
            trace.record(
                description=f"Character mismatch: '{a}' != '{b}', advance text",
                text_index=i,
                pattern_index=j,
                comparison=f"'{a}' vs '{b}'",
                shift=1,
            )
            i += 1

    trace.stats.bump("comparisons", comparisons)
    logger.info("KMP search found %d matches, %s", len(matches), trace.stats.report())
    return KMPMatchResult(
        matches=tuple(matches),
        lps=lps,
        total_comparisons=comparisons,
        steps=trace.steps,
    )


def match_regex(pattern: str, text: str) -> RegexResult:
    """Test whether *pattern* matches the whole of *text*.

    A pattern that does not compile yields ``matched=False`` with the
    compiler's message in ``error``.
    """
    steps = [f"Pattern: {pattern}", f"Input: {text}"]
    try:
        compiled = re.compile(pattern)
    except re.error as exc:
        logger.info("Regex %r failed to compile: %s", pattern, exc)
        steps.append(f"Error: invalid regular expression ({exc})")
        return RegexResult(
            matched=False, pattern=pattern, input=text, error=str(exc), steps=tuple(steps)
        )
    steps.append("Testing pattern against the whole input")
    matched = compiled.fullmatch(text) is not None
    steps.append(f"Result: {'MATCH' if matched else 'NO MATCH'}")
    logger.info("Regex %r %s %r", pattern, "matched" if matched else "rejected", text)
    return RegexResult(
        matched=matched, pattern=pattern, input=text, error=None, steps=tuple(steps)
    )
