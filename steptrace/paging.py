"""Page-replacement policies: FIFO, LRU, Optimal and LFU."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from .errors import MalformedInstanceError
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PageStep:
    """One page reference; ``frames`` is the frame table after it is served."""

    step_index: int
    page: int
    frames: tuple[int | None, ...]
    hit: bool
    replaced_index: int | None = None
    replaced_page: int | None = None


@dataclass(frozen=True)
class PageReplacementResult(TraceResult):
    algorithm: str
    page_faults: int
    page_hits: int
    hit_ratio: float
    steps: tuple[PageStep, ...]


class _FrameTable:
    """Fixed-size frame table shared by every policy; records one step per reference."""

    def __init__(self, algorithm: str, sequence: Sequence[int], frame_size: int):
        if frame_size < 1:
            raise MalformedInstanceError(
                f"frame size must be at least 1, got {frame_size}"
            )
        self.algorithm = algorithm
        self.sequence = list(sequence)
        self.frames: list[int | None] = [None] * frame_size
        self.trace: TraceRecorder[PageStep] = TraceRecorder(PageStep)
        self.hits = 0
        self.faults = 0
        logger.info(
            "%s: %d references, %d frames", algorithm, len(self.sequence), frame_size
        )

    def resident(self, page: int) -> bool:
        return page in self.frames

    def free_slot(self) -> int | None:
        for slot, page in enumerate(self.frames):
            if page is None:
                return slot
        return None

    def hit(self, page: int) -> None:
        self.hits += 1
        self.trace.record(page=page, frames=self.frames, hit=True)

    def load(self, page: int, slot: int) -> None:
        evicted = self.frames[slot]
        self.frames[slot] = page
        self.faults += 1
        if evicted is not None:
            logger.debug(
                "%s evicted page %s from slot %d", self.algorithm, evicted, slot
            )
        self.trace.record(
            page=page,
            frames=self.frames,
            hit=False,
            replaced_index=slot,
            replaced_page=evicted,
        )

    def result(self) -> PageReplacementResult:
        total = len(self.sequence)
        ratio = round(self.hits / total * 100, 2) if total else 0.0
        self.trace.stats.bump("faults", self.faults)
        self.trace.stats.bump("hits", self.hits)
        logger.info("%s finished: %s", self.algorithm, self.trace.stats.report())
        return PageReplacementResult(
            algorithm=self.algorithm,
            page_faults=self.faults,
            page_hits=self.hits,
            hit_ratio=ratio,
            steps=self.trace.steps,
        )


def fifo_page_replacement(
    sequence: Sequence[int], frame_size: int
) -> PageReplacementResult:
    """Evict the oldest-loaded page, tracked by a rotating insertion slot."""
    table = _FrameTable("FIFO (First In First Out)", sequence, frame_size)
    next_slot = 0
    for page in table.sequence:
        if table.resident(page):
            table.hit(page)
            continue
        table.load(page, next_slot)
        next_slot = (next_slot + 1) % frame_size
    return table.result()


def lru_page_replacement(
    sequence: Sequence[int], frame_size: int
) -> PageReplacementResult:
    """Evict the page whose last reference is oldest."""
    table = _FrameTable("LRU (Least Recently Used)", sequence, frame_size)
    recency: list[int] = []
    for page in table.sequence:
        if table.resident(page):
            recency.remove(page)
            recency.append(page)
            table.hit(page)
            continue
        slot = table.free_slot()
        if slot is None:
            victim = recency.pop(0)
            slot = table.frames.index(victim)
        recency.append(page)
        table.load(page, slot)
    return table.result()


def _next_use(sequence: list[int], start: int, page: int) -> float:
    for position in range(start, len(sequence)):
        if sequence[position] == page:
            return position
    return float("inf")


def optimal_page_replacement(
    sequence: Sequence[int], frame_size: int
) -> PageReplacementResult:
    """Evict the page referenced farthest in the future (never again counts as farthest).

    Ties go to the lowest slot index.
    """
    table = _FrameTable("Optimal", sequence, frame_size)
    for position, page in enumerate(table.sequence):
        if table.resident(page):
            table.hit(page)
            continue
        slot = table.free_slot()
        if slot is None:
            distances = [
                _next_use(table.sequence, position + 1, resident)
                for resident in table.frames
            ]
            slot = distances.index(max(distances))
        table.load(page, slot)
    return table.result()


def lfu_page_replacement(
    sequence: Sequence[int], frame_size: int
) -> PageReplacementResult:
    """Evict the least frequently used page, oldest last use first among equals.

    An evicted page's counters are discarded, so it starts over when reloaded.
    """
    table = _FrameTable("LFU (Least Frequently Used)", sequence, frame_size)
    frequency: dict[int, int] = {}
    last_used: dict[int, int] = {}
    for position, page in enumerate(table.sequence):
        if table.resident(page):
            frequency[page] += 1
            last_used[page] = position
            table.hit(page)
            continue
        slot = table.free_slot()
        if slot is None:
            slot = min(
                range(frame_size),
                key=lambda s: (frequency[table.frames[s]], last_used[table.frames[s]]),
            )
            evicted = table.frames[slot]
            del frequency[evicted]
            del last_used[evicted]
        frequency[page] = 1
        last_used[page] = position
        table.load(page, slot)
    return table.result()


PAGE_REPLACEMENT_ALGORITHMS: dict[
    str, Callable[[Sequence[int], int], PageReplacementResult]
] = {
    "fifo": fifo_page_replacement,
    "lru": lru_page_replacement,
    "optimal": optimal_page_replacement,
    "lfu": lfu_page_replacement,
}


def compare_page_replacement(
    sequence: Sequence[int], frame_size: int
) -> dict[str, PageReplacementResult]:
    """Run every policy on the same reference string."""
    return {
        name: algorithm(sequence, frame_size)
        for name, algorithm in PAGE_REPLACEMENT_ALGORITHMS.items()
    }
