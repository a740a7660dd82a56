"""Disk-scheduling policies: FCFS, SSTF, SCAN, C-SCAN, LOOK and C-LOOK."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from . import constants
from .errors import MalformedInstanceError
from .run_types import ScanDirection
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DiskStep:
    step_index: int
    position: int
    distance: int
    cumulative_seek: int
    pending: tuple[int, ...]


@dataclass(frozen=True)
class DiskResult(TraceResult):
    algorithm: str
    sequence: tuple[int, ...]
    seek_time: int
    steps: tuple[DiskStep, ...]


class _Head:
    """Moves the head and records a step per visited position."""

    def __init__(self, algorithm: str, queue: Sequence[int], head: int):
        self.algorithm = algorithm
        self.position = head
        self.seek_time = 0
        self.pending = list(queue)
        self.trace: TraceRecorder[DiskStep] = TraceRecorder(DiskStep)
        logger.info("%s: %d requests, head at %d", algorithm, len(self.pending), head)
        self.trace.record(
            position=head, distance=0, cumulative_seek=0, pending=self.pending
        )

    def move(self, position: int, service: bool = True) -> None:
        distance = abs(position - self.position)
        self.position = position
        self.seek_time += distance
        if service:
            self.pending.remove(position)
        self.trace.record(
            position=position,
            distance=distance,
            cumulative_seek=self.seek_time,
            pending=self.pending,
        )

    def result(self) -> DiskResult:
        steps = self.trace.steps
        logger.info(
            "%s finished: seek time %d over %d moves",
            self.algorithm,
            self.seek_time,
            len(steps) - 1,
        )
        return DiskResult(
            algorithm=self.algorithm,
            sequence=tuple(step.position for step in steps),
            seek_time=self.seek_time,
            steps=steps,
        )


def _direction(direction: str | ScanDirection) -> ScanDirection:
    try:
        return ScanDirection(direction)
    except ValueError as exc:
        raise MalformedInstanceError(
            f"direction must be 'left' or 'right', got {direction!r}"
        ) from exc


def _check_bounds(queue: Sequence[int], head: int, disk_size: int) -> None:
    if disk_size < 1:
        raise MalformedInstanceError(f"disk size must be positive, got {disk_size}")
    outside = [p for p in (head, *queue) if not 0 <= p < disk_size]
    if outside:
        raise MalformedInstanceError(
            f"cylinders {outside} lie outside [0, {disk_size})"
        )


def _split(queue: Sequence[int], head: int) -> tuple[list[int], list[int]]:
    """Requests below the head (nearest first) and at or above it (nearest first)."""
    below = sorted((r for r in queue if r < head), reverse=True)
    above = sorted(r for r in queue if r >= head)
    return below, above


def fcfs(queue: Sequence[int], head: int) -> DiskResult:
    """Service requests in arrival order."""
    run = _Head("FCFS", queue, head)
    for request in queue:
        run.move(request)
    return run.result()


def sstf(queue: Sequence[int], head: int) -> DiskResult:
    """Always service the pending request nearest the head; first found wins ties."""
    run = _Head("SSTF", queue, head)
    while run.pending:
        nearest = min(run.pending, key=lambda r: abs(r - run.position))
        run.move(nearest)
    return run.result()


def scan(
    queue: Sequence[int],
    head: int,
    direction: str | ScanDirection = ScanDirection.LEFT,
    disk_size: int = constants.DEFAULT_DISK_SIZE,
) -> DiskResult:
    """Elevator sweep that runs to the disk edge before reversing.

    The edge is visited only when requests remain on the other side of the
    head and the head is not already sitting on it.
    """
    sweep = _direction(direction)
    _check_bounds(queue, head, disk_size)
    below, above = _split(queue, head)
    run = _Head("SCAN", queue, head)
    if sweep is ScanDirection.LEFT:
        first, edge, second = below, 0, above
    else:
        first, edge, second = above, disk_size - 1, below
    for request in first:
        run.move(request)
    if second:
        if run.position != edge:
            run.move(edge, service=False)
        for request in second:
            run.move(request)
    return run.result()


def cscan(
    queue: Sequence[int],
    head: int,
    disk_size: int = constants.DEFAULT_DISK_SIZE,
) -> DiskResult:
    """Sweep upward to the last cylinder, jump to cylinder 0, then sweep upward again.

    The jump is charged as ``disk_size - 1`` cylinders of travel.
    """
    _check_bounds(queue, head, disk_size)
    below, above = _split(queue, head)
    run = _Head("C-SCAN", queue, head)
    for request in above:
        run.move(request)
    if below:
        if run.position != disk_size - 1:
            run.move(disk_size - 1, service=False)
        run.move(0, service=False)
        for request in reversed(below):
            run.move(request)
    return run.result()


def look(
    queue: Sequence[int],
    head: int,
    direction: str | ScanDirection = ScanDirection.LEFT,
) -> DiskResult:
    """Like SCAN but reverses at the last request instead of the disk edge."""
    sweep = _direction(direction)
    below, above = _split(queue, head)
    run = _Head("LOOK", queue, head)
    first, second = (below, above) if sweep is ScanDirection.LEFT else (above, below)
    for request in (*first, *second):
        run.move(request)
    return run.result()


def clook(queue: Sequence[int], head: int) -> DiskResult:
    """Like C-SCAN but jumps straight to the lowest pending request."""
    below, above = _split(queue, head)
    run = _Head("C-LOOK", queue, head)
    for request in (*above, *reversed(below)):
        run.move(request)
    return run.result()


DISK_SCHEDULING_ALGORITHMS: dict[str, Callable[..., DiskResult]] = {
    "fcfs": fcfs,
    "sstf": sstf,
    "scan": scan,
    "cscan": cscan,
    "look": look,
    "clook": clook,
}


def compare_disk_scheduling(
    queue: Sequence[int],
    head: int,
    direction: str | ScanDirection = ScanDirection.LEFT,
    disk_size: int = constants.DEFAULT_DISK_SIZE,
) -> dict[str, DiskResult]:
    """Run every policy on the same request queue."""
    return {
        "fcfs": fcfs(queue, head),
        "sstf": sstf(queue, head),
        "scan": scan(queue, head, direction, disk_size),
        "cscan": cscan(queue, head, disk_size),
        "look": look(queue, head, direction),
        "clook": clook(queue, head),
    }
