"""Backtracking solvers: N-Queens, graph colouring and subset sum."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from . import constants
from .errors import MalformedInstanceError
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


# ── N-Queens ─────────────────────────────────────────────────────


@dataclass(frozen=True)
class NQueensStep:
    step_index: int
    action: str
    board: tuple[tuple[int, ...], ...]
    placed_queens: tuple[tuple[int, int], ...]
    current_row: int
    current_col: int
    is_valid: bool
    backtrack: bool = False


@dataclass(frozen=True)
class NQueensResult(TraceResult):
    """``solutions`` holds at most one board: the search stops at the first."""

    solutions: tuple[tuple[tuple[int, ...], ...], ...]
    total_solutions: int
    steps: tuple[NQueensStep, ...]


def _queens(board: list[list[int]]) -> list[tuple[int, int]]:
    return [
        (row, col)
        for row, cells in enumerate(board)
        for col, cell in enumerate(cells)
        if cell == constants.QUEEN
    ]


def _queen_is_safe(board: list[list[int]], row: int, col: int) -> bool:
    """Check the column and both upward diagonals; rows below are still empty."""
    n = len(board)
    for r in range(row):
        offset = row - r
        if board[r][col] == constants.QUEEN:
            return False
        if col - offset >= 0 and board[r][col - offset] == constants.QUEEN:
            return False
        if col + offset < n and board[r][col + offset] == constants.QUEEN:
            return False
    return True


def n_queens(n: int) -> NQueensResult:
    """Place *n* non-attacking queens row by row, stopping at the first solution."""
    if n < 1:
        raise MalformedInstanceError(f"board size must be at least 1, got {n}")
    logger.info("N-Queens on a %dx%d board", n, n)
    board = [[constants.EMPTY_CELL] * n for _ in range(n)]
    trace: TraceRecorder[NQueensStep] = TraceRecorder(NQueensStep)
    solutions: list[list[list[int]]] = []

    def record(
        action: str, row: int, col: int, is_valid: bool, backtrack: bool = False
    ) -> None:
        trace.record(
            action=action,
            board=board,
            placed_queens=_queens(board),
            current_row=row,
            current_col=col,
            is_valid=is_valid,
            backtrack=backtrack,
        )

    def solve(row: int) -> bool:
        if row == n:
            solutions.append([list(cells) for cells in board])
            record(
                f"Solution found: all {n} queens placed safely",
                row,
                constants.NO_COLUMN,
                True,
            )
            return True
        for col in range(n):
            safe = _queen_is_safe(board, row, col)
            trace.stats.bump("attempts")
            record(f"Trying to place queen at ({row}, {col})", row, col, safe)
            if not safe:
                record(f"Position ({row}, {col}) is under attack", row, col, False)
                continue
            board[row][col] = constants.QUEEN
            record(f"Queen placed at ({row}, {col})", row, col, True)
            if solve(row + 1):
                return True
            board[row][col] = constants.EMPTY_CELL
            trace.stats.bump("backtracks")
            record(
                f"Backtracking: remove queen from ({row}, {col})", row, col, False, True
            )
        return False

    record(f"Starting N-Queens for a {n}x{n} board", 0, constants.NO_COLUMN, True)
    solve(0)
    logger.info(
        "N-Queens(%d): %d solution(s), %s", n, len(solutions), trace.stats.report()
    )
    return NQueensResult(
        solutions=tuple(tuple(tuple(r) for r in s) for s in solutions),
        total_solutions=len(solutions),
        steps=trace.steps,
    )


# ── Graph colouring ──────────────────────────────────────────────


@dataclass(frozen=True)
class GraphColoringStep:
    step_index: int
    action: str
    coloring: tuple[int, ...]
    vertex: int
    color: int
    is_valid: bool
    backtrack: bool = False


@dataclass(frozen=True)
class GraphColoringResult(TraceResult):
    coloring: tuple[int, ...]
    chromatic_number: int
    is_colorable: bool
    steps: tuple[GraphColoringStep, ...]


def _check_adjacency(adjacency: Sequence[Sequence[int]]) -> None:
    n = len(adjacency)
    for i, row in enumerate(adjacency):
        if len(row) != n:
            raise MalformedInstanceError(
                f"adjacency matrix must be square: row {i} has {len(row)} "
                f"entries, expected {n}"
            )


def graph_coloring(
    adjacency: Sequence[Sequence[int]], num_colors: int
) -> GraphColoringResult:
    """Colour vertices in index order with colours ``0..num_colors - 1``.

    Args:
        adjacency: Square 0/1 matrix; a non-zero entry marks an edge.
        num_colors: How many colours may be used.

    Returns:
        The first complete valid colouring found. ``chromatic_number`` is the
        number of colours that colouring uses, not a proven minimum.
    """
    _check_adjacency(adjacency)
    if num_colors < 1:
        raise MalformedInstanceError(f"need at least one colour, got {num_colors}")
    n = len(adjacency)
    logger.info("Graph colouring: %d vertices, %d colours", n, num_colors)
    coloring = [constants.UNCOLORED] * n
    trace: TraceRecorder[GraphColoringStep] = TraceRecorder(GraphColoringStep)

    def safe(vertex: int, color: int) -> bool:
        return all(
            not adjacency[vertex][other] or coloring[other] != color
            for other in range(n)
        )

    def solve(vertex: int) -> bool:
        if vertex == n:
            trace.record(
                action="All vertices coloured",
                coloring=coloring,
                vertex=vertex,
                color=constants.UNCOLORED,
                is_valid=True,
            )
            return True
        for color in range(num_colors):
            valid = safe(vertex, color)
            trace.record(
                action=f"Trying colour {color} for vertex {vertex}",
                coloring=coloring,
                vertex=vertex,
                color=color,
                is_valid=valid,
            )
            if not valid:
                continue
            coloring[vertex] = color
            trace.record(
                action=f"Assigned colour {color} to vertex {vertex}",
                coloring=coloring,
                vertex=vertex,
                color=color,
                is_valid=True,
            )
            if solve(vertex + 1):
                return True
            coloring[vertex] = constants.UNCOLORED
            trace.stats.bump("backtracks")
            trace.record(
                action=f"Backtrack: remove colour from vertex {vertex}",
                coloring=coloring,
                vertex=vertex,
                color=constants.UNCOLORED,
                is_valid=False,
                backtrack=True,
            )
        return False

    trace.record(
        action=f"Starting graph colouring with {num_colors} colours",
        coloring=coloring,
        vertex=0,
        color=constants.UNCOLORED,
        is_valid=True,
    )
    colorable = solve(0)
    logger.info(
        "Graph colouring %s, %s",
        "succeeded" if colorable else "failed",
        trace.stats.report(),
    )
    return GraphColoringResult(
        coloring=tuple(coloring) if colorable else (),
        chromatic_number=(max(coloring, default=-1) + 1) if colorable else -1,
        is_colorable=colorable,
        steps=trace.steps,
    )


# ── Subset sum ───────────────────────────────────────────────────


@dataclass(frozen=True)
class SubsetSumStep:
    step_index: int
    action: str
    current_subset: tuple[int, ...]
    current_sum: int
    target_sum: int
    index: int
    include: bool = False
    found: bool = False
    backtrack: bool = False


@dataclass(frozen=True)
class SubsetSumResult(TraceResult):
    has_subset: bool
    subset: tuple[int, ...]
    steps: tuple[SubsetSumStep, ...]


def subset_sum(numbers: Sequence[int], target: int) -> SubsetSumResult:
    """Decide include/exclude for each number in order until the sum hits *target*.

    A branch dies when the numbers run out or the running sum overshoots.
    The exclude step that follows a failed include is flagged as a backtrack
    and shows the subset with that number removed.
    """
    if target < 0 or any(x < 0 for x in numbers):
        raise MalformedInstanceError("subset sum takes non-negative numbers and target")
    logger.info("Subset sum: %d numbers, target %d", len(numbers), target)
    trace: TraceRecorder[SubsetSumStep] = TraceRecorder(SubsetSumStep)
    subset: list[int] = []
    found: list[int] = []

    def record(action: str, total: int, index: int, **flags: bool) -> None:
        trace.record(
            action=action,
            current_subset=subset,
            current_sum=total,
            target_sum=target,
            index=index,
            **flags,
        )

    def search(index: int, total: int) -> bool:
        record(
            f"Checking index {index}, current sum {total}, target {target}",
            total,
            index,
            found=total == target,
        )
        if total == target:
            found.extend(subset)
            record(f"Target sum {target} found: {subset}", total, index, found=True)
            return True
        if index >= len(numbers) or total > target:
            reason = "sum exceeded target" if total > target else "no more elements"
            record(f"Dead end: {reason}", total, index)
            return False
        value = numbers[index]
        subset.append(value)
        record(
            f"Including element {value} at index {index}",
            total + value,
            index,
            include=True,
        )
        if search(index + 1, total + value):
            return True
        subset.pop()
        trace.stats.bump("backtracks")
        record(
            f"Excluding element {value} at index {index}", total, index, backtrack=True
        )
        return search(index + 1, total)

    has_subset = search(0, 0)
    logger.info(
        "Subset sum %s, %s",
        "found" if has_subset else "not found",
        trace.stats.report(),
    )
    return SubsetSumResult(
        has_subset=has_subset, subset=tuple(found), steps=trace.steps
    )
