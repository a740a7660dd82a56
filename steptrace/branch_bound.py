"""Branch and bound: travelling salesman and the sliding-tile puzzle."""

from __future__ import annotations

import heapq
import itertools
import logging
from collections.abc import Sequence
from dataclasses import dataclass

from . import constants
from .errors import MalformedInstanceError
from .run_types import DEFAULT_CONFIG, EngineConfig
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)

Board = tuple[tuple[int, ...], ...]


# ── Travelling salesman ──────────────────────────────────────────


@dataclass(frozen=True)
class TSPStep:
    step_index: int
    description: str
    current_path: tuple[int, ...]
    current_cost: float
    bound: float
    level: int
    pruned: bool = False


@dataclass(frozen=True)
class TSPResult(TraceResult):
    min_cost: float
    optimal_path: tuple[int, ...]
    total_nodes: int
    pruned_nodes: int
    steps: tuple[TSPStep, ...]


def _check_square(matrix: Sequence[Sequence[float]], what: str) -> int:
    n = len(matrix)
    if n == 0:
        raise MalformedInstanceError(f"{what} must not be empty")
    for i, row in enumerate(matrix):
        if len(row) != n:
            raise MalformedInstanceError(
                f"{what} must be square: row {i} has {len(row)} entries, expected {n}"
            )
    return n


def travelling_salesman(cost_matrix: Sequence[Sequence[float]]) -> TSPResult:
    """Find a cheapest tour from city 0 by depth-first branch and bound.

    The bound of a partial path is its cost plus the cheapest outgoing edge of
    every unvisited city, plus the closing edge once the path is complete. A
    child is pruned when its bound is not below the best tour found so far.
    """
    n = _check_square(cost_matrix, "cost matrix")
    logger.info("TSP over %d cities", n)
    cheapest_exit = [
        min((cost_matrix[i][j] for j in range(n) if j != i), default=0)
        for i in range(n)
    ]
    trace: TraceRecorder[TSPStep] = TraceRecorder(TSPStep)
    best_cost = float("inf")
    best_path: list[int] = []
    counts = {"nodes": 0, "pruned": 0}

    def bound(path: list[int], cost: float, visited: list[bool]) -> float:
        estimate = cost + sum(cheapest_exit[i] for i in range(n) if not visited[i])
        if len(path) == n:
            estimate += cost_matrix[path[-1]][0]
        return estimate

    def expand(path: list[int], visited: list[bool], cost: float) -> None:
        nonlocal best_cost, best_path
        counts["nodes"] += 1
        if len(path) == n:
            total = cost + cost_matrix[path[-1]][0]
            tour = path + [0]
            trace.record(
                description=f"Complete tour found with cost {total}",
                current_path=tour,
                current_cost=total,
                bound=total,
                level=n,
            )
            if total < best_cost:
                best_cost, best_path = total, tour
                trace.record(
                    description=f"New best tour, cost {total}",
                    current_path=tour,
                    current_cost=total,
                    bound=total,
                    level=n,
                )
            return
        for city in range(1, n):
            if visited[city]:
                continue
            path.append(city)
            visited[city] = True
            child_cost = cost + cost_matrix[path[-2]][city]
            child_bound = bound(path, child_cost, visited)
            trace.record(
                description=(
                    f"Exploring city {city}, cost {child_cost}, bound {child_bound}"
                ),
                current_path=path,
                current_cost=child_cost,
                bound=child_bound,
                level=len(path),
            )
            if child_bound < best_cost:
                expand(path, visited, child_cost)
            else:
                counts["pruned"] += 1
                trace.record(
                    description=f"Pruned: bound {child_bound} >= best {best_cost}",
                    current_path=path,
                    current_cost=child_cost,
                    bound=child_bound,
                    level=len(path),
                    pruned=True,
                )
            visited[city] = False
            path.pop()

    visited = [False] * n
    visited[0] = True
    trace.record(
        description=f"Starting TSP with {n} cities at city 0",
        current_path=[0],
        current_cost=0,
        bound=bound([0], 0, visited),
        level=1,
    )
    expand([0], visited, 0)
    trace.stats.bump("nodes", counts["nodes"])
    trace.stats.bump("pruned", counts["pruned"])
    logger.info("TSP best tour cost %s, %s", best_cost, trace.stats.report())
    return TSPResult(
        min_cost=best_cost,
        optimal_path=tuple(best_path),
        total_nodes=counts["nodes"],
        pruned_nodes=counts["pruned"],
        steps=trace.steps,
    )


# ── Sliding-tile puzzle ──────────────────────────────────────────


@dataclass(frozen=True)
class PuzzleStep:
    step_index: int
    description: str
    board: Board
    move: str
    cost: int
    heuristic: int
    total: int


@dataclass(frozen=True)
class PuzzleResult(TraceResult):
    solved: bool
    solution: tuple[str, ...]
    total_moves: int
    nodes_explored: int
    steps: tuple[PuzzleStep, ...]


def _as_board(raw: Sequence[Sequence[int]], what: str) -> Board:
    _check_square(raw, what)
    board = tuple(tuple(row) for row in raw)
    tiles = [tile for row in board for tile in row]
    if tiles.count(constants.PUZZLE_BLANK) != 1:
        raise MalformedInstanceError(f"{what} must contain exactly one blank tile")
    if len(set(tiles)) != len(tiles):
        raise MalformedInstanceError(f"{what} repeats a tile")
    return board


def _find_blank(board: Board) -> tuple[int, int]:
    for r, row in enumerate(board):
        for c, tile in enumerate(row):
            if tile == constants.PUZZLE_BLANK:
                return r, c
    raise MalformedInstanceError("board has no blank tile")


def _parity(board: Board) -> int:
    """Permutation parity, folded with the blank's row on even-width boards.

    Sliding a tile sideways keeps this value; sliding it vertically flips
    both terms together on even widths and neither on odd widths.
    """
    tiles = [t for row in board for t in row if t != constants.PUZZLE_BLANK]
    inversions = sum(1 for a, b in itertools.combinations(tiles, 2) if a > b)
    if len(board) % 2 == 0:
        inversions += _find_blank(board)[0]
    return inversions % 2


def _manhattan(board: Board, goal: dict[int, tuple[int, int]]) -> int:
    return sum(
        abs(r - goal[tile][0]) + abs(c - goal[tile][1])
        for r, row in enumerate(board)
        for c, tile in enumerate(row)
        if tile != constants.PUZZLE_BLANK
    )


def _slide(board: Board, blank: tuple[int, int], to: tuple[int, int]) -> Board:
    cells = [list(row) for row in board]
    (r, c), (nr, nc) = blank, to
    cells[r][c], cells[nr][nc] = cells[nr][nc], constants.PUZZLE_BLANK
    return tuple(tuple(row) for row in cells)


def fifteen_puzzle(
    initial: Sequence[Sequence[int]],
    target: Sequence[Sequence[int]],
    max_expansions: int | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PuzzleResult:
    """Solve a square sliding-tile puzzle with least-cost (g + h) search.

    ``h`` is the Manhattan distance to *target*; ``g`` counts moves of the
    blank. Equal priorities are expanded in insertion order. Instances whose
    parity differs from the target's are reported unsolvable without search.

    Args:
        initial: Starting board, ``0`` marks the blank.
        target: Goal board with the same tiles.
        max_expansions: Stop unsolved after this many expansions; defaults to
            ``config.puzzle_max_expansions``.
        config: Engine bounds.

    Returns:
        A PuzzleResult with the move list when solved.
    """
    start = _as_board(initial, "initial board")
    goal_board = _as_board(target, "target board")
    if len(start) != len(goal_board) or sorted(sum(start, ())) != sorted(
        sum(goal_board, ())
    ):
        raise MalformedInstanceError("initial and target boards hold different tiles")
    limit = config.puzzle_max_expansions if max_expansions is None else max_expansions
    size = len(start)
    goal = {
        tile: (r, c)
        for r, row in enumerate(goal_board)
        for c, tile in enumerate(row)
    }
    logger.info("Sliding puzzle %dx%d, expansion limit %d", size, size, limit)
    trace: TraceRecorder[PuzzleStep] = TraceRecorder(PuzzleStep)

    if _parity(start) != _parity(goal_board):
        trace.record(
            description="Puzzle is unsolvable: parity differs from the target",
            board=start,
            move="UNSOLVABLE",
            cost=0,
            heuristic=0,
            total=0,
        )
        logger.info("Sliding puzzle rejected by parity check")
        return PuzzleResult(
            solved=False,
            solution=(),
            total_moves=0,
            nodes_explored=0,
            steps=trace.steps,
        )

    h0 = _manhattan(start, goal)
    trace.record(
        description=f"Starting puzzle with heuristic {h0}",
        board=start,
        move="START",
        cost=0,
        heuristic=h0,
        total=h0,
    )
    order = itertools.count()
    frontier: list[tuple[int, int, int, Board, tuple[str, ...]]] = [
        (h0, next(order), 0, start, ())
    ]
    seen: set[Board] = set()
    explored = 0

    while frontier and explored < limit:
        _, _, cost, board, path = heapq.heappop(frontier)
        if board in seen:
            continue
        seen.add(board)
        explored += 1
        if board == goal_board:
            trace.record(
                description=f"Solution found in {len(path)} moves",
                board=board,
                move="SOLVED",
                cost=cost,
                heuristic=0,
                total=cost,
            )
            trace.stats.bump("expanded", explored)
            logger.info("Sliding puzzle solved: %s", trace.stats.report())
            return PuzzleResult(
                solved=True,
                solution=path,
                total_moves=len(path),
                nodes_explored=explored,
                steps=trace.steps,
            )
        r, c = _find_blank(board)
        for name, dr, dc in constants.PUZZLE_MOVES:
            nr, nc = r + dr, c + dc
            if not (0 <= nr < size and 0 <= nc < size):
                continue
            child = _slide(board, (r, c), (nr, nc))
            if child in seen:
                continue
            h = _manhattan(child, goal)
            heapq.heappush(
                frontier, (cost + 1 + h, next(order), cost + 1, child, path + (name,))
            )
            trace.record(
                description=f"Move {name}: cost={cost + 1}, h={h}",
                board=child,
                move=name,
                cost=cost + 1,
                heuristic=h,
                total=cost + 1 + h,
            )

    trace.stats.bump("expanded", explored)
    logger.warning("Sliding puzzle stopped unsolved: %s", trace.stats.report())
    return PuzzleResult(
        solved=False,
        solution=(),
        total_moves=0,
        nodes_explored=explored,
        steps=trace.steps,
    )
