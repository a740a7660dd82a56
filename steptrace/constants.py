"""Named literals shared across the engines."""

from __future__ import annotations

BLANK_SYMBOL = "_"
STACK_WILDCARD = ""
EPSILON = "ε"
EPSILON_SYMBOLS: frozenset[str] = frozenset({EPSILON, "eps", "epsilon"})

MOVE_LEFT = "L"
MOVE_RIGHT = "R"
MOVE_STAY = "S"

SCAN_LEFT = "left"
SCAN_RIGHT = "right"

TM_MAX_STEPS = 1000
TM_MIN_TAPE_LENGTH = 20
PDA_MAX_EPSILON_MOVES = 100
CFG_MAX_DEPTH = 20
DEFAULT_DISK_SIZE = 200
PUZZLE_MAX_EXPANSIONS = 5000

EMPTY_CELL = 0
QUEEN = 1
UNCOLORED = -1
NO_COLUMN = -1

PUZZLE_BLANK = 0
PUZZLE_MOVES: tuple[tuple[str, int, int], ...] = (
    ("UP", -1, 0),
    ("DOWN", 1, 0),
    ("LEFT", 0, -1),
    ("RIGHT", 0, 1),
)

FAMILY_AUTOMATA = "automata"
FAMILY_MATCHING = "matching"
FAMILY_PAGING = "paging"
FAMILY_DISK = "disk"
FAMILY_BACKTRACKING = "backtracking"
FAMILY_BRANCH_BOUND = "branch_bound"

SUPPORTED_FAMILIES: tuple[str, ...] = (
    FAMILY_AUTOMATA,
    FAMILY_MATCHING,
    FAMILY_PAGING,
    FAMILY_DISK,
    FAMILY_BACKTRACKING,
    FAMILY_BRANCH_BOUND,
)
