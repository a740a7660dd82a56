"""Literal fixture table run against every engine family."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from . import constants
from .api import run_algorithm
from .run_types import DEFAULT_CONFIG, EngineConfig
from .snapshot import to_plain

logger = logging.getLogger(__name__)

# ── Automaton definitions ────────────────────────────────────────

DFA_ENDS_WITH_01: dict[str, Any] = {
    "states": ["q0", "q1", "q2"],
    "startState": "q0",
    "acceptStates": ["q2"],
    "transitions": {
        "q0": {"0": "q1", "1": "q0"},
        "q1": {"0": "q1", "1": "q2"},
        "q2": {"0": "q1", "1": "q0"},
    },
}

DFA_EVEN_ZEROS: dict[str, Any] = {
    "states": [
        {"name": "even", "isStart": True, "isAccept": True},
        {"name": "odd"},
    ],
    "transitions": [
        {"from": "even", "symbol": "0", "to": "odd"},
        {"from": "even", "symbol": "1", "to": "even"},
        {"from": "odd", "symbol": "0", "to": "even"},
        {"from": "odd", "symbol": "1", "to": "odd"},
    ],
}

DFA_LENGTH_MOD_3: dict[str, Any] = {
    "start_state": "s0",
    "accept_states": ["s0"],
    "transitions": {
        "s0": {"a": "s1", "b": "s1"},
        "s1": {"a": "s2", "b": "s2"},
        "s2": {"a": "s0", "b": "s0"},
    },
}

NFA_CONTAINS_101: dict[str, Any] = {
    "startState": "q0",
    "acceptStates": ["q3"],
    "transitions": {
        "q0": {"0": ["q0"], "1": ["q0", "q1"]},
        "q1": {"0": ["q2"]},
        "q2": {"1": ["q3"]},
        "q3": {"0": ["q3"], "1": ["q3"]},
    },
}

NFA_ENDS_WITH_DOUBLE: dict[str, Any] = {
    "startState": "q0",
    "acceptStates": ["q3"],
    "transitions": [
        {"fromState": "q0", "symbol": "0", "toState": "q0"},
        {"fromState": "q0", "symbol": "0", "toState": "q1"},
        {"fromState": "q0", "symbol": "1", "toState": "q0"},
        {"fromState": "q0", "symbol": "1", "toState": "q2"},
        {"fromState": "q1", "symbol": "0", "toState": "q3"},
        {"fromState": "q2", "symbol": "1", "toState": "q3"},
    ],
}

PDA_AN_BN: dict[str, Any] = {
    "states": ["q0", "q1"],
    "startState": "q0",
    "acceptStates": ["q1"],
    "acceptByEmptyStack": True,
    "transitions": [
        {"from": "q0", "inputSymbol": "a", "stackSymbol": "", "to": "q0", "push": "A"},
        {"from": "q0", "inputSymbol": "b", "stackSymbol": "A", "to": "q1", "push": ""},
        {"from": "q1", "inputSymbol": "b", "stackSymbol": "A", "to": "q1", "push": ""},
    ],
}

PDA_BALANCED_PARENS: dict[str, Any] = {
    "states": ["q0", "q1"],
    "startState": "q0",
    "initialStackSymbol": "Z",
    "acceptStates": ["q1"],
    "transitions": [
        {"fromState": "q0", "inputSymbol": "(", "popSymbol": "Z", "toState": "q0",
         "pushSymbols": ["(", "Z"]},
        {"fromState": "q0", "inputSymbol": "(", "popSymbol": "(", "toState": "q0",
         "pushSymbols": ["(", "("]},
        {"fromState": "q0", "inputSymbol": ")", "popSymbol": "(", "toState": "q0",
         "pushSymbols": []},
        {"fromState": "q0", "inputSymbol": "ε", "popSymbol": "Z", "toState": "q1",
         "pushSymbols": ["Z"]},
    ],
}

PDA_AN_BN_FINAL_STATE: dict[str, Any] = {
    "states": ["q0", "q1", "q2"],
    "startState": "q0",
    "initialStackSymbol": "Z",
    "acceptStates": ["q2"],
    "transitions": [
        {"fromState": "q0", "inputSymbol": "a", "popSymbol": "Z", "toState": "q0",
         "pushSymbols": ["a", "Z"]},
        {"fromState": "q0", "inputSymbol": "a", "popSymbol": "a", "toState": "q0",
         "pushSymbols": ["a", "a"]},
        {"fromState": "q0", "inputSymbol": "b", "popSymbol": "a", "toState": "q1",
         "pushSymbols": []},
        {"fromState": "q0", "inputSymbol": "ε", "popSymbol": "Z", "toState": "q2",
         "pushSymbols": ["Z"]},
        {"fromState": "q1", "inputSymbol": "b", "popSymbol": "a", "toState": "q1",
         "pushSymbols": []},
        {"fromState": "q1", "inputSymbol": "ε", "popSymbol": "Z", "toState": "q2",
         "pushSymbols": ["Z"]},
    ],
}

# Deterministic first-match choice never guesses the midpoint, so only ""
# reaches the accept state.
PDA_PALINDROME: dict[str, Any] = {
    "states": ["q0", "q1", "q2"],
    "startState": "q0",
    "initialStackSymbol": "Z",
    "acceptStates": ["q2"],
    "transitions": [
        *(
            {"fromState": "q0", "inputSymbol": x, "popSymbol": "Z", "toState": "q0",
             "pushSymbols": [x, "Z"]}
            for x in "ab"
        ),
        *(
            {"fromState": "q0", "inputSymbol": x, "popSymbol": y, "toState": "q0",
             "pushSymbols": [x, y]}
            for x in "ab"
            for y in "ab"
        ),
        *(
            {"fromState": "q0", "inputSymbol": "ε", "popSymbol": top, "toState": "q1",
             "pushSymbols": [top]}
            for top in "Zab"
        ),
        {"fromState": "q1", "inputSymbol": "a", "popSymbol": "a", "toState": "q1",
         "pushSymbols": []},
        {"fromState": "q1", "inputSymbol": "b", "popSymbol": "b", "toState": "q1",
         "pushSymbols": []},
        {"fromState": "q1", "inputSymbol": "ε", "popSymbol": "Z", "toState": "q2",
         "pushSymbols": ["Z"]},
    ],
}

TM_BINARY_INCREMENT: dict[str, Any] = {
    "startState": "right",
    "acceptState": "done",
    "blankSymbol": "B",
    "transitions": [
        {"currentState": "right", "readSymbol": "0", "writeSymbol": "0",
         "moveDirection": "R", "nextState": "right"},
        {"currentState": "right", "readSymbol": "1", "writeSymbol": "1",
         "moveDirection": "R", "nextState": "right"},
        {"currentState": "right", "readSymbol": "B", "writeSymbol": "B",
         "moveDirection": "L", "nextState": "carry"},
        {"currentState": "carry", "readSymbol": "1", "writeSymbol": "0",
         "moveDirection": "L", "nextState": "carry"},
        {"currentState": "carry", "readSymbol": "0", "writeSymbol": "1",
         "moveDirection": "S", "nextState": "done"},
        {"currentState": "carry", "readSymbol": "B", "writeSymbol": "1",
         "moveDirection": "S", "nextState": "done"},
    ],
}

# ── Grammars ─────────────────────────────────────────────────────

CFG_ARITHMETIC: dict[str, Any] = {
    "terminals": ["+", "*", "(", ")", "id"],
    "nonTerminals": ["E", "T", "F"],
    "startSymbol": "E",
    "productions": [
        {"left": "E", "right": ["T", "+", "E"]},
        {"left": "E", "right": ["T"]},
        {"left": "T", "right": ["F", "*", "T"]},
        {"left": "T", "right": ["F"]},
        {"left": "F", "right": ["(", "E", ")"]},
        {"left": "F", "right": ["id"]},
    ],
}

CFG_BALANCED: dict[str, Any] = {
    "startSymbol": "S",
    "productions": {"S": [["(", "S", ")"], ["S", "S"], []]},
}

CFG_AN_BN: dict[str, Any] = {
    "terminals": ["a", "b"],
    "nonTerminals": ["S"],
    "startSymbol": "S",
    "productions": [
        {"left": "S", "right": "aSb"},
        {"left": "S", "right": "ε"},
    ],
}

# ── Other instances ──────────────────────────────────────────────

PAGES_SHORT = [1, 3, 0, 3, 5, 6, 3]
PAGES_LONG = [7, 0, 1, 2, 0, 3, 0, 4, 2, 3, 0, 3, 2]
DISK_QUEUE = [98, 183, 37, 122, 14, 124, 65, 67]
DISK_HEAD = 53

TRIANGLE = [[0, 1, 1], [1, 0, 1], [1, 1, 0]]
SQUARE_CYCLE = [[0, 1, 0, 1], [1, 0, 1, 0], [0, 1, 0, 1], [1, 0, 1, 0]]

TSP_FOUR_CITIES = [
    [0, 10, 15, 20],
    [10, 0, 35, 25],
    [15, 35, 0, 30],
    [20, 25, 30, 0],
]

EIGHT_PUZZLE_GOAL = [[1, 2, 3], [4, 5, 6], [7, 8, 0]]


@dataclass(frozen=True)
class Fixture:
    name: str
    family: str
    algorithm: str
    payload: Mapping[str, Any]
    expected: Mapping[str, Any]


@dataclass(frozen=True)
class FixtureFailure:
    name: str
    field: str
    expected: Any
    actual: Any


@dataclass(frozen=True)
class HarnessReport:
    passed: int
    failed: int
    failures: tuple[FixtureFailure, ...] = field(default_factory=tuple)

    @property
    def ok(self) -> bool:
        return self.failed == 0


def _automaton(name: str, algorithm: str, definition, text: str, accepted: bool) -> Fixture:
    return Fixture(
        name=name,
        family=constants.FAMILY_AUTOMATA,
        algorithm=algorithm,
        payload={"definition": definition, "input": text},
        expected={"accepted": accepted},
    )


def _grammar(name: str, grammar, text: str, derivable: bool) -> Fixture:
    return Fixture(
        name=name,
        family=constants.FAMILY_AUTOMATA,
        algorithm="cfg",
        payload={"grammar": grammar, "input": text},
        expected={"derivable": derivable},
    )


def _paging(algorithm: str, pages, frames: int, faults: int, hits: int) -> Fixture:
    return Fixture(
        name=f"{algorithm} {len(pages)} refs / {frames} frames",
        family=constants.FAMILY_PAGING,
        algorithm=algorithm,
        payload={"sequence": pages, "frameSize": frames},
        expected={"page_faults": faults, "page_hits": hits},
    )


def _disk(algorithm: str, seek: int, **extra: Any) -> Fixture:
    label = " ".join([algorithm, *(str(v) for v in extra.values())])
    return Fixture(
        name=label,
        family=constants.FAMILY_DISK,
        algorithm=algorithm,
        payload={"queue": DISK_QUEUE, "head": DISK_HEAD, **extra},
        expected={"seek_time": seek},
    )


FIXTURES: tuple[Fixture, ...] = (
    *(
        _automaton(f"dfa ends-with-01 {text!r}", "dfa", DFA_ENDS_WITH_01, text, ok)
        for text, ok in [
            ("01", True),
            ("101", True),
            ("110", False),
            ("10101", True),
            ("111001", True),
            ("000111000", False),
            ("1001", True),
            ("100", False),
        ]
    ),
    _automaton("dfa even-zeros ''", "dfa", DFA_EVEN_ZEROS, "", True),
    _automaton("dfa even-zeros '0'", "dfa", DFA_EVEN_ZEROS, "0", False),
    _automaton("dfa even-zeros '1001'", "dfa", DFA_EVEN_ZEROS, "1001", True),
    _automaton("dfa length-mod-3 'aba'", "dfa", DFA_LENGTH_MOD_3, "aba", True),
    _automaton("dfa length-mod-3 'abc'", "dfa", DFA_LENGTH_MOD_3, "abc", False),
    *(
        _automaton(f"nfa contains-101 {text!r}", "nfa", NFA_CONTAINS_101, text, ok)
        for text, ok in [("101", True), ("1101", True), ("110", False), ("111000", False)]
    ),
    *(
        _automaton(f"nfa ends-00-or-11 {text!r}", "nfa", NFA_ENDS_WITH_DOUBLE, text, ok)
        for text, ok in [("00", True), ("11", True), ("101", False), ("010", False)]
    ),
    *(
        _automaton(f"pda a^n b^n {text!r}", "pda", PDA_AN_BN, text, ok)
        for text, ok in [("ab", True), ("aabb", True), ("aab", False), ("abb", False)]
    ),
    *(
        _automaton(f"pda balanced-parens {text!r}", "pda", PDA_BALANCED_PARENS, text, ok)
        for text, ok in [
            ("()", True),
            ("(())", True),
            ("(()", False),
            ("((()))", True),
            ("(((())))", True),
            ("()()()())", False),
            ("(()(()))", True),
            ("", True),
        ]
    ),
    *(
        _automaton(
            f"pda a^n b^n by final state {text!r}", "pda", PDA_AN_BN_FINAL_STATE, text, ok
        )
        for text, ok in [
            ("ab", True),
            ("aabb", True),
            ("aaabbb", True),
            ("aaaabbbb", True),
            ("aab", False),
            ("abb", False),
            ("ba", False),
            ("", True),
        ]
    ),
    *(
        _automaton(f"pda palindrome {text!r}", "pda", PDA_PALINDROME, text, ok)
        for text, ok in [
            ("aba", False),
            ("abba", False),
            ("a", False),
            ("b", False),
            ("", True),
            ("ab", False),
            ("abab", False),
            ("abcba", False),
        ]
    ),
    *(
        _grammar(f"cfg arithmetic {text!r}", CFG_ARITHMETIC, text, ok)
        for text, ok in [
            ("id+id*id", True),
            ("(id)", True),
            ("id+", False),
            ("id*id+id", True),
            ("(id+id)*id", True),
            ("((id))", True),
            ("id+id+id", True),
            ("id*id*id", True),
            ("(id+id)*(id+id)", True),
            (")+id", False),
            ("id+(id*id)", True),
        ]
    ),
    *(
        _grammar(f"cfg balanced-parens {text!r}", CFG_BALANCED, text, ok)
        for text, ok in [
            ("()", True),
            ("(())", True),
            ("()()", True),
            ("((()))", True),
            ("", True),
            ("(()", False),
            ("())", False),
            (")(", False),
        ]
    ),
    *(
        _grammar(f"cfg a^n b^n {text!r}", CFG_AN_BN, text, ok)
        for text, ok in [
            ("ab", True),
            ("aabb", True),
            ("aaabbb", True),
            ("", True),
            ("aab", False),
            ("abb", False),
            ("ba", False),
            ("abab", False),
        ]
    ),
    *(
        Fixture(
            name=f"tm increment {text!r}",
            family=constants.FAMILY_AUTOMATA,
            algorithm="tm",
            payload={"definition": TM_BINARY_INCREMENT, "input": text},
            expected={"accepted": True, "tape_contents": result},
        )
        for text, result in [("", "1"), ("1011", "1100"), ("111", "1000")]
    ),
    Fixture(
        name="kmp AABA",
        family=constants.FAMILY_MATCHING,
        algorithm="kmp",
        payload={"text": "AABAACAADAABAABA", "pattern": "AABA"},
        expected={"matches": [0, 9, 12], "lps": [0, 1, 0, 1]},
    ),
    Fixture(
        name="naive AABA",
        family=constants.FAMILY_MATCHING,
        algorithm="naive",
        payload={"text": "AABAACAADAABAABA", "pattern": "AABA"},
        expected={"matches": [0, 9, 12]},
    ),
    Fixture(
        name="kmp ABABCABAB",
        family=constants.FAMILY_MATCHING,
        algorithm="kmp",
        payload={"text": "ABABDABACDABABCABAB", "pattern": "ABABCABAB"},
        expected={"matches": [10], "lps": [0, 0, 1, 2, 0, 1, 2, 3, 4]},
    ),
    Fixture(
        name="naive pattern longer than text",
        family=constants.FAMILY_MATCHING,
        algorithm="naive",
        payload={"text": "AB", "pattern": "ABC"},
        expected={"matches": [], "total_comparisons": 0},
    ),
    Fixture(
        name="regex a*b",
        family=constants.FAMILY_MATCHING,
        algorithm="regex",
        payload={"pattern": "a*b", "input": "aaab"},
        expected={"matched": True, "error": None},
    ),
    _paging("fifo", PAGES_SHORT, 3, 6, 1),
    _paging("lru", PAGES_SHORT, 3, 5, 2),
    _paging("optimal", PAGES_SHORT, 3, 5, 2),
    _paging("fifo", PAGES_LONG, 4, 7, 6),
    _paging("lru", PAGES_LONG, 4, 6, 7),
    _paging("optimal", PAGES_LONG, 4, 6, 7),
    _disk("fcfs", 640),
    _disk("sstf", 236),
    _disk("scan", 236, direction="left"),
    _disk("scan", 331, direction="right"),
    _disk("cscan", 382),
    _disk("look", 208, direction="left"),
    _disk("clook", 322),
    Fixture(
        name="n-queens 4",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="n_queens",
        payload={"n": 4},
        expected={"total_solutions": 1},
    ),
    *(
        Fixture(
            name=f"n-queens {n}",
            family=constants.FAMILY_BACKTRACKING,
            algorithm="n_queens",
            payload={"n": n},
            expected={"total_solutions": 0},
        )
        for n in (2, 3)
    ),
    Fixture(
        name="triangle with 3 colours",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="graph_coloring",
        payload={"graph": TRIANGLE, "numColors": 3},
        expected={"is_colorable": True, "chromatic_number": 3},
    ),
    Fixture(
        name="triangle with 2 colours",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="graph_coloring",
        payload={"graph": TRIANGLE, "numColors": 2},
        expected={"is_colorable": False, "chromatic_number": -1, "coloring": []},
    ),
    Fixture(
        name="square cycle with 2 colours",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="graph_coloring",
        payload={"adjacency": SQUARE_CYCLE, "num_colors": 2},
        expected={"is_colorable": True, "coloring": [0, 1, 0, 1]},
    ),
    Fixture(
        name="subset sum to 9",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="subset_sum",
        payload={"numbers": [3, 34, 4, 12, 5, 2], "targetSum": 9},
        expected={"has_subset": True, "subset": [3, 4, 2]},
    ),
    Fixture(
        name="subset sum to 30",
        family=constants.FAMILY_BACKTRACKING,
        algorithm="subset_sum",
        payload={"numbers": [3, 34, 4, 12, 5, 2], "targetSum": 30},
        expected={"has_subset": False, "subset": []},
    ),
    Fixture(
        name="tsp four cities",
        family=constants.FAMILY_BRANCH_BOUND,
        algorithm="tsp",
        payload={"costMatrix": TSP_FOUR_CITIES},
        expected={"min_cost": 80, "optimal_path": [0, 1, 3, 2, 0]},
    ),
    Fixture(
        name="8-puzzle two moves",
        family=constants.FAMILY_BRANCH_BOUND,
        algorithm="fifteen_puzzle",
        payload={
            "initialBoard": [[1, 2, 3], [4, 0, 6], [7, 5, 8]],
            "targetBoard": EIGHT_PUZZLE_GOAL,
        },
        expected={"solved": True, "solution": ["DOWN", "RIGHT"]},
    ),
    Fixture(
        name="8-puzzle wrong parity",
        family=constants.FAMILY_BRANCH_BOUND,
        algorithm="fifteen_puzzle",
        payload={
            "initialBoard": [[1, 2, 3], [4, 5, 6], [8, 7, 0]],
            "targetBoard": EIGHT_PUZZLE_GOAL,
        },
        expected={"solved": False, "nodes_explored": 0},
    ),
)


def check_fixture(
    fixture: Fixture, config: EngineConfig = DEFAULT_CONFIG
) -> list[FixtureFailure]:
    """Run one fixture and return a failure per mismatching field."""
    result = run_algorithm(fixture.family, fixture.algorithm, fixture.payload, config)
    failures = []
    for name, expected in fixture.expected.items():
        actual = to_plain(getattr(result, name))
        if actual != expected:
            failures.append(FixtureFailure(fixture.name, name, expected, actual))
    return failures


def run_harness(
    fixtures: Iterable[Fixture] = FIXTURES, config: EngineConfig = DEFAULT_CONFIG
) -> HarnessReport:
    passed = 0
    failed = 0
    failures: list[FixtureFailure] = []
    for fixture in fixtures:
        problems = check_fixture(fixture, config)
        if problems:
            failed += 1
            failures.extend(problems)
            logger.warning("Fixture %s failed: %s", fixture.name, problems)
        else:
            passed += 1
    logger.info("Harness: %d passed, %d failed", passed, failed)
    return HarnessReport(passed=passed, failed=failed, failures=tuple(failures))
