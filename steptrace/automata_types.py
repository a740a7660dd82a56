"""Automaton definitions: schemas, loaders, step records and results."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from . import constants
from .errors import MalformedInstanceError
from .run_types import HaltReason, MoveDirection
from .trace_types import TraceResult

logger = logging.getLogger(__name__)

_MISSING = object()

_DIRECTION_WORDS: dict[str, str] = {
    "LEFT": constants.MOVE_LEFT,
    "RIGHT": constants.MOVE_RIGHT,
    "STAY": constants.MOVE_STAY,
    "N": constants.MOVE_STAY,
}

# ── Definition schemas ───────────────────────────────────────────


class FATransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    symbol: str
    target: str

    def __str__(self) -> str:
        return f"δ({self.source}, {self.symbol}) = {self.target}"


class FiniteAutomaton(BaseModel):
    """DFA or NFA with a normalized ``(state, symbol) -> destinations`` table."""

    model_config = ConfigDict(frozen=True)

    start_state: str
    accept_states: frozenset[str]
    transitions: tuple[FATransition, ...] = ()
    states: frozenset[str] = frozenset()
    table: dict[tuple[str, str], tuple[str, ...]] = {}

    @model_validator(mode="after")
    def _check_states(self) -> FiniteAutomaton:
        _check_start_and_accept(self.start_state, self.accept_states, self.states)
        for t in self.transitions:
            if len(t.symbol) != 1:
                raise ValueError(f"transition symbol must be one character: {t}")
            if self.states and not {t.source, t.target} <= self.states:
                raise ValueError(f"transition references an undeclared state: {t}")
        return self

    def destinations(self, state: str, symbol: str) -> tuple[str, ...]:
        return self.table.get((state, symbol), ())

    def is_deterministic(self) -> bool:
        return all(len(targets) == 1 for targets in self.table.values())


class PDATransition(BaseModel):
    """One PDA move; ``push[0]`` ends on top of the stack."""

    model_config = ConfigDict(frozen=True)

    source: str
    input_symbol: str
    stack_symbol: str = constants.STACK_WILDCARD
    target: str
    push: tuple[str, ...] = ()

    @property
    def is_epsilon(self) -> bool:
        return self.input_symbol in constants.EPSILON_SYMBOLS

    def __str__(self) -> str:
        pop = self.stack_symbol or "*"
        push = "".join(self.push) or "ε"
        return f"δ({self.source}, {self.input_symbol}, {pop}) = ({self.target}, {push})"


class PushdownAutomaton(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_state: str
    accept_states: frozenset[str]
    transitions: tuple[PDATransition, ...] = ()
    states: frozenset[str] = frozenset()
    start_symbol: str = ""
    accept_by_empty_stack: bool = False
    table: dict[tuple[str, str], tuple[PDATransition, ...]] = {}

    @model_validator(mode="after")
    def _check_states(self) -> PushdownAutomaton:
        _check_start_and_accept(self.start_state, self.accept_states, self.states)
        for t in self.transitions:
            if not t.is_epsilon and len(t.input_symbol) != 1:
                raise ValueError(f"input symbol must be one character: {t}")
        return self

    def candidates(self, state: str, symbol: str) -> tuple[PDATransition, ...]:
        return self.table.get((state, symbol), ())


class TMTransition(BaseModel):
    model_config = ConfigDict(frozen=True)

    source: str
    read: str
    write: str
    direction: MoveDirection
    target: str

    def __str__(self) -> str:
        return (
            f"δ({self.source}, {self.read}) = "
            f"({self.target}, {self.write}, {self.direction.value})"
        )


class TuringMachine(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_state: str
    accept_states: frozenset[str]
    reject_states: frozenset[str] = frozenset()
    blank_symbol: str = constants.BLANK_SYMBOL
    transitions: tuple[TMTransition, ...] = ()
    states: frozenset[str] = frozenset()
    table: dict[tuple[str, str], TMTransition] = {}

    @model_validator(mode="after")
    def _check_states(self) -> TuringMachine:
        _check_start_and_accept(self.start_state, self.accept_states, self.states)
        if len(self.blank_symbol) != 1:
            raise ValueError("blank symbol must be one character")
        for t in self.transitions:
            if len(t.read) != 1 or len(t.write) != 1:
                raise ValueError(f"tape symbols must be one character: {t}")
        return self


def _check_start_and_accept(
    start: str, accept: frozenset[str], states: frozenset[str]
) -> None:
    if not start:
        raise ValueError("start state is required")
    if not accept:
        raise ValueError("at least one accept state is required")
    if states and start not in states:
        raise ValueError(f"start state {start!r} is not a declared state")
    if states and not accept <= states:
        raise ValueError(f"accept states {sorted(accept - states)} are not declared")


# ── Step records ─────────────────────────────────────────────────


@dataclass(frozen=True)
class FAStep:
    step_index: int
    current_states: frozenset[str]
    remaining_input: str
    consumed_input: str
    transition: tuple[FATransition, ...] = ()
    accepted: bool | None = None

    @property
    def current_state(self) -> str:
        return ",".join(sorted(self.current_states))


@dataclass(frozen=True)
class PDAStep:
    step_index: int
    current_state: str
    remaining_input: str
    consumed_input: str
    stack: tuple[str, ...]
    transition: PDATransition | None = None
    accepted: bool | None = None


@dataclass(frozen=True)
class TMStep:
    step_index: int
    state: str
    tape: tuple[str, ...]
    head_position: int
    transition: TMTransition | None = None
    accepted: bool | None = None
    halt_reason: HaltReason | None = None


# ── Loaders ──────────────────────────────────────────────────────


def _pick(raw: Mapping[str, Any], *names: str, default: Any = _MISSING) -> Any:
    """Return the first key of *names* present in *raw*."""
    for name in names:
        if name in raw:
            return raw[name]
    if default is _MISSING:
        raise MalformedInstanceError(f"missing field, expected one of {names}")
    return default


def _require_mapping(raw: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(raw, Mapping):
        raise MalformedInstanceError(f"{what} must be a mapping, got {type(raw).__name__}")
    return raw


def _as_list(value: Any) -> list[Any]:
    if isinstance(value, str):
        return [value]
    return list(value)


def _state_names(raw: Mapping[str, Any]) -> tuple[list[str], str | None, list[str]]:
    """Read ``states`` given as names or as ``{name, isStart, isAccept}`` records."""
    names: list[str] = []
    start: str | None = None
    accept: list[str] = []
    for entry in raw.get("states", []) or []:
        if isinstance(entry, Mapping):
            name = _pick(entry, "name")
            if entry.get("isStart") or entry.get("is_start"):
                start = name
            if entry.get("isAccept") or entry.get("is_accept"):
                accept.append(name)
        else:
            name = entry
        names.append(name)
    return names, start, accept


def _common_fields(raw: Mapping[str, Any]) -> dict[str, Any]:
    names, derived_start, derived_accept = _state_names(raw)
    accept = _pick(raw, "accept_states", "acceptStates", "acceptState", default=None)
    return {
        "start_state": _pick(
            raw, "start_state", "startState", default=derived_start or ""
        )
        or "",
        "accept_states": frozenset(
            _as_list(accept) if accept is not None else derived_accept
        ),
        "states": frozenset(names),
    }


def _raw_edges(transitions: Any) -> list[Mapping[str, Any]]:
    """Flatten a nested ``{state: {symbol: dest | [dest, ...]}}`` map into edges."""
    if isinstance(transitions, Mapping):
        return [
            {"from": state, "symbol": symbol, "to": dest}
            for state, by_symbol in transitions.items()
            for symbol, dests in _require_mapping(
                by_symbol, f"transitions of {state!r}"
            ).items()
            for dest in _as_list(dests)
        ]
    return [_require_mapping(edge, "transition") for edge in transitions or []]


def _build(model: type[BaseModel], fields: dict[str, Any]) -> Any:
    try:
        return model(**fields)
    except ValidationError as exc:
        raise MalformedInstanceError(
            f"invalid {model.__name__}: {exc.errors()[0]['msg']}"
        ) from exc


def load_finite_automaton(data: Mapping[str, Any] | FiniteAutomaton) -> FiniteAutomaton:
    """Build a FiniteAutomaton from an edge list or a nested transition map."""
    if isinstance(data, FiniteAutomaton):
        return data
    _require_mapping(data, "automaton definition")
    transitions = tuple(
        _build(
            FATransition,
            {
                "source": _pick(edge, "from", "source", "fromState"),
                "symbol": _pick(edge, "symbol", "input", "inputSymbol"),
                "target": _pick(edge, "to", "target", "toState"),
            },
        )
        for edge in _raw_edges(data.get("transitions"))
    )
    table: dict[tuple[str, str], tuple[str, ...]] = {}
    for t in transitions:
        existing = table.get((t.source, t.symbol), ())
        if t.target not in existing:
            table[(t.source, t.symbol)] = existing + (t.target,)
    fa = _build(
        FiniteAutomaton,
        {**_common_fields(data), "transitions": transitions, "table": table},
    )
    logger.debug(
        "Loaded automaton: start=%s, %d transitions", fa.start_state, len(transitions)
    )
    return fa


def _push_symbols(edge: Mapping[str, Any]) -> tuple[str, ...]:
    """Symbols to push, first one ending on top; ε entries push nothing."""
    if "pushSymbols" in edge or "push_symbols" in edge:
        symbols = _as_list(_pick(edge, "pushSymbols", "push_symbols"))
    else:
        pushed = _pick(edge, "push", "pushSymbol", "push_symbol", default="") or ""
        symbols = [] if pushed in constants.EPSILON_SYMBOLS else list(pushed)
    return tuple(s for s in symbols if s not in constants.EPSILON_SYMBOLS)


def _input_symbol(edge: Mapping[str, Any]) -> str:
    symbol = _pick(edge, "input_symbol", "inputSymbol", "symbol", "input")
    return constants.EPSILON if symbol in constants.EPSILON_SYMBOLS else symbol


def _stack_symbol(edge: Mapping[str, Any]) -> str:
    symbol = _pick(
        edge,
        "stack_symbol",
        "stackSymbol",
        "popSymbol",
        "pop",
        default=constants.STACK_WILDCARD,
    )
    if not symbol or symbol in constants.EPSILON_SYMBOLS:
        return constants.STACK_WILDCARD
    return symbol


def load_pushdown_automaton(
    data: Mapping[str, Any] | PushdownAutomaton,
) -> PushdownAutomaton:
    """Build a PushdownAutomaton, keeping transitions in definition order.

    Every spelling of ε as an input symbol is stored as ``constants.EPSILON``;
    ε as the pop symbol becomes the stack wildcard.
    """
    if isinstance(data, PushdownAutomaton):
        return data
    _require_mapping(data, "pushdown automaton definition")
    transitions = tuple(
        _build(
            PDATransition,
            {
                "source": _pick(edge, "from", "source", "fromState"),
                "input_symbol": _input_symbol(edge),
                "stack_symbol": _stack_symbol(edge),
                "target": _pick(edge, "to", "target", "toState"),
                "push": _push_symbols(edge),
            },
        )
        for edge in _raw_edges(data.get("transitions"))
    )
    table: dict[tuple[str, str], tuple[PDATransition, ...]] = {}
    for t in transitions:
        table[(t.source, t.input_symbol)] = table.get((t.source, t.input_symbol), ()) + (
            t,
        )
    return _build(
        PushdownAutomaton,
        {
            **_common_fields(data),
            "transitions": transitions,
            "table": table,
            "start_symbol": _pick(
                data,
                "start_symbol",
                "startSymbol",
                "initialStackSymbol",
                default="",
            )
            or "",
            "accept_by_empty_stack": bool(
                _pick(data, "accept_by_empty_stack", "acceptByEmptyStack", default=False)
            ),
        },
    )


def load_turing_machine(data: Mapping[str, Any] | TuringMachine) -> TuringMachine:
    """Build a TuringMachine; at most one transition per ``(state, read)`` pair."""
    if isinstance(data, TuringMachine):
        return data
    _require_mapping(data, "Turing machine definition")
    transitions: list[TMTransition] = []
    for edge in _raw_edges(data.get("transitions")):
        direction = _pick(edge, "direction", "moveDirection", "move")
        token = str(direction).upper()
        try:
            move = MoveDirection(_DIRECTION_WORDS.get(token, token))
        except ValueError as exc:
            raise MalformedInstanceError(f"unknown head direction {direction!r}") from exc
        transitions.append(
            _build(
                TMTransition,
                {
                    "source": _pick(edge, "from", "source", "currentState"),
                    "read": _pick(edge, "read", "readSymbol"),
                    "write": _pick(edge, "write", "writeSymbol"),
                    "direction": move,
                    "target": _pick(edge, "to", "target", "nextState"),
                },
            )
        )
    table: dict[tuple[str, str], TMTransition] = {}
    for t in transitions:
        if (t.source, t.read) in table:
            raise MalformedInstanceError(
                f"nondeterministic Turing machine: two transitions on ({t.source}, {t.read})"
            )
        table[(t.source, t.read)] = t
    reject = _pick(data, "reject_states", "rejectStates", "rejectState", default=None)
    return _build(
        TuringMachine,
        {
            **_common_fields(data),
            "transitions": tuple(transitions),
            "table": table,
            "reject_states": frozenset(_as_list(reject) if reject else []),
            "blank_symbol": _pick(
                data, "blank_symbol", "blankSymbol", default=constants.BLANK_SYMBOL
            ),
        },
    )


# ── Results ──────────────────────────────────────────────────────


@dataclass(frozen=True)
class AutomatonResult(TraceResult):
    """Verdict and trace of a DFA or NFA run."""

    accepted: bool
    final_state: str
    final_states: frozenset[str]
    steps: tuple[FAStep, ...]


@dataclass(frozen=True)
class PDAResult(TraceResult):
    accepted: bool
    final_state: str
    final_stack: tuple[str, ...]
    steps: tuple[PDAStep, ...]


@dataclass(frozen=True)
class TMResult(TraceResult):
    accepted: bool
    final_state: str
    final_tape: tuple[str, ...]
    head_position: int
    halt_reason: HaltReason
    transitions_applied: int
    blank_symbol: str
    steps: tuple[TMStep, ...]

    @property
    def tape_contents(self) -> str:
        """Tape with surrounding blanks trimmed."""
        return "".join(self.final_tape).strip(self.blank_symbol)
