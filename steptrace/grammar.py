"""Leftmost derivation search for context-free grammars."""

from __future__ import annotations

import logging
import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import BaseModel, ConfigDict, ValidationError, model_validator

from . import constants
from .errors import MalformedInstanceError
from .run_types import DEFAULT_CONFIG, EngineConfig
from .snapshot import TraceRecorder
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


class Production(BaseModel):
    """``left → right``; an empty ``right`` is an ε-production."""

    model_config = ConfigDict(frozen=True)

    left: str
    right: tuple[str, ...] = ()

    def __str__(self) -> str:
        return f"{self.left} → {' '.join(self.right) or constants.EPSILON}"


class ContextFreeGrammar(BaseModel):
    model_config = ConfigDict(frozen=True)

    start_symbol: str
    non_terminals: frozenset[str]
    terminals: frozenset[str]
    productions: tuple[Production, ...]

    @model_validator(mode="after")
    def _check_symbols(self) -> ContextFreeGrammar:
        shared = self.non_terminals & self.terminals
        if shared:
            raise ValueError(f"symbols are both terminal and non-terminal: {sorted(shared)}")
        if self.start_symbol not in self.non_terminals:
            raise ValueError(f"start symbol {self.start_symbol!r} is not a non-terminal")
        if any(not t for t in self.terminals):
            raise ValueError("terminals must be non-empty strings")
        for p in self.productions:
            if p.left not in self.non_terminals:
                raise ValueError(f"left side of {p} is not a non-terminal")
            for symbol in p.right:
                if symbol not in self.non_terminals and symbol not in self.terminals:
                    raise ValueError(f"undeclared symbol {symbol!r} in {p}")
        return self

    def expansions(self, symbol: str) -> tuple[Production, ...]:
        return tuple(p for p in self.productions if p.left == symbol)


@dataclass(frozen=True)
class CFGStep:
    step_index: int
    sentential_form: tuple[str, ...]
    production: Production | None = None
    applied_at: int | None = None
    derived: bool | None = None


@dataclass(frozen=True)
class CFGResult(TraceResult):
    """``steps`` is the leftmost derivation found, or only the start form."""

    derivable: bool
    tokens: tuple[str, ...]
    derivation_length: int
    nodes_explored: int
    steps: tuple[CFGStep, ...]


# ── Loading ──────────────────────────────────────────────────────


def _split_right(right: Any, known: set[str]) -> tuple[str, ...]:
    if right is None or (isinstance(right, str) and right in constants.EPSILON_SYMBOLS):
        return ()
    if isinstance(right, str):
        chunks = right.split()
        if len(chunks) == 1 and chunks[0] not in known:
            chunks = list(chunks[0])
        symbols = chunks
    else:
        symbols = [str(s) for s in right]
    return tuple(s for s in symbols if s and s not in constants.EPSILON_SYMBOLS)


def _raw_productions(raw: Any) -> list[tuple[str, Any]]:
    if isinstance(raw, Mapping):
        pairs = []
        for left, alternatives in raw.items():
            if isinstance(alternatives, str) or alternatives is None:
                alternatives = [alternatives]
            pairs.extend((left, alt) for alt in alternatives)
        return pairs
    pairs = []
    for entry in raw or []:
        if not isinstance(entry, Mapping) or "left" not in entry:
            raise MalformedInstanceError(
                f"production must be a {{left, right}} mapping: {entry!r}"
            )
        pairs.append((entry["left"], entry.get("right")))
    return pairs


def load_grammar(data: Mapping[str, Any] | ContextFreeGrammar) -> ContextFreeGrammar:
    """Build a grammar from ``{left, right}`` records or a ``left → alternatives`` map.

    Undeclared non-terminals are taken from the left sides and undeclared
    terminals from every other right-hand symbol.
    """
    if isinstance(data, ContextFreeGrammar):
        return data
    if not isinstance(data, Mapping):
        raise MalformedInstanceError(
            f"grammar definition must be a mapping, got {type(data).__name__}"
        )
    pairs = _raw_productions(data.get("productions", data.get("rules")))
    declared_nt = data.get(
        "nonTerminals", data.get("non_terminals", data.get("variables"))
    )
    declared_t = data.get("terminals")
    non_terminals = set(declared_nt) if declared_nt is not None else {left for left, _ in pairs}
    known = non_terminals | set(declared_t or ())
    productions = tuple(
        (left, _split_right(right, known)) for left, right in pairs
    )
    if declared_t is not None:
        terminals = set(declared_t)
    else:
        terminals = {s for _, right in productions for s in right} - non_terminals
    try:
        return ContextFreeGrammar(
            start_symbol=data.get("startSymbol", data.get("start_symbol", "S")),
            non_terminals=frozenset(non_terminals),
            terminals=frozenset(terminals),
            productions=tuple(
                Production(left=left, right=right) for left, right in productions
            ),
        )
    except ValidationError as exc:
        raise MalformedInstanceError(
            f"invalid grammar: {exc.errors()[0]['msg']}"
        ) from exc


# ── Derivation search ────────────────────────────────────────────


def tokenize(target: str, terminals: frozenset[str]) -> tuple[str, ...] | None:
    """Split *target* greedily into terminals, longest first; None if impossible.

    Whitespace between tokens is skipped.
    """
    ordered = sorted(terminals, key=len, reverse=True)
    tokens: list[str] = []
    i = 0
    while i < len(target):
        if target[i].isspace():
            i += 1
            continue
        match = next((t for t in ordered if target.startswith(t, i)), None)
        if match is None:
            return None
        tokens.append(match)
        i += len(match)
    return tuple(tokens)


def _min_yields(grammar: ContextFreeGrammar) -> dict[str, float]:
    """Shortest terminal string length each symbol derives; inf if it derives none."""
    best: dict[str, float] = {s: 1 for s in grammar.terminals}
    best.update({s: math.inf for s in grammar.non_terminals})
    changed = True
    while changed:
        changed = False
        for p in grammar.productions:
            length = sum(best[s] for s in p.right)
            if length < best[p.left]:
                best[p.left] = length
                changed = True
    return best


class _Search:
    """Depth-bounded leftmost derivation search with a failure memo."""

    def __init__(self, grammar: ContextFreeGrammar, tokens: tuple[str, ...]):
        self.grammar = grammar
        self.tokens = tokens
        self.min_yield = _min_yields(grammar)
        self.failed: dict[tuple[int, tuple[str, ...]], int] = {}
        self.path: list[tuple[tuple[str, ...], Production, int]] = []
        self.nodes = 0

    def run(self, form: tuple[str, ...], matched: int, budget: int) -> bool:
        tokens = self.tokens
        i = matched
        while i < len(form) and form[i] in self.grammar.terminals:
            if i >= len(tokens) or form[i] != tokens[i]:
                return False
            i += 1
        if i == len(form):
            return i == len(tokens)

        rest = form[i:]
        pending = sum(1 for s in rest if s in self.grammar.non_terminals)
        if pending > budget:
            return False
        if sum(self.min_yield[s] for s in rest) > len(tokens) - i:
            return False
        key = (i, rest)
        if self.failed.get(key, -1) >= budget:
            return False

        self.nodes += 1
        for production in self.grammar.expansions(form[i]):
            expanded = form[:i] + production.right + form[i + 1 :]
            self.path.append((expanded, production, i))
            if self.run(expanded, i, budget - 1):
                return True
            self.path.pop()
        self.failed[key] = budget
        return False


def derive_cfg(
    grammar: Mapping[str, Any] | ContextFreeGrammar,
    target: str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> CFGResult:
    """Search for a leftmost derivation of *target*.

    Derivations of increasing length are tried, up to
    ``config.cfg_max_depth`` production applications. Each recorded step
    after the first names the production applied and the index of the
    non-terminal it rewrote.
    """
    cfg = load_grammar(grammar)
    logger.info(
        "Deriving %r from %s (max %d productions)",
        target,
        cfg.start_symbol,
        config.cfg_max_depth,
    )
    trace: TraceRecorder[CFGStep] = TraceRecorder(CFGStep)
    start = (cfg.start_symbol,)
    trace.record(sentential_form=start)

    tokens = tokenize(target, cfg.terminals)
    if tokens is None:
        logger.info("%r does not split into terminals of the grammar", target)
        trace.mark_last(derived=False)
        return CFGResult(
            derivable=False,
            tokens=(),
            derivation_length=0,
            nodes_explored=0,
            steps=trace.steps,
        )

    search = _Search(cfg, tokens)
    found = any(
        search.run(start, 0, depth) for depth in range(1, config.cfg_max_depth + 1)
    )
    for form, production, applied_at in search.path if found else ():
        trace.record(sentential_form=form, production=production, applied_at=applied_at)
    trace.stats.bump("nodes_explored", search.nodes)
    trace.mark_last(derived=found)
    logger.info(
        "%r %s after %s",
        target,
        "derived" if found else "not derived",
        trace.stats.report(),
    )
    return CFGResult(
        derivable=found,
        tokens=tokens,
        derivation_length=len(search.path) if found else 0,
        nodes_explored=search.nodes,
        steps=trace.steps,
    )
