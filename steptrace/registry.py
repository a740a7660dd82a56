"""Catalogue of engines by family, resolved lazily by name."""

from __future__ import annotations

import importlib
from typing import Callable

from . import constants

# Modules are imported on first lookup only
_ENGINES: dict[str, dict[str, str]] = {
    constants.FAMILY_AUTOMATA: {
        "dfa": "automata.simulate_dfa",
        "nfa": "automata.simulate_nfa",
        "pda": "automata.simulate_pda",
        "tm": "automata.simulate_tm",
        "cfg": "grammar.derive_cfg",
    },
    constants.FAMILY_MATCHING: {
        "naive": "matching.naive_string_match",
        "kmp": "matching.kmp_string_match",
        "regex": "matching.match_regex",
    },
    constants.FAMILY_PAGING: {
        "fifo": "paging.fifo_page_replacement",
        "lru": "paging.lru_page_replacement",
        "optimal": "paging.optimal_page_replacement",
        "lfu": "paging.lfu_page_replacement",
    },
    constants.FAMILY_DISK: {
        "fcfs": "disk.fcfs",
        "sstf": "disk.sstf",
        "scan": "disk.scan",
        "cscan": "disk.cscan",
        "look": "disk.look",
        "clook": "disk.clook",
    },
    constants.FAMILY_BACKTRACKING: {
        "n_queens": "backtracking.n_queens",
        "graph_coloring": "backtracking.graph_coloring",
        "subset_sum": "backtracking.subset_sum",
    },
    constants.FAMILY_BRANCH_BOUND: {
        "tsp": "branch_bound.travelling_salesman",
        "fifteen_puzzle": "branch_bound.fifteen_puzzle",
    },
}


def get_algorithm(family: str, name: str) -> Callable[..., object]:
    """Return the engine function registered as *name* in *family*.

    Raises ``ValueError`` naming the available choices when either is unknown.
    """
    engines = _ENGINES.get(family)
    if engines is None:
        raise ValueError(
            f"Unknown algorithm family {family!r}; choose from {sorted(_ENGINES)}"
        )
    spec = engines.get(name)
    if spec is None:
        raise ValueError(
            f"Unknown {family} algorithm {name!r}; choose from {sorted(engines)}"
        )
    module_name, func_name = spec.split(".")
    mod = importlib.import_module(f".{module_name}", package=__package__)
    return getattr(mod, func_name)


def list_algorithms() -> dict[str, tuple[str, ...]]:
    return {family: tuple(engines) for family, engines in _ENGINES.items()}
