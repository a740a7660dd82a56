"""Immutable snapshots of mutable algorithm state and the trace recorder."""

from __future__ import annotations

import dataclasses
import logging
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Generic, TypeVar

from pydantic import BaseModel

from .run_types import TraceStats

logger = logging.getLogger(__name__)

S = TypeVar("S")


def freeze(value: Any) -> Any:
    """Return an immutable deep copy of *value*.

    Lists and tuples become tuples, sets become frozensets and mappings
    become read-only proxies over a fresh dict. Scalars, enums and frozen
    dataclasses are already immutable and pass through unchanged.
    """
    if isinstance(value, (list, tuple)):
        return tuple(freeze(v) for v in value)
    if isinstance(value, (set, frozenset)):
        return frozenset(freeze(v) for v in value)
    if isinstance(value, Mapping):
        return MappingProxyType({k: freeze(v) for k, v in value.items()})
    return value


def to_plain(value: Any) -> Any:
    """Convert snapshots and result objects into JSON-compatible data."""
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        return {
            f.name: to_plain(getattr(value, f.name)) for f in dataclasses.fields(value)
        }
    if isinstance(value, BaseModel):
        return to_plain(dict(value))
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Mapping):
        return {str(k): to_plain(v) for k, v in value.items()}
    if isinstance(value, (set, frozenset)):
        return sorted((to_plain(v) for v in value), key=str)
    if isinstance(value, (list, tuple)):
        return [to_plain(v) for v in value]
    return value


class TraceRecorder(Generic[S]):
    """Append-only builder for a step trace.

    Every field handed to ``record`` is frozen before the step is built,
    so a recorded step never aliases state the algorithm keeps mutating.
    """

    def __init__(self, step_type: type[S]):
        self._step_type = step_type
        self._steps: list[S] = []
        self.stats = TraceStats()

    def record(self, **fields: Any) -> S:
        step = self._step_type(
            step_index=len(self._steps),
            **{name: freeze(val) for name, val in fields.items()},
        )
        self._steps.append(step)
        self.stats.steps = len(self._steps)
        logger.debug("%s #%d %s", self._step_type.__name__, step.step_index, fields)
        return step

    def mark_last(self, **fields: Any) -> None:
        """Rebuild the final step with terminal verdict fields set."""
        if not self._steps:
            return
        last = self._steps[-1]
        self._steps[-1] = dataclasses.replace(
            last, **{name: freeze(val) for name, val in fields.items()}
        )

    @property
    def last(self) -> S | None:
        return self._steps[-1] if self._steps else None

    @property
    def steps(self) -> tuple[S, ...]:
        return tuple(self._steps)

    def __len__(self) -> int:
        return len(self._steps)
