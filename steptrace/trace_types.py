"""Trace result base type shared by every algorithm family."""

from __future__ import annotations

from typing import Any

from .snapshot import to_plain


class TraceResult:
    """Mixin for frozen result dataclasses that carry a ``steps`` trace."""

    steps: tuple[Any, ...]

    @property
    def step_count(self) -> int:
        return len(self.steps)

    @property
    def last_step(self) -> Any:
        return self.steps[-1] if self.steps else None

    def to_dict(self) -> dict[str, Any]:
        return to_plain(self)
