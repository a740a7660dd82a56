"""Composable entry points that run an engine from a JSON-style payload.

Each function corresponds to a CLI workflow (``run``, ``list``) but is
callable programmatically without argparse.
"""

from __future__ import annotations

import inspect
import json
import logging
from collections.abc import Mapping
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from . import constants
from .errors import MalformedInstanceError
from .registry import get_algorithm
from .run_types import DEFAULT_CONFIG, EngineConfig, ScanDirection
from .trace_types import TraceResult

logger = logging.getLogger(__name__)


class _Payload(BaseModel):
    """Accepts snake_case field names or their camelCase aliases."""

    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, extra="forbid"
    )


class AutomatonPayload(_Payload):
    definition: dict[str, Any] = Field(
        validation_alias=AliasChoices("definition", "automaton", "machine")
    )
    text: str = Field("", validation_alias=AliasChoices("text", "input"))
    accept_by_empty_stack: bool | None = Field(
        None,
        validation_alias=AliasChoices("accept_by_empty_stack", "acceptByEmptyStack"),
    )


class GrammarPayload(_Payload):
    grammar: dict[str, Any] = Field(
        validation_alias=AliasChoices("grammar", "cfg", "definition")
    )
    target: str = Field("", validation_alias=AliasChoices("target", "text", "input"))


class MatchingPayload(_Payload):
    text: str = Field("", validation_alias=AliasChoices("text", "input"))
    pattern: str


class PagingPayload(_Payload):
    sequence: list[int] = Field(
        validation_alias=AliasChoices("sequence", "referenceString", "pages")
    )
    frame_size: int


class DiskPayload(_Payload):
    queue: list[int] = Field(validation_alias=AliasChoices("queue", "requests"))
    head: int = Field(validation_alias=AliasChoices("head", "headPosition"))
    direction: ScanDirection = ScanDirection.LEFT
    disk_size: int | None = None


class NQueensPayload(_Payload):
    n: int = Field(validation_alias=AliasChoices("n", "size", "boardSize"))


class GraphColoringPayload(_Payload):
    adjacency: list[list[int]] = Field(
        validation_alias=AliasChoices("adjacency", "graph", "adjacencyMatrix")
    )
    num_colors: int


class SubsetSumPayload(_Payload):
    numbers: list[int] = Field(validation_alias=AliasChoices("numbers", "arr", "set"))
    target: int = Field(validation_alias=AliasChoices("target", "targetSum"))


class TSPPayload(_Payload):
    cost_matrix: list[list[int | float]]


class PuzzlePayload(_Payload):
    initial: list[list[int]] = Field(
        validation_alias=AliasChoices("initial", "initialBoard")
    )
    target: list[list[int]] = Field(
        validation_alias=AliasChoices("target", "targetBoard")
    )
    max_expansions: int | None = None


_FAMILY_PAYLOADS: dict[str, type[_Payload]] = {
    constants.FAMILY_AUTOMATA: AutomatonPayload,
    constants.FAMILY_MATCHING: MatchingPayload,
    constants.FAMILY_PAGING: PagingPayload,
    constants.FAMILY_DISK: DiskPayload,
}

_NAMED_PAYLOADS: dict[str, type[_Payload]] = {
    "cfg": GrammarPayload,
    "n_queens": NQueensPayload,
    "graph_coloring": GraphColoringPayload,
    "subset_sum": SubsetSumPayload,
    "tsp": TSPPayload,
    "fifteen_puzzle": PuzzlePayload,
}


def _parse_payload(family: str, name: str, payload: Mapping[str, Any]) -> _Payload:
    model = _NAMED_PAYLOADS.get(name) or _FAMILY_PAYLOADS[family]
    try:
        return model.model_validate(dict(payload))
    except ValidationError as exc:
        first = exc.errors()[0]
        where = ".".join(str(part) for part in first["loc"])
        raise MalformedInstanceError(
            f"invalid {family}/{name} input at {where or 'payload'}: {first['msg']}"
        ) from exc


def run_algorithm(
    family: str,
    name: str,
    payload: Mapping[str, Any],
    config: EngineConfig = DEFAULT_CONFIG,
) -> TraceResult:
    """Validate *payload* and run one engine on it.

    Args:
        family: Algorithm family, e.g. "automata" or "disk".
        name: Engine name within the family, e.g. "dfa" or "scan".
        payload: Problem instance with snake_case or camelCase keys.
        config: Engine bounds; its disk size fills in a missing ``diskSize``.

    Returns:
        The engine's result object.
    """
    engine = get_algorithm(family, name)
    parsed = _parse_payload(family, name, payload)
    accepted = inspect.signature(engine).parameters
    kwargs = {
        key: value
        for key, value in parsed.model_dump(exclude_none=True).items()
        if key in accepted
    }
    if "disk_size" in accepted and "disk_size" not in kwargs:
        kwargs["disk_size"] = config.default_disk_size
    if "config" in accepted:
        kwargs["config"] = config
    logger.info("Running %s/%s", family, name)
    return engine(**kwargs)


def run_algorithm_json(
    family: str,
    name: str,
    payload: Mapping[str, Any] | str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> dict[str, Any]:
    """Run one engine and return its result as JSON-compatible data.

    Args:
        family: Algorithm family.
        name: Engine name within the family.
        payload: A mapping, or a JSON object encoded as a string.
        config: Engine bounds.

    Returns:
        The result's ``to_dict()`` form.
    """
    if isinstance(payload, str):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise MalformedInstanceError(f"payload is not valid JSON: {exc}") from exc
    if not isinstance(payload, Mapping):
        raise MalformedInstanceError("payload must be a JSON object")
    return run_algorithm(family, name, payload, config).to_dict()
