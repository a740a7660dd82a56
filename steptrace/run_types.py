"""Engine configuration and run statistics (pure data, no business logic)."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from . import constants


class ScanDirection(str, Enum):
    """Initial sweep direction for SCAN and LOOK."""

    LEFT = constants.SCAN_LEFT
    RIGHT = constants.SCAN_RIGHT


class MoveDirection(str, Enum):
    """Turing-machine head movement."""

    LEFT = constants.MOVE_LEFT
    RIGHT = constants.MOVE_RIGHT
    STAY = constants.MOVE_STAY


class HaltReason(str, Enum):
    """Why a Turing-machine run stopped."""

    ACCEPT = "accept"
    REJECT_STATE = "reject_state"
    NO_TRANSITION = "no_transition"
    STEP_LIMIT = "step_limit"


@dataclass(frozen=True)
class EngineConfig:
    """Groups the tunable bounds of the engines."""

    tm_max_steps: int = constants.TM_MAX_STEPS
    tm_min_tape_length: int = constants.TM_MIN_TAPE_LENGTH
    pda_max_epsilon_moves: int = constants.PDA_MAX_EPSILON_MOVES
    cfg_max_depth: int = constants.CFG_MAX_DEPTH
    default_disk_size: int = constants.DEFAULT_DISK_SIZE
    puzzle_max_expansions: int = constants.PUZZLE_MAX_EXPANSIONS


DEFAULT_CONFIG = EngineConfig()


@dataclass
class TraceStats:
    """Counters gathered while a trace is recorded."""

    steps: int = 0
    counters: dict[str, int] = field(default_factory=dict)

    def bump(self, name: str, amount: int = 1) -> None:
        self.counters[name] = self.counters.get(name, 0) + amount

    def report(self) -> str:
        parts = [f"{self.steps} steps"]
        parts.extend(f"{k}={v}" for k, v in sorted(self.counters.items()))
        return ", ".join(parts)
