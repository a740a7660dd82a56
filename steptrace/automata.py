"""Step-by-step simulation of DFA, NFA, PDA and Turing-machine definitions."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from . import constants
from .automata_types import (
    AutomatonResult,
    FAStep,
    FATransition,
    FiniteAutomaton,
    PDAResult,
    PDAStep,
    PDATransition,
    PushdownAutomaton,
    TMResult,
    TMStep,
    TuringMachine,
    load_finite_automaton,
    load_pushdown_automaton,
    load_turing_machine,
)
from .errors import MalformedInstanceError
from .run_types import DEFAULT_CONFIG, EngineConfig, HaltReason, MoveDirection
from .snapshot import TraceRecorder

logger = logging.getLogger(__name__)


def simulate_dfa(
    definition: Mapping[str, Any] | FiniteAutomaton, text: str
) -> AutomatonResult:
    """Run a deterministic automaton over *text*.

    A missing transition rejects immediately; the step recorded at that
    point carries ``accepted=False`` and no further symbols are consumed.
    """
    fa = load_finite_automaton(definition)
    if not fa.is_deterministic():
        raise MalformedInstanceError(
            "DFA definition maps a (state, symbol) pair to several states"
        )
    logger.info("Simulating DFA from %s on %d symbols", fa.start_state, len(text))

    trace: TraceRecorder[FAStep] = TraceRecorder(FAStep)
    state = fa.start_state
    trace.record(current_states={state}, remaining_input=text, consumed_input="")

    for i, symbol in enumerate(text):
        targets = fa.destinations(state, symbol)
        if not targets:
            logger.debug("No transition from %s on %r", state, symbol)
            trace.record(
                current_states={state},
                remaining_input=text[i:],
                consumed_input=text[:i],
                accepted=False,
            )
            return _fa_result(trace, {state}, False)
        transition = FATransition(source=state, symbol=symbol, target=targets[0])
        state = targets[0]
        trace.record(
            current_states={state},
            remaining_input=text[i + 1 :],
            consumed_input=text[: i + 1],
            transition=(transition,),
        )

    accepted = state in fa.accept_states
    trace.mark_last(accepted=accepted)
    return _fa_result(trace, {state}, accepted)


def simulate_nfa(
    definition: Mapping[str, Any] | FiniteAutomaton, text: str
) -> AutomatonResult:
    """Run a nondeterministic automaton by tracking the set of live states."""
    fa = load_finite_automaton(definition)
    logger.info("Simulating NFA from %s on %d symbols", fa.start_state, len(text))

    trace: TraceRecorder[FAStep] = TraceRecorder(FAStep)
    current: set[str] = {fa.start_state}
    trace.record(current_states=current, remaining_input=text, consumed_input="")

    for i, symbol in enumerate(text):
        used: list[FATransition] = []
        following: set[str] = set()
        for state in sorted(current):
            for target in fa.destinations(state, symbol):
                used.append(FATransition(source=state, symbol=symbol, target=target))
                following.add(target)
        trace.stats.bump("transitions", len(used))
        if not following:
            trace.record(
                current_states=current,
                remaining_input=text[i:],
                consumed_input=text[:i],
                accepted=False,
            )
            return _fa_result(trace, current, False)
        current = following
        trace.record(
            current_states=current,
            remaining_input=text[i + 1 :],
            consumed_input=text[: i + 1],
            transition=used,
        )

    accepted = bool(current & fa.accept_states)
    trace.mark_last(accepted=accepted)
    return _fa_result(trace, current, accepted)


def _fa_result(
    trace: TraceRecorder[FAStep], states: set[str], accepted: bool
) -> AutomatonResult:
    final_states = frozenset(states)
    logger.info(
        "Automaton %s after %s",
        "accepted" if accepted else "rejected",
        trace.stats.report(),
    )
    return AutomatonResult(
        accepted=accepted,
        final_state=",".join(sorted(final_states)),
        final_states=final_states,
        steps=trace.steps,
    )


# ── Pushdown automaton ───────────────────────────────────────────


def _select_pda_transition(
    candidates: tuple[PDATransition, ...], stack: list[str]
) -> PDATransition | None:
    top = stack[-1] if stack else None
    for t in candidates:
        if t.stack_symbol == constants.STACK_WILDCARD or t.stack_symbol == top:
            return t
    return None


def _apply_pda_transition(transition: PDATransition, stack: list[str]) -> str:
    if transition.stack_symbol != constants.STACK_WILDCARD:
        stack.pop()
    stack.extend(reversed(transition.push))
    return transition.target


def simulate_pda(
    definition: Mapping[str, Any] | PushdownAutomaton,
    text: str,
    accept_by_empty_stack: bool | None = None,
    config: EngineConfig = DEFAULT_CONFIG,
) -> PDAResult:
    """Run a pushdown automaton, taking the first applicable transition per symbol.

    Once the input is consumed, ε-input transitions are followed one at a
    time until none applies; a run that makes more than
    ``config.pda_max_epsilon_moves`` of them is rejected.

    Args:
        definition: A loaded PushdownAutomaton or its raw mapping.
        text: Input string, consumed one symbol per step.
        accept_by_empty_stack: Overrides the definition's acceptance mode
            when not None.
        config: Supplies the ε-move bound.

    Returns:
        A PDAResult whose steps carry a bottom-to-top stack snapshot.
    """
    pda = load_pushdown_automaton(definition)
    empty_stack_mode = (
        pda.accept_by_empty_stack
        if accept_by_empty_stack is None
        else accept_by_empty_stack
    )
    logger.info(
        "Simulating PDA from %s on %d symbols (empty-stack acceptance=%s)",
        pda.start_state,
        len(text),
        empty_stack_mode,
    )

    trace: TraceRecorder[PDAStep] = TraceRecorder(PDAStep)
    state = pda.start_state
    stack: list[str] = [pda.start_symbol] if pda.start_symbol else []
    trace.record(
        current_state=state, remaining_input=text, consumed_input="", stack=stack
    )

    for i, symbol in enumerate(text):
        transition = _select_pda_transition(pda.candidates(state, symbol), stack)
        if transition is None:
            logger.debug("No PDA transition from %s on %r", state, symbol)
            trace.record(
                current_state=state,
                remaining_input=text[i:],
                consumed_input=text[:i],
                stack=stack,
                accepted=False,
            )
            return _pda_result(trace, state, stack, False)
        state = _apply_pda_transition(transition, stack)
        trace.record(
            current_state=state,
            remaining_input=text[i + 1 :],
            consumed_input=text[: i + 1],
            stack=stack,
            transition=transition,
        )

    moves = 0
    while True:
        transition = _select_pda_transition(
            pda.candidates(state, constants.EPSILON), stack
        )
        if transition is None:
            break
        if moves >= config.pda_max_epsilon_moves:
            logger.warning(
                "PDA exceeded %d ε-moves in %s", config.pda_max_epsilon_moves, state
            )
            trace.mark_last(accepted=False)
            return _pda_result(trace, state, stack, False)
        state = _apply_pda_transition(transition, stack)
        moves += 1
        trace.stats.bump("epsilon_moves")
        trace.record(
            current_state=state,
            remaining_input="",
            consumed_input=text,
            stack=stack,
            transition=transition,
        )

    accepted = state in pda.accept_states and (not empty_stack_mode or not stack)
    trace.mark_last(accepted=accepted)
    return _pda_result(trace, state, stack, accepted)


def _pda_result(
    trace: TraceRecorder[PDAStep], state: str, stack: list[str], accepted: bool
) -> PDAResult:
    logger.info(
        "PDA %s in %s after %s",
        "accepted" if accepted else "rejected",
        state,
        trace.stats.report(),
    )
    return PDAResult(
        accepted=accepted,
        final_state=state,
        final_stack=tuple(stack),
        steps=trace.steps,
    )


# ── Turing machine ───────────────────────────────────────────────


def simulate_tm(
    definition: Mapping[str, Any] | TuringMachine,
    text: str,
    config: EngineConfig = DEFAULT_CONFIG,
) -> TMResult:
    """Run a Turing machine until it halts or ``config.tm_max_steps`` moves elapse.

    The tape grows by one blank cell whenever the head steps off either end.
    """
    tm = load_turing_machine(definition)
    blank = tm.blank_symbol
    tape = list(text) or [blank]
    tape.extend([blank] * max(0, config.tm_min_tape_length - len(tape)))
    head = 0
    state = tm.start_state
    logger.info(
        "Simulating TM from %s on %d symbols (max %d steps)",
        state,
        len(text),
        config.tm_max_steps,
    )

    trace: TraceRecorder[TMStep] = TraceRecorder(TMStep)
    trace.record(state=state, tape=tape, head_position=head)
    applied = 0

    while True:
        if state in tm.accept_states:
            reason = HaltReason.ACCEPT
            break
        if state in tm.reject_states:
            reason = HaltReason.REJECT_STATE
            break
        if applied >= config.tm_max_steps:
            logger.warning("TM hit the %d step limit in %s", config.tm_max_steps, state)
            reason = HaltReason.STEP_LIMIT
            break
        transition = tm.table.get((state, tape[head]))
        if transition is None:
            reason = HaltReason.NO_TRANSITION
            trace.record(
                state=state,
                tape=tape,
                head_position=head,
                accepted=False,
                halt_reason=reason,
            )
            return _tm_result(trace, tm, state, tape, head, reason, applied)

        tape[head] = transition.write
        state = transition.target
        if transition.direction is MoveDirection.LEFT:
            if head == 0:
                tape.insert(0, blank)
            else:
                head -= 1
        elif transition.direction is MoveDirection.RIGHT:
            head += 1
            if head == len(tape):
                tape.append(blank)
        applied += 1
        trace.record(state=state, tape=tape, head_position=head, transition=transition)

    trace.mark_last(accepted=reason is HaltReason.ACCEPT, halt_reason=reason)
    return _tm_result(trace, tm, state, tape, head, reason, applied)


def _tm_result(
    trace: TraceRecorder[TMStep],
    tm: TuringMachine,
    state: str,
    tape: list[str],
    head: int,
    reason: HaltReason,
    applied: int,
) -> TMResult:
    accepted = reason is HaltReason.ACCEPT
    logger.info(
        "TM halted (%s) in %s after %d transitions", reason.value, state, applied
    )
    return TMResult(
        accepted=accepted,
        final_state=state,
        final_tape=tuple(tape),
        head_position=head,
        halt_reason=reason,
        transitions_applied=applied,
        blank_symbol=tm.blank_symbol,
        steps=trace.steps,
    )
