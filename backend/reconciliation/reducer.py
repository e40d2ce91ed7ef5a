"""
Pure status reducer.

(state, event) -> (new_state, commands)

Rules:
- Pure: no side effects, no IO, no clocks.
- Deterministic: output depends only on inputs.
- Total: every (state, event) pair is handled or explicitly ignored (logged).
"""

from __future__ import annotations

from dataclasses import replace
from typing import Any

from reconciliation.commands import (
    CancelCommitTimer,
    Command,
    LogEvent,
    PublishStatus,
    RecordMetric,
    StartCommitTimer,
)
from reconciliation.enums.mode import CommunicationMode
from reconciliation.enums.status import VoiceStatus
from reconciliation.events import (
    CommitTimerFired,
    EngineTeardown,
    Event,
    SignalChanged,
)
from reconciliation.signals import SignalTuple
from reconciliation.state_dataclass import (
    CommitReason,
    PendingCommit,
    ReconciliationState,
)


# =============================================================================
# Invariants
# =============================================================================
# - At most one pending commit; every recomputation cancels it first
# - commit_id is bumped ONLY when a commit is scheduled
# - A CommitTimerFired for any commit_id but the pending one is stale
# - Nothing is committed, scheduled or published after teardown

# Authoritative conditions: shown without delay, never debounced.
IMMEDIATE_STATUSES: frozenset[VoiceStatus] = frozenset({
    VoiceStatus.THINKING,
    VoiceStatus.SPEAKING,
    VoiceStatus.DISCONNECTED,
    VoiceStatus.TEXT_ONLY,
    VoiceStatus.LISTEN_ONLY,
})

METRIC_HEARING_EPISODE = "hearing_episode_ms"

Transition = tuple[ReconciliationState, tuple[Command, ...]]


# =============================================================================
# Desired status (priority table)
# =============================================================================

def desired_status(signals: SignalTuple) -> VoiceStatus:
    """
    Compute the instantaneous status for a signal tuple.

    Priority, first match wins: connectivity, then mode, then tutor
    activity, then student voice activity, then the idle default.
    Speaking beats thinking when both are set.
    """
    if not signals.connected:
        return VoiceStatus.DISCONNECTED

    if signals.mode is CommunicationMode.TEXT:
        return VoiceStatus.TEXT_ONLY

    if signals.mode is CommunicationMode.HYBRID:
        if signals.tutor_speaking:
            return VoiceStatus.SPEAKING
        if signals.tutor_thinking:
            return VoiceStatus.THINKING
        return VoiceStatus.LISTEN_ONLY

    if signals.mode is CommunicationMode.VOICE and not signals.mic_enabled:
        if signals.tutor_speaking:
            return VoiceStatus.SPEAKING
        if signals.tutor_thinking:
            return VoiceStatus.THINKING
        return VoiceStatus.MIC_MUTED

    if signals.tutor_speaking:
        return VoiceStatus.SPEAKING

    if signals.tutor_thinking:
        return VoiceStatus.THINKING

    if signals.hearing_student:
        return VoiceStatus.HEARING_YOU

    return VoiceStatus.LISTENING


# =============================================================================
# Small helpers
# =============================================================================

def _log(
    state: ReconciliationState,
    event: Event,
    decision: str,
    details: dict[str, Any] | None = None,
) -> LogEvent:
    pending = state.pending
    return LogEvent(
        event={
            "ts_ms": event.ts_ms,
            "event_type": event.event_type.value,
            "decision": decision,
            "committed": state.committed.value,
            "desired": state.desired.value,
            "pending": None if pending is None else {
                "commit_id": pending.commit_id,
                "target": pending.target.value,
                "reason": pending.reason.value,
            },
            "details": details or {},
        }
    )


def _logs_last(commands: tuple[Command, ...]) -> tuple[Command, ...]:
    non_logs: list[Command] = []
    logs: list[Command] = []

    for command in commands:
        if isinstance(command, LogEvent):
            logs.append(command)
        else:
            non_logs.append(command)

    return tuple(non_logs + logs)


def _ignore(
    state: ReconciliationState, event: Event, reason: str
) -> Transition:
    return state, (_log(state, event, "ignore", {"reason": reason}),)


def _cancel_pending(
    state: ReconciliationState, event: Event
) -> Transition:
    pending = state.pending
    if pending is None:
        return state, ()

    new_state = replace(state, pending=None)
    return new_state, (
        CancelCommitTimer(commit_id=pending.commit_id),
        _log(
            new_state,
            event,
            "cancel_commit",
            {
                "commit_id": pending.commit_id,
                "target": pending.target.value,
            },
        ),
    )


def _schedule(
    state: ReconciliationState,
    event: Event,
    target: VoiceStatus,
    reason: CommitReason,
) -> Transition:
    if reason is CommitReason.ENTER_HEARING:
        duration_ms = state.timing.enter_hearing_ms
    elif reason is CommitReason.EXIT_HEARING:
        duration_ms = state.timing.exit_hearing_ms
    else:
        duration_ms = state.timing.transition_ms

    commit_id = state.last_commit_id + 1
    new_state = replace(
        state,
        last_commit_id=commit_id,
        pending=PendingCommit(
            commit_id=commit_id,
            target=target,
            duration_ms=duration_ms,
            reason=reason,
            scheduled_ts_ms=event.ts_ms,
        ),
    )
    return new_state, (
        StartCommitTimer(
            commit_id=commit_id,
            duration_ms=duration_ms,
            target=target,
        ),
        _log(
            new_state,
            event,
            "schedule_commit",
            {
                "commit_id": commit_id,
                "target": target.value,
                "reason": reason.value,
                "duration_ms": duration_ms,
            },
        ),
    )


def _commit(
    state: ReconciliationState,
    event: Event,
    target: VoiceStatus,
    source: str,
) -> Transition:
    if target is state.committed:
        return state, (_log(state, event, "no_change", {"source": source}),)

    new_state = replace(state, committed=target)
    return new_state, (
        PublishStatus(status=target, previous=state.committed),
        _log(
            new_state,
            event,
            "status_committed",
            {
                "from_status": state.committed.value,
                "to_status": target.value,
                "source": source,
            },
        ),
    )


def _start_episode(
    state: ReconciliationState, event: Event
) -> Transition:
    if state.hearing_started_ms is not None:
        return state, ()

    new_state = replace(state, hearing_started_ms=event.ts_ms)
    return new_state, (_log(new_state, event, "hearing_episode_started"),)


def _end_episode(
    state: ReconciliationState,
    event: Event,
    *,
    completed: bool,
) -> Transition:
    """
    Clear the hearing-episode start.

    completed=True means "hearing_you" was actually shown; only those
    episodes are reported as a duration metric.
    """
    if state.hearing_started_ms is None:
        return state, ()

    duration_ms = max(0, event.ts_ms - state.hearing_started_ms)
    new_state = replace(state, hearing_started_ms=None)

    cmds: tuple[Command, ...] = (
        _log(
            new_state,
            event,
            "hearing_episode_ended",
            {"duration_ms": duration_ms, "completed": completed},
        ),
    )
    if completed:
        cmds = (
            RecordMetric(name=METRIC_HEARING_EPISODE, value_ms=duration_ms),
        ) + cmds

    return new_state, cmds


# =============================================================================
# Per-event reducers
# =============================================================================

def _reduce_signal_changed(
    state: ReconciliationState, event: SignalChanged
) -> Transition:
    if state.last_signals == event.signals:
        return _ignore(state, event, "signals_unchanged")

    desired = desired_status(event.signals)
    state = replace(state, last_signals=event.signals, desired=desired)
    cmds: tuple[Command, ...] = ()

    # Last write wins on the timer: whatever was pending is dropped.
    state, more = _cancel_pending(state, event)
    cmds += more

    committed = state.committed

    # An entry that never got shown must not leak into the next episode.
    if (
        desired is not VoiceStatus.HEARING_YOU
        and committed is not VoiceStatus.HEARING_YOU
    ):
        state, more = _end_episode(state, event, completed=False)
        cmds += more

    if desired is VoiceStatus.HEARING_YOU and committed is not VoiceStatus.HEARING_YOU:
        state, more = _start_episode(state, event)
        cmds += more
        state, more = _schedule(state, event, desired, CommitReason.ENTER_HEARING)
        cmds += more

    elif committed is VoiceStatus.HEARING_YOU and desired is VoiceStatus.LISTENING:
        state, more = _schedule(state, event, desired, CommitReason.EXIT_HEARING)
        cmds += more

    elif desired in IMMEDIATE_STATUSES:
        state, more = _end_episode(
            state, event, completed=committed is VoiceStatus.HEARING_YOU
        )
        cmds += more
        state, more = _commit(state, event, desired, "immediate")
        cmds += more

    elif desired is not committed:
        state, more = _schedule(state, event, desired, CommitReason.TRANSITION)
        cmds += more

    else:
        cmds += (_log(state, event, "no_change", {"source": "signal_changed"}),)

    return state, _logs_last(cmds)


def _reduce_commit_timer_fired(
    state: ReconciliationState, event: CommitTimerFired
) -> Transition:
    pending = state.pending
    if pending is None:
        return _ignore(state, event, "commit_timer_without_pending")
    if event.commit_id != pending.commit_id:
        return _ignore(state, event, "commit_timer_stale")

    state = replace(state, pending=None)
    cmds: tuple[Command, ...] = ()

    if (
        state.committed is VoiceStatus.HEARING_YOU
        and pending.target is not VoiceStatus.HEARING_YOU
    ):
        state, more = _end_episode(state, event, completed=True)
        cmds += more

    state, more = _commit(state, event, pending.target, pending.reason.value)
    cmds += more

    return state, _logs_last(cmds)


def _reduce_teardown(
    state: ReconciliationState, event: EngineTeardown
) -> Transition:
    cmds: tuple[Command, ...] = ()

    state, more = _cancel_pending(state, event)
    cmds += more

    state, more = _end_episode(state, event, completed=False)
    cmds += more

    state = replace(state, torn_down=True)
    cmds += (_log(state, event, "engine_teardown"),)

    return state, _logs_last(cmds)


# =============================================================================
# Reducer entrypoint
# =============================================================================

def reduce(
    state: ReconciliationState,
    event: Event,
) -> Transition:
    """
    Apply one event to the reconciliation state.

    Returns the new state and the commands the runtime must execute, in
    order. The input state is never mutated.
    """
    if state.torn_down:
        return _ignore(state, event, "torn_down")

    if isinstance(event, SignalChanged):
        return _reduce_signal_changed(state, event)

    if isinstance(event, CommitTimerFired):
        return _reduce_commit_timer_fired(state, event)

    if isinstance(event, EngineTeardown):
        return _reduce_teardown(state, event)

    return _ignore(state, event, "unknown_event")
