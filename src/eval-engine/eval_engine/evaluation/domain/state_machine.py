"""Run lifecycle state machine.

Pending ──► DataPreviewed ──► Processing ──► Completed
   │              │   ▲            │
   │              ▼   │            ▼
   └──────────► Failed ◄───────────┘
                  │
                  └──► Processing (resubmit) / DataPreviewed (re-preview)
"""

from eval_engine.evaluation.domain.errors import InvalidTransitionError
from eval_engine.evaluation.domain.status import RunStatus

_TRANSITIONS: dict[RunStatus, frozenset[RunStatus]] = {
    RunStatus.PENDING: frozenset(
        {RunStatus.DATA_PREVIEWED, RunStatus.PROCESSING, RunStatus.FAILED}
    ),
    RunStatus.DATA_PREVIEWED: frozenset(
        {RunStatus.DATA_PREVIEWED, RunStatus.PROCESSING, RunStatus.FAILED}
    ),
    RunStatus.PROCESSING: frozenset({RunStatus.COMPLETED, RunStatus.FAILED}),
    RunStatus.FAILED: frozenset({RunStatus.DATA_PREVIEWED, RunStatus.PROCESSING}),
    RunStatus.COMPLETED: frozenset(),
}

TERMINAL_STATUSES = frozenset({RunStatus.COMPLETED, RunStatus.FAILED})


def can_transition(current: RunStatus, target: RunStatus) -> bool:
    return target in _TRANSITIONS[current]


def transition(current: RunStatus, target: RunStatus) -> RunStatus:
    """Return target if the lifecycle allows current -> target.

    Raises:
        InvalidTransitionError: for any transition not listed above.
    """
    if not can_transition(current=current, target=target):
        raise InvalidTransitionError(current=current, target=target)
    return target


def can_start(status: RunStatus) -> bool:
    """True when a run in this status may enter Processing."""
    return can_transition(current=status, target=RunStatus.PROCESSING)


def is_terminal(status: RunStatus) -> bool:
    return status in TERMINAL_STATUSES
