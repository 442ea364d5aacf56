"""
Monitor session state machine.

active    -> paused, completed, stopped, error
paused    -> active, stopped
error     -> stopped
completed, stopped: terminal
"""

from ratewatch.models.monitor_session import MonitorSessionStatus

ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    MonitorSessionStatus.ACTIVE: frozenset(
        {
            MonitorSessionStatus.PAUSED,
            MonitorSessionStatus.COMPLETED,
            MonitorSessionStatus.STOPPED,
            MonitorSessionStatus.ERROR,
        }
    ),
    MonitorSessionStatus.PAUSED: frozenset(
        {MonitorSessionStatus.ACTIVE, MonitorSessionStatus.STOPPED}
    ),
    MonitorSessionStatus.ERROR: frozenset({MonitorSessionStatus.STOPPED}),
    MonitorSessionStatus.COMPLETED: frozenset(),
    MonitorSessionStatus.STOPPED: frozenset(),
}


def can_transition(current: str, target: str) -> bool:
    """Check if a status change is allowed."""
    return target in ALLOWED_TRANSITIONS.get(current, frozenset())


def sources_for(target: str) -> tuple[str, ...]:
    """Statuses from which target can be reached."""
    return tuple(
        status
        for status, targets in ALLOWED_TRANSITIONS.items()
        if target in targets
    )
