"""Project status state machine.

    planning -> in_progress -> (on_hold <-> in_progress) -> completed | cancelled

``completed`` and ``cancelled`` are terminal. A project may be cancelled
from any non-terminal state. Writing the current status again is a no-op.
"""

from __future__ import annotations

from typing import Mapping

from ..core.enums import ProjectStatus
from ..core.exceptions import ValidationError

TERMINAL_STATUSES = frozenset({ProjectStatus.COMPLETED, ProjectStatus.CANCELLED})

ALLOWED_TRANSITIONS: Mapping[ProjectStatus, frozenset] = {
    ProjectStatus.PLANNING: frozenset({ProjectStatus.IN_PROGRESS, ProjectStatus.CANCELLED}),
    ProjectStatus.IN_PROGRESS: frozenset(
        {ProjectStatus.ON_HOLD, ProjectStatus.COMPLETED, ProjectStatus.CANCELLED}
    ),
    ProjectStatus.ON_HOLD: frozenset({ProjectStatus.IN_PROGRESS, ProjectStatus.CANCELLED}),
    ProjectStatus.COMPLETED: frozenset(),
    ProjectStatus.CANCELLED: frozenset(),
}


def is_terminal(status: ProjectStatus) -> bool:
    return status in TERMINAL_STATUSES


def can_transition(current: ProjectStatus, target: ProjectStatus) -> bool:
    if current == target:
        return True
    return target in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: ProjectStatus, target: ProjectStatus) -> None:
    if not can_transition(current, target):
        raise ValidationError(f"Cannot change project status from {current.value} to {target.value}")


def accepts_updates(status: ProjectStatus) -> bool:
    """Daily updates and contractor requests are legal only while work is ongoing."""

    return status == ProjectStatus.IN_PROGRESS
