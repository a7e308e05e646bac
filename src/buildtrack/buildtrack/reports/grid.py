"""Pure assembly of the project attendance grid."""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional, Sequence, Tuple

from ..common.datetime_utils import day_key, iter_days
from ..core.enums import UpdateType
from ..teams.model import ProjectRef
from ..updates.model import Update, UpdateSlot
from ..users.model import UserSummary
from .model import AttendanceGrid, GridCell, GridDay


def build_grid(
    *,
    project: ProjectRef,
    start: date,
    end: date,
    members: Sequence[UserSummary],
    updates: Iterable[Update],
) -> AttendanceGrid:
    """Lay ``updates`` out over every day in ``[start, end]`` x ``members``.

    Updates outside the range or posted by someone not in ``members`` are
    ignored. When a half somehow holds two updates the earliest one wins,
    the same rule the attendance deriver applies.
    """

    slots: Dict[Tuple[date, int, UpdateType], Update] = {}
    for u in updates:
        day = day_key(u.update_date)
        if day < start or day > end:
            continue
        key = (day, u.posted_by, u.update_type)
        current = slots.get(key)
        if current is None or (u.timestamp, u.update_id) < (current.timestamp, current.update_id):
            slots[key] = u

    def slot(day: date, user_id: int, kind: UpdateType) -> Optional[UpdateSlot]:
        u = slots.get((day, user_id, kind))
        return UpdateSlot.of(u) if u else None

    days = tuple(
        GridDay(
            day=d,
            cells=tuple(
                GridCell(
                    user_id=m.user_id,
                    morning=slot(d, m.user_id, UpdateType.MORNING),
                    evening=slot(d, m.user_id, UpdateType.EVENING),
                )
                for m in members
            ),
        )
        for d in iter_days(start, end)
    )
    return AttendanceGrid(project=project, start_date=start, end_date=end, members=tuple(members), days=days)
