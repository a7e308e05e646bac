"""Attendance derivation from half-day updates.

Each accepted update marks one half (morning or evening) of the poster's
day on a project. A half that is already set is never overwritten, and
``is_present`` is recomputed from both halves on every application, so
applying the same mark twice yields the same record as applying it once.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from datetime import date
from typing import Optional

from ..common.datetime_utils import day_key
from ..core.enums import UpdateType
from ..updates.model import Update
from .model import Attendance


@dataclass(frozen=True)
class DayMark:
    user_id: int
    project_id: int
    work_date: date
    update_type: UpdateType
    update_id: int

    @classmethod
    def from_update(cls, update: Update) -> "DayMark":
        return cls(
            user_id=update.posted_by,
            project_id=update.project_id,
            work_date=day_key(update.update_date),
            update_type=update.update_type,
            update_id=update.update_id,
        )

    @property
    def key(self) -> tuple[int, int, date]:
        return (self.user_id, self.project_id, self.work_date)


def is_present(morning_update_id: Optional[int], evening_update_id: Optional[int]) -> bool:
    return morning_update_id is not None and evening_update_id is not None


def apply_mark(record: Optional[Attendance], mark: DayMark, *, attendance_id: int = 0) -> Attendance:
    """Fold ``mark`` into ``record`` (or a fresh record when there is none)."""

    if record is None:
        record = Attendance(
            attendance_id=attendance_id,
            user_id=mark.user_id,
            project_id=mark.project_id,
            work_date=mark.work_date,
        )
    elif (record.user_id, record.project_id, record.work_date) != mark.key:
        raise ValueError("attendance record and mark refer to different days")

    morning = record.morning_update_id
    evening = record.evening_update_id
    if mark.update_type == UpdateType.MORNING and morning is None:
        morning = mark.update_id
    elif mark.update_type == UpdateType.EVENING and evening is None:
        evening = mark.update_id

    return dataclasses.replace(
        record,
        morning_update_id=morning,
        evening_update_id=evening,
        is_present=is_present(morning, evening),
    )
