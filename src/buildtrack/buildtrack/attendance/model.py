from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from ..projects.model import Project
from ..updates.model import Update, UpdateSlot
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class Attendance:
    """Derived daily presence of one user on one project.

    One record per ``(user_id, project_id, work_date)``;
    ``is_present`` holds exactly when both half-day update ids are set.
    """

    attendance_id: int
    user_id: int
    project_id: int
    work_date: date
    morning_update_id: Optional[int] = None
    evening_update_id: Optional[int] = None
    is_present: bool = False
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class AttendanceView:
    attendance_id: int
    work_date: date
    is_present: bool
    user_id: int
    user: Optional[UserSummary]
    project_id: int
    project_name: Optional[str]
    morning_update_id: Optional[int]
    morning_update: Optional[UpdateSlot]
    evening_update_id: Optional[int]
    evening_update: Optional[UpdateSlot]

    @classmethod
    def compose(
        cls,
        record: Attendance,
        users: Mapping[int, User],
        projects: Mapping[int, Project],
        updates: Mapping[int, Update],
    ) -> "AttendanceView":
        user = users.get(record.user_id)
        project = projects.get(record.project_id)
        morning = updates.get(record.morning_update_id) if record.morning_update_id else None
        evening = updates.get(record.evening_update_id) if record.evening_update_id else None
        return cls(
            attendance_id=record.attendance_id,
            work_date=record.work_date,
            is_present=record.is_present,
            user_id=record.user_id,
            user=UserSummary.of(user) if user else None,
            project_id=record.project_id,
            project_name=project.name if project else None,
            morning_update_id=record.morning_update_id,
            morning_update=UpdateSlot.of(morning) if morning else None,
            evening_update_id=record.evening_update_id,
            evening_update=UpdateSlot.of(evening) if evening else None,
        )
