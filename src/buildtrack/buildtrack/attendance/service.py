from __future__ import annotations

import logging
from datetime import date
from typing import Optional, Sequence

from ..access.scope import VisibilityResolver
from ..core.actor import Actor
from ..core.exceptions import NotFoundError
from ..projects.repository import ProjectRepository
from ..updates.model import Update
from ..updates.repository import UpdateRepository
from ..users.repository import UserRepository
from .deriver import DayMark
from .model import Attendance, AttendanceView
from .repository import AttendanceRepository

logger = logging.getLogger(__name__)


class AttendanceService:
    """Derives attendance from updates and serves scoped attendance queries."""

    def __init__(
        self,
        attendance: AttendanceRepository,
        users: UserRepository,
        projects: ProjectRepository,
        updates: UpdateRepository,
        visibility: VisibilityResolver,
    ):
        self._attendance = attendance
        self._users = users
        self._projects = projects
        self._updates = updates
        self._visibility = visibility

    def record_update(self, update: Update) -> Attendance:
        """Apply one accepted update to its poster's attendance for that day."""

        mark = DayMark.from_update(update)
        record = self._attendance.upsert_mark(mark)
        logger.info(
            "attendance user=%s project=%s day=%s %s=%s present=%s",
            mark.user_id,
            mark.project_id,
            mark.work_date.isoformat(),
            mark.update_type.value,
            mark.update_id,
            record.is_present,
        )
        return record

    def compose(self, records: Sequence[Attendance]) -> list[AttendanceView]:
        users = self._users.get_many({r.user_id for r in records})
        projects = self._projects.get_many({r.project_id for r in records})
        update_ids = set()
        for r in records:
            update_ids.update(i for i in (r.morning_update_id, r.evening_update_id) if i)
        updates = self._updates.get_many(update_ids)
        return [AttendanceView.compose(r, users, projects, updates) for r in records]

    def list_attendance(
        self,
        *,
        actor: Actor,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AttendanceView]:
        scope = self._visibility.scope_for(actor)
        if project_id is not None and not scope.allows(project_id):
            raise NotFoundError("Project")

        records = self._attendance.list_attendance(
            user_id=user_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
            filter_ids=scope.filter_ids,
        )
        return self.compose(records)

    def user_attendance(
        self,
        *,
        actor: Actor,
        user_id: int,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AttendanceView]:
        if not actor.is_admin and actor.user_id != user_id:
            raise NotFoundError("Attendance")
        records = self._attendance.list_attendance(
            user_id=user_id,
            project_id=project_id,
            start_date=start_date,
            end_date=end_date,
        )
        return self.compose(records)

    def project_attendance(
        self,
        *,
        actor: Actor,
        project_id: int,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> list[AttendanceView]:
        project = self._projects.get_by_id(project_id)
        if not project or not self._visibility.scope_for(actor).allows(project.project_id):
            raise NotFoundError("Project")
        records = self._attendance.list_attendance(
            project_id=project.project_id,
            start_date=start_date,
            end_date=end_date,
        )
        return self.compose(records)
