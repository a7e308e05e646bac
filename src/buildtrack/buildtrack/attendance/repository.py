from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Protocol, Sequence

from .deriver import DayMark
from .model import Attendance


class AttendanceRepository(Protocol):
    """Repository interface for Attendance.

    ``upsert_mark`` is the atomic upsert keyed by
    ``(user_id, project_id, work_date)``; it follows ``deriver.apply_mark``.
    """

    def upsert_mark(self, mark: DayMark) -> Attendance:
        raise NotImplementedError

    def get_for(self, user_id: int, project_id: int, work_date: date) -> Optional[Attendance]:
        raise NotImplementedError

    def list_attendance(
        self,
        *,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filter_ids: Optional[Collection[int]] = None,
    ) -> Sequence[Attendance]:
        """Newest day first, then by user id."""

        raise NotImplementedError
