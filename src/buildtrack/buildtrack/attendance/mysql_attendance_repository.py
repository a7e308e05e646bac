from __future__ import annotations

from datetime import date
from typing import Collection, Optional, Sequence

from ..core.enums import UpdateType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .deriver import DayMark, is_present
from .model import Attendance
from .repository import AttendanceRepository

_COLUMNS = (
    "attendance_id, user_id, project_id, work_date, morning_update_id, evening_update_id, "
    "is_present, created_at, updated_at"
)


def _opt_int(value) -> Optional[int]:
    return int(value) if value is not None else None


def _to_attendance(r: dict) -> Attendance:
    return Attendance(
        attendance_id=int(r["attendance_id"]),
        user_id=int(r["user_id"]),
        project_id=int(r["project_id"]),
        work_date=r["work_date"],
        morning_update_id=_opt_int(r.get("morning_update_id")),
        evening_update_id=_opt_int(r.get("evening_update_id")),
        is_present=bool(r.get("is_present")),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLAttendanceRepository(AttendanceRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def upsert_mark(self, mark: DayMark) -> Attendance:
        morning = mark.update_id if mark.update_type == UpdateType.MORNING else None
        evening = mark.update_id if mark.update_type == UpdateType.EVENING else None
        with db_cursor(self._conn_factory) as (_, cur):
            # COALESCE keeps an already-set half. MySQL applies the assignments
            # left to right, so is_present sees both new half values.
            cur.execute(
                """
                INSERT INTO attendance(user_id, project_id, work_date, morning_update_id, evening_update_id, is_present)
                VALUES(%s,%s,%s,%s,%s,%s) AS new
                ON DUPLICATE KEY UPDATE
                    morning_update_id = COALESCE(attendance.morning_update_id, new.morning_update_id),
                    evening_update_id = COALESCE(attendance.evening_update_id, new.evening_update_id),
                    is_present = (morning_update_id IS NOT NULL AND evening_update_id IS NOT NULL)
                """,
                (
                    int(mark.user_id),
                    int(mark.project_id),
                    mark.work_date,
                    morning,
                    evening,
                    1 if is_present(morning, evening) else 0,
                ),
            )
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND project_id=%s AND work_date=%s",
                (int(mark.user_id), int(mark.project_id), mark.work_date),
            )
            return _to_attendance(fetchone(cur))

    def get_for(self, user_id: int, project_id: int, work_date: date) -> Optional[Attendance]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE user_id=%s AND project_id=%s AND work_date=%s",
                (int(user_id), int(project_id), work_date),
            )
            r = fetchone(cur)
            return _to_attendance(r) if r else None

    def list_attendance(
        self,
        *,
        user_id: Optional[int] = None,
        project_id: Optional[int] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filter_ids: Optional[Collection[int]] = None,
    ) -> Sequence[Attendance]:
        if filter_ids is not None and not filter_ids:
            return []

        clauses = ["1=1"]
        params: list[object] = []
        if user_id is not None:
            clauses.append("user_id=%s")
            params.append(int(user_id))
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if start_date is not None:
            clauses.append("work_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("work_date<=%s")
            params.append(end_date)
        if filter_ids is not None:
            placeholders, ids = in_clause(sorted(filter_ids))
            clauses.append(f"project_id IN {placeholders}")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM attendance WHERE {' AND '.join(clauses)} ORDER BY work_date DESC, user_id",
                tuple(params),
            )
            return [_to_attendance(r) for r in fetchall(cur)]
