from __future__ import annotations

import json
from typing import Any, Mapping, Optional, Sequence

from ..core.enums import ReportType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone
from .model import SavedReport
from .repository import SavedReportRepository

_COLUMNS = (
    "report_id, project_id, generated_by, report_type, title, description, file_path, data, "
    "created_at, updated_at"
)


def _to_report(r: dict) -> SavedReport:
    raw = r.get("data")
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    return SavedReport(
        report_id=int(r["report_id"]),
        project_id=int(r["project_id"]) if r.get("project_id") is not None else None,
        generated_by=int(r["generated_by"]),
        report_type=ReportType(r["report_type"]),
        title=r["title"],
        data=json.loads(raw) if raw else {},
        description=r.get("description"),
        file_path=r.get("file_path"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLSavedReportRepository(SavedReportRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, report_id: int) -> Optional[SavedReport]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM reports WHERE report_id=%s", (int(report_id),))
            r = fetchone(cur)
            return _to_report(r) if r else None

    def list_reports(
        self,
        *,
        project_id: Optional[int] = None,
        report_type: Optional[ReportType] = None,
    ) -> Sequence[SavedReport]:
        clauses = ["1=1"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if report_type is not None:
            clauses.append("report_type=%s")
            params.append(report_type.value)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM reports WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, report_id DESC",
                tuple(params),
            )
            return [_to_report(r) for r in fetchall(cur)]

    def create_report(
        self,
        *,
        project_id: Optional[int],
        generated_by: int,
        report_type: ReportType,
        title: str,
        data: Mapping[str, Any],
        description: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO reports(project_id, generated_by, report_type, title, description, file_path, data)
                VALUES(%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(project_id) if project_id is not None else None,
                    int(generated_by),
                    report_type.value,
                    title,
                    description,
                    file_path,
                    json.dumps(data),
                ),
            )
            return int(cur.lastrowid)

    def update_report(
        self,
        report_id: int,
        *,
        title: str,
        description: Optional[str],
        file_path: Optional[str],
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE reports SET title=%s, description=%s, file_path=%s WHERE report_id=%s",
                (title, description, file_path, int(report_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, report_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM reports WHERE report_id=%s", (int(report_id),))
            return cur.rowcount > 0
