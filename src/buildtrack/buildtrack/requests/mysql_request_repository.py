from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import RequestStatus, RequestType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_as_conflict, fetchall, fetchone, in_clause
from .model import ProjectRequest
from .repository import ProjectRequestRepository

_COLUMNS = (
    "request_id, project_id, requested_by, request_type, status, requested_end_date, approved_end_date, "
    "reason, admin_notes, reviewed_by, reviewed_at, created_at, updated_at"
)


def _to_request(r: dict) -> ProjectRequest:
    return ProjectRequest(
        request_id=int(r["request_id"]),
        project_id=int(r["project_id"]),
        requested_by=int(r["requested_by"]),
        request_type=RequestType(r["request_type"]),
        status=RequestStatus(r["status"]),
        requested_end_date=r.get("requested_end_date"),
        approved_end_date=r.get("approved_end_date"),
        reason=r.get("reason"),
        admin_notes=r.get("admin_notes"),
        reviewed_by=int(r["reviewed_by"]) if r.get("reviewed_by") is not None else None,
        reviewed_at=r.get("reviewed_at"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLProjectRequestRepository(ProjectRequestRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, request_id: int) -> Optional[ProjectRequest]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM project_requests WHERE request_id=%s", (int(request_id),))
            r = fetchone(cur)
            return _to_request(r) if r else None

    def list_requests(
        self,
        *,
        project_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        request_type: Optional[RequestType] = None,
        requested_by: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
        page: PageRequest,
    ) -> tuple[Sequence[ProjectRequest], int]:
        if filter_ids is not None and not filter_ids:
            return [], 0

        clauses = ["1=1"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if request_type is not None:
            clauses.append("request_type=%s")
            params.append(request_type.value)
        if requested_by is not None:
            clauses.append("requested_by=%s")
            params.append(int(requested_by))
        if filter_ids is not None:
            placeholders, ids = in_clause(sorted(filter_ids))
            clauses.append(f"project_id IN {placeholders}")
            params.extend(ids)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM project_requests WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM project_requests
                WHERE {where}
                ORDER BY created_at DESC, request_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            return [_to_request(r) for r in fetchall(cur)], total

    def has_pending(self, project_id: int, request_type: Optional[RequestType] = None) -> bool:
        sql = "SELECT 1 AS found FROM project_requests WHERE project_id=%s AND status=%s"
        params: list[object] = [int(project_id), RequestStatus.PENDING.value]
        if request_type is not None:
            sql += " AND request_type=%s"
            params.append(request_type.value)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " LIMIT 1", tuple(params))
            return fetchone(cur) is not None

    def count_pending(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM project_requests WHERE status=%s", (RequestStatus.PENDING.value,))
            return int(fetchone(cur)["n"])

    def create_request(
        self,
        *,
        project_id: int,
        requested_by: int,
        request_type: RequestType,
        requested_end_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> int:
        message = f"A pending {request_type.value} request already exists for this project"
        with db_cursor(self._conn_factory) as (_, cur), duplicate_key_as_conflict(message):
            cur.execute(
                """
                INSERT INTO project_requests(project_id, requested_by, request_type, status, requested_end_date, reason)
                VALUES(%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(project_id),
                    int(requested_by),
                    request_type.value,
                    RequestStatus.PENDING.value,
                    requested_end_date,
                    reason,
                ),
            )
            return int(cur.lastrowid)

    def decide(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_notes: Optional[str] = None,
        approved_end_date: Optional[date] = None,
    ) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            # Conditional on 'pending': a concurrent decision matches no row.
            cur.execute(
                """
                UPDATE project_requests
                SET status=%s, reviewed_by=%s, reviewed_at=%s, admin_notes=%s, approved_end_date=%s
                WHERE request_id=%s AND status=%s
                """,
                (
                    status.value,
                    int(reviewed_by),
                    reviewed_at,
                    admin_notes,
                    approved_end_date,
                    int(request_id),
                    RequestStatus.PENDING.value,
                ),
            )
            return cur.rowcount > 0

    def delete_pending(self, request_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "DELETE FROM project_requests WHERE request_id=%s AND status=%s",
                (int(request_id), RequestStatus.PENDING.value),
            )
            return cur.rowcount > 0
