from __future__ import annotations

from datetime import date
from typing import Collection, Iterable, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import ProjectStatus
from ..database.connection import DatabaseConnection
from ..database.mysql_base import as_float, db_cursor, fetchall, fetchone, in_clause
from .model import Project
from .repository import ProjectRepository

_COLUMNS = (
    "project_id, name, description, admin_id, contractor_id, status, start_date, end_date, "
    "budget, location, created_at, updated_at"
)


def _to_project(r: dict) -> Project:
    return Project(
        project_id=int(r["project_id"]),
        name=r["name"],
        description=r["description"],
        admin_id=int(r["admin_id"]),
        contractor_id=int(r["contractor_id"]) if r.get("contractor_id") is not None else None,
        status=ProjectStatus(r["status"]),
        start_date=r.get("start_date"),
        end_date=r.get("end_date"),
        budget=as_float(r.get("budget")),
        location=r.get("location"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLProjectRepository(ProjectRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, project_id: int) -> Optional[Project]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects WHERE project_id=%s", (int(project_id),))
            r = fetchone(cur)
            return _to_project(r) if r else None

    def get_many(self, project_ids: Iterable[int]) -> dict[int, Project]:
        ids = sorted({int(i) for i in project_ids if i is not None})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM projects WHERE project_id IN {placeholders}", params)
            return {p.project_id: p for p in map(_to_project, fetchall(cur))}

    def list_projects(
        self,
        *,
        status: Optional[ProjectStatus] = None,
        contractor_id: Optional[int] = None,
        admin_id: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
        page: PageRequest,
    ) -> tuple[Sequence[Project], int]:
        if filter_ids is not None and not filter_ids:
            return [], 0

        clauses = ["1=1"]
        params: list[object] = []
        if status is not None:
            clauses.append("status=%s")
            params.append(status.value)
        if contractor_id is not None:
            clauses.append("contractor_id=%s")
            params.append(int(contractor_id))
        if admin_id is not None:
            clauses.append("admin_id=%s")
            params.append(int(admin_id))
        if filter_ids is not None:
            placeholders, ids = in_clause(sorted(filter_ids))
            clauses.append(f"project_id IN {placeholders}")
            params.extend(ids)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM projects WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM projects
                WHERE {where}
                ORDER BY created_at DESC, project_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            return [_to_project(r) for r in fetchall(cur)], total

    def list_all(self, *, filter_ids: Optional[Collection[int]] = None) -> Sequence[Project]:
        if filter_ids is not None and not filter_ids:
            return []
        sql = f"SELECT {_COLUMNS} FROM projects"
        params: tuple = ()
        if filter_ids is not None:
            placeholders, params = in_clause(sorted(filter_ids))
            sql += f" WHERE project_id IN {placeholders}"
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " ORDER BY created_at DESC, project_id DESC", params)
            return [_to_project(r) for r in fetchall(cur)]

    def ids_for_contractor(self, contractor_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT project_id FROM projects WHERE contractor_id=%s", (int(contractor_id),))
            return {int(r["project_id"]) for r in fetchall(cur)}

    def create_project(
        self,
        *,
        name: str,
        description: str,
        admin_id: int,
        contractor_id: Optional[int],
        status: ProjectStatus,
        start_date: Optional[date],
        end_date: Optional[date],
        budget: Optional[float],
        location: Optional[str],
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO projects(name, description, admin_id, contractor_id, status,
                                     start_date, end_date, budget, location)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (name, description, int(admin_id), contractor_id, status.value, start_date, end_date, budget, location),
            )
            return int(cur.lastrowid)

    def update_project(self, project: Project) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                UPDATE projects
                SET name=%s, description=%s, contractor_id=%s, status=%s,
                    start_date=%s, end_date=%s, budget=%s, location=%s
                WHERE project_id=%s
                """,
                (
                    project.name,
                    project.description,
                    project.contractor_id,
                    project.status.value,
                    project.start_date,
                    project.end_date,
                    project.budget,
                    project.location,
                    project.project_id,
                ),
            )
            return cur.rowcount > 0

    def set_status(self, project_id: int, status: ProjectStatus) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE projects SET status=%s WHERE project_id=%s", (status.value, int(project_id)))
            return cur.rowcount > 0

    def set_end_date(self, project_id: int, end_date: date) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE projects SET end_date=%s WHERE project_id=%s", (end_date, int(project_id)))
            return cur.rowcount > 0

    def set_contractor(self, project_id: int, contractor_id: Optional[int]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE projects SET contractor_id=%s WHERE project_id=%s", (contractor_id, int(project_id)))
            return cur.rowcount > 0

    def delete_by_id(self, project_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM projects WHERE project_id=%s", (int(project_id),))
            return cur.rowcount > 0

    def count_by_status(self) -> dict[ProjectStatus, int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT status, COUNT(*) AS n FROM projects GROUP BY status")
            counts = {s: 0 for s in ProjectStatus}
            for r in fetchall(cur):
                counts[ProjectStatus(r["status"])] = int(r["n"])
            return counts

    def count_active_contractors(self) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT COUNT(DISTINCT contractor_id) AS n FROM projects WHERE status=%s AND contractor_id IS NOT NULL",
                (ProjectStatus.IN_PROGRESS.value,),
            )
            return int(fetchone(cur)["n"])
