from __future__ import annotations

from collections import defaultdict
from typing import Iterable, Optional, Sequence

from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_as_conflict, fetchall, fetchone, in_clause
from .model import Team
from .repository import TeamRepository

_COLUMNS = "t.team_id, t.project_id, t.contractor_id, t.team_name, t.created_by, t.created_at, t.updated_at"


def _to_team(r: dict, member_ids: Sequence[int] = ()) -> Team:
    return Team(
        team_id=int(r["team_id"]),
        project_id=int(r["project_id"]),
        contractor_id=int(r["contractor_id"]),
        team_name=r["team_name"],
        created_by=int(r["created_by"]),
        member_ids=tuple(member_ids),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLTeamRepository(TeamRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _members_by_team(self, cur, team_ids: Sequence[int]) -> dict[int, list[int]]:
        members: dict[int, list[int]] = defaultdict(list)
        if not team_ids:
            return members
        placeholders, params = in_clause(team_ids)
        cur.execute(
            f"SELECT team_id, user_id FROM team_members WHERE team_id IN {placeholders} ORDER BY added_at, user_id",
            params,
        )
        for r in fetchall(cur):
            members[int(r["team_id"])].append(int(r["user_id"]))
        return members

    def get_by_id(self, team_id: int) -> Optional[Team]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM teams t WHERE t.team_id=%s", (int(team_id),))
            r = fetchone(cur)
            if not r:
                return None
            members = self._members_by_team(cur, [int(team_id)])
            return _to_team(r, members.get(int(team_id), ()))

    def list_teams(
        self,
        *,
        project_id: Optional[int] = None,
        contractor_id: Optional[int] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[Team]:
        clauses = ["1=1"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("t.project_id=%s")
            params.append(int(project_id))
        if contractor_id is not None:
            clauses.append("t.contractor_id=%s")
            params.append(int(contractor_id))
        if member_id is not None:
            clauses.append("EXISTS (SELECT 1 FROM team_members tm WHERE tm.team_id=t.team_id AND tm.user_id=%s)")
            params.append(int(member_id))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM teams t WHERE {' AND '.join(clauses)} ORDER BY t.created_at DESC, t.team_id DESC",
                tuple(params),
            )
            rows = fetchall(cur)
            members = self._members_by_team(cur, [int(r["team_id"]) for r in rows])
            return [_to_team(r, members.get(int(r["team_id"]), ())) for r in rows]

    def project_ids_for_member(self, user_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT project_id FROM team_members WHERE user_id=%s", (int(user_id),))
            return {int(r["project_id"]) for r in fetchall(cur)}

    def member_ids_for_project(self, project_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT user_id FROM team_members WHERE project_id=%s", (int(project_id),))
            return {int(r["user_id"]) for r in fetchall(cur)}

    def is_project_member(self, project_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "SELECT 1 AS found FROM team_members WHERE project_id=%s AND user_id=%s LIMIT 1",
                (int(project_id), int(user_id)),
            )
            return fetchone(cur) is not None

    def create_team(self, *, project_id: int, contractor_id: int, team_name: str, created_by: int) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "INSERT INTO teams(project_id, contractor_id, team_name, created_by) VALUES(%s,%s,%s,%s)",
                (int(project_id), int(contractor_id), team_name, int(created_by)),
            )
            return int(cur.lastrowid)

    def rename(self, team_id: int, team_name: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE teams SET team_name=%s WHERE team_id=%s", (team_name, int(team_id)))
            return cur.rowcount > 0

    def add_members(self, team_id: int, project_id: int, user_ids: Iterable[int]) -> None:
        rows = [(int(team_id), int(project_id), int(u)) for u in user_ids]
        if not rows:
            return
        with db_cursor(self._conn_factory) as (_, cur), duplicate_key_as_conflict("User is already a member of this team"):
            cur.executemany("INSERT INTO team_members(team_id, project_id, user_id) VALUES(%s,%s,%s)", rows)

    def replace_members(self, team_id: int, project_id: int, user_ids: Iterable[int]) -> None:
        rows = [(int(team_id), int(project_id), int(u)) for u in user_ids]
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM team_members WHERE team_id=%s", (int(team_id),))
            if rows:
                cur.executemany("INSERT INTO team_members(team_id, project_id, user_id) VALUES(%s,%s,%s)", rows)

    def remove_member(self, team_id: int, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM team_members WHERE team_id=%s AND user_id=%s", (int(team_id), int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, team_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM teams WHERE team_id=%s", (int(team_id),))
            return cur.rowcount > 0
