from __future__ import annotations

from typing import Iterable, Optional, Sequence

from ..common.pagination import PageRequest
from ..core.enums import Role
from ..database.connection import DatabaseConnection
from ..database.mysql_base import (
    db_cursor,
    duplicate_key_as_conflict,
    fetchall,
    fetchone,
    in_clause,
    referenced_row_as_conflict,
)
from .model import User
from .repository import USER_IN_USE_MESSAGE, UserRepository

_COLUMNS = "user_id, email, password_hash, name, role, phone, is_active, created_at, updated_at"


def _to_user(r: dict) -> User:
    return User(
        user_id=int(r["user_id"]),
        email=r["email"],
        password_hash=r["password_hash"],
        name=r["name"],
        role=Role(r["role"]),
        phone=r.get("phone"),
        is_active=bool(r.get("is_active", 1)),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLUserRepository(UserRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, user_id: int) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id=%s", (int(user_id),))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_by_email(self, email: str) -> Optional[User]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE email=%s", (email.lower(),))
            r = fetchone(cur)
            return _to_user(r) if r else None

    def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        ids = sorted({int(i) for i in user_ids if i is not None})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM users WHERE user_id IN {placeholders}", params)
            return {u.user_id: u for u in map(_to_user, fetchall(cur))}

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        page: PageRequest,
    ) -> tuple[Sequence[User], int]:
        clauses = ["1=1"]
        params: list[object] = []
        if role is not None:
            clauses.append("role=%s")
            params.append(role.value)
        if is_active is not None:
            clauses.append("is_active=%s")
            params.append(1 if is_active else 0)
        where = " AND ".join(clauses)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT COUNT(*) AS total FROM users WHERE {where}", tuple(params))
            total = int(fetchone(cur)["total"])
            cur.execute(
                f"""
                SELECT {_COLUMNS} FROM users
                WHERE {where}
                ORDER BY created_at DESC, user_id DESC
                LIMIT %s OFFSET %s
                """,
                tuple(params + [page.limit, page.offset]),
            )
            return [_to_user(r) for r in fetchall(cur)], total

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        role: Role,
        phone: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur), duplicate_key_as_conflict("User with this email already exists"):
            cur.execute(
                """
                INSERT INTO users(email, password_hash, name, role, phone)
                VALUES(%s,%s,%s,%s,%s)
                """,
                (email.lower(), password_hash, name, role.value, phone),
            )
            return int(cur.lastrowid)

    def update_user(
        self,
        user_id: int,
        *,
        name: str,
        phone: Optional[str],
        role: Role,
        is_active: bool,
    ) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE users SET name=%s, phone=%s, role=%s, is_active=%s WHERE user_id=%s",
                (name, phone, role.value, 1 if is_active else 0, int(user_id)),
            )

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("UPDATE users SET password_hash=%s WHERE user_id=%s", (password_hash, int(user_id)))
            return cur.rowcount > 0

    def delete_by_id(self, user_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur), referenced_row_as_conflict(USER_IN_USE_MESSAGE):
            cur.execute("DELETE FROM users WHERE user_id=%s", (int(user_id),))
            return cur.rowcount > 0
