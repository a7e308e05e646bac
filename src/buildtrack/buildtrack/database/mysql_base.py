from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence, Tuple

import mysql.connector
from mysql.connector import errorcode

from ..core.exceptions import ConflictError
from .connection import DatabaseConnection


@contextmanager
def db_cursor(conn_factory: DatabaseConnection, *, dictionary: bool = True):
    shared = conn_factory.active_connection()
    if shared is not None:
        # Inside transaction(): the outer block owns commit/rollback/close.
        cur = shared.cursor(dictionary=dictionary)
        try:
            yield shared, cur
        finally:
            cur.close()
        return

    conn = conn_factory.connect()
    try:
        cur = conn.cursor(dictionary=dictionary)
        try:
            yield conn, cur
            conn.commit()
        finally:
            cur.close()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def fetchone(cur) -> Optional[Dict[str, Any]]:
    row = cur.fetchone()
    return row if row else None


def fetchall(cur) -> List[Dict[str, Any]]:
    rows = cur.fetchall()
    return list(rows or [])


def is_duplicate_key(error: Exception) -> bool:
    return isinstance(error, mysql.connector.IntegrityError) and getattr(error, "errno", None) == errorcode.ER_DUP_ENTRY


def is_referenced_row(error: Exception) -> bool:
    return (
        isinstance(error, mysql.connector.IntegrityError)
        and getattr(error, "errno", None) == errorcode.ER_ROW_IS_REFERENCED_2
    )


@contextmanager
def duplicate_key_as_conflict(message: str):
    """Translate MySQL unique-index violations into ConflictError."""

    try:
        yield
    except mysql.connector.IntegrityError as e:
        if is_duplicate_key(e):
            raise ConflictError(message) from e
        raise


@contextmanager
def referenced_row_as_conflict(message: str):
    """Translate foreign-key RESTRICT violations on delete into ConflictError."""

    try:
        yield
    except mysql.connector.IntegrityError as e:
        if is_referenced_row(e):
            raise ConflictError(message) from e
        raise


def in_clause(values: Sequence[Any]) -> Tuple[str, Tuple[Any, ...]]:
    """Build ``IN (%s,%s,...)`` placeholders for a non-empty sequence."""

    items = tuple(values)
    if not items:
        raise ValueError("in_clause() needs at least one value")
    return "(" + ",".join(["%s"] * len(items)) + ")", items


def as_float(value: Any) -> Optional[float]:
    # DECIMAL columns come back as decimal.Decimal.
    return float(value) if value is not None else None
