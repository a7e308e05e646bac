from __future__ import annotations

from collections import defaultdict
from datetime import date
from typing import Collection, Iterable, Optional, Sequence

from ..core.enums import DocumentType, UpdateType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, duplicate_key_as_conflict, fetchall, fetchone, in_clause
from .model import AttachmentDescriptor, NewUpdate, Update, UpdateDocument
from .repository import UpdateRepository

_COLUMNS = (
    "update_id, project_id, contractor_id, posted_by, update_type, update_date, `timestamp`, "
    "status, description, created_at"
)
_DOC_COLUMNS = (
    "document_id, update_id, position, uploaded_by, doc_type, file_name, file_path, file_size, "
    "mime_type, description, created_at"
)

DUPLICATE_UPDATE_MESSAGE = "An update of this type has already been posted for this project today"


def _to_document(r: dict) -> UpdateDocument:
    return UpdateDocument(
        document_id=int(r["document_id"]),
        position=int(r["position"]),
        doc_type=DocumentType(r["doc_type"]),
        file_name=r["file_name"],
        file_path=r["file_path"],
        uploaded_by=int(r["uploaded_by"]),
        file_size=int(r["file_size"]) if r.get("file_size") is not None else None,
        mime_type=r.get("mime_type"),
        description=r.get("description"),
        created_at=r.get("created_at"),
    )


def _to_update(r: dict, documents: Sequence[UpdateDocument] = ()) -> Update:
    return Update(
        update_id=int(r["update_id"]),
        project_id=int(r["project_id"]),
        contractor_id=int(r["contractor_id"]) if r.get("contractor_id") is not None else None,
        posted_by=int(r["posted_by"]),
        update_type=UpdateType(r["update_type"]),
        update_date=r["update_date"],
        timestamp=r["timestamp"],
        status=r["status"],
        description=r.get("description"),
        documents=tuple(documents),
        created_at=r.get("created_at"),
    )


def _insert_documents(cur, update_id: int, documents: Sequence[AttachmentDescriptor], start: int) -> None:
    rows = [
        (
            int(update_id),
            start + i,
            int(d.uploaded_by),
            d.doc_type.value,
            d.file_name,
            d.file_path,
            d.file_size,
            d.mime_type,
            d.description,
        )
        for i, d in enumerate(documents)
    ]
    if rows:
        cur.executemany(
            """
            INSERT INTO update_documents(update_id, position, uploaded_by, doc_type, file_name, file_path,
                                         file_size, mime_type, description)
            VALUES(%s,%s,%s,%s,%s,%s,%s,%s,%s)
            """,
            rows,
        )


class MySQLUpdateRepository(UpdateRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def _hydrate(self, cur, rows: Sequence[dict]) -> list[Update]:
        if not rows:
            return []
        placeholders, params = in_clause([int(r["update_id"]) for r in rows])
        cur.execute(
            f"SELECT {_DOC_COLUMNS} FROM update_documents WHERE update_id IN {placeholders} ORDER BY update_id, position",
            params,
        )
        docs: dict[int, list[UpdateDocument]] = defaultdict(list)
        for d in fetchall(cur):
            docs[int(d["update_id"])].append(_to_document(d))
        return [_to_update(r, docs.get(int(r["update_id"]), ())) for r in rows]

    def get_by_id(self, update_id: int) -> Optional[Update]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM updates WHERE update_id=%s", (int(update_id),))
            r = fetchone(cur)
            return self._hydrate(cur, [r])[0] if r else None

    def get_many(self, update_ids: Iterable[int]) -> dict[int, Update]:
        ids = sorted({int(i) for i in update_ids if i is not None})
        if not ids:
            return {}
        placeholders, params = in_clause(ids)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM updates WHERE update_id IN {placeholders}", params)
            return {u.update_id: u for u in self._hydrate(cur, fetchall(cur))}

    def list_updates(
        self,
        *,
        project_id: Optional[int] = None,
        posted_by: Optional[int] = None,
        update_type: Optional[UpdateType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filter_ids: Optional[Collection[int]] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Update]:
        if filter_ids is not None and not filter_ids:
            return []

        clauses = ["1=1"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if posted_by is not None:
            clauses.append("posted_by=%s")
            params.append(int(posted_by))
        if update_type is not None:
            clauses.append("update_type=%s")
            params.append(update_type.value)
        if start_date is not None:
            clauses.append("update_date>=%s")
            params.append(start_date)
        if end_date is not None:
            clauses.append("update_date<=%s")
            params.append(end_date)
        if filter_ids is not None:
            placeholders, ids = in_clause(sorted(filter_ids))
            clauses.append(f"project_id IN {placeholders}")
            params.extend(ids)

        sql = f"SELECT {_COLUMNS} FROM updates WHERE {' AND '.join(clauses)} ORDER BY update_date DESC, `timestamp` DESC, update_id DESC"
        if limit is not None:
            sql += " LIMIT %s"
            params.append(int(limit))

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql, tuple(params))
            return self._hydrate(cur, fetchall(cur))

    def poster_ids_for_project(self, project_id: int) -> set[int]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT DISTINCT posted_by FROM updates WHERE project_id=%s", (int(project_id),))
            return {int(r["posted_by"]) for r in fetchall(cur)}

    def count_for_day(self, day: date) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("SELECT COUNT(*) AS n FROM updates WHERE update_date=%s", (day,))
            return int(fetchone(cur)["n"])

    def create_update(self, new: NewUpdate) -> int:
        with db_cursor(self._conn_factory) as (_, cur), duplicate_key_as_conflict(DUPLICATE_UPDATE_MESSAGE):
            cur.execute(
                """
                INSERT INTO updates(project_id, contractor_id, posted_by, update_type, update_date, `timestamp`,
                                    status, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (
                    int(new.project_id),
                    new.contractor_id,
                    int(new.posted_by),
                    new.update_type.value,
                    new.update_date,
                    new.timestamp,
                    new.status,
                    new.description,
                ),
            )
            update_id = int(cur.lastrowid)
            _insert_documents(cur, update_id, new.documents, start=0)
            return update_id

    def add_documents(self, update_id: int, documents: Sequence[AttachmentDescriptor]) -> None:
        with db_cursor(self._conn_factory) as (_, cur):
            # Lock the parent row so concurrent appends get distinct positions.
            cur.execute("SELECT update_id FROM updates WHERE update_id=%s FOR UPDATE", (int(update_id),))
            fetchone(cur)
            cur.execute(
                "SELECT COALESCE(MAX(position), -1) + 1 AS next_pos FROM update_documents WHERE update_id=%s",
                (int(update_id),),
            )
            start = int(fetchone(cur)["next_pos"])
            _insert_documents(cur, update_id, documents, start=start)
