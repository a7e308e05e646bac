from __future__ import annotations

from typing import Collection, Optional, Sequence

from ..core.enums import DocumentType
from ..database.connection import DatabaseConnection
from ..database.mysql_base import db_cursor, fetchall, fetchone, in_clause
from .model import Document
from .repository import DocumentRepository

_COLUMNS = (
    "document_id, project_id, uploaded_by, doc_type, file_name, file_path, file_size, mime_type, "
    "description, created_at, updated_at"
)


def _to_document(r: dict) -> Document:
    return Document(
        document_id=int(r["document_id"]),
        project_id=int(r["project_id"]),
        uploaded_by=int(r["uploaded_by"]),
        doc_type=DocumentType(r["doc_type"]),
        file_name=r["file_name"],
        file_path=r["file_path"],
        file_size=int(r["file_size"]) if r.get("file_size") is not None else None,
        mime_type=r.get("mime_type"),
        description=r.get("description"),
        created_at=r.get("created_at"),
        updated_at=r.get("updated_at"),
    )


class MySQLDocumentRepository(DocumentRepository):
    def __init__(self, conn_factory: DatabaseConnection):
        self._conn_factory = conn_factory

    def get_by_id(self, document_id: int) -> Optional[Document]:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(f"SELECT {_COLUMNS} FROM documents WHERE document_id=%s", (int(document_id),))
            r = fetchone(cur)
            return _to_document(r) if r else None

    def list_documents(
        self,
        *,
        project_id: Optional[int] = None,
        doc_type: Optional[DocumentType] = None,
        uploaded_by: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
    ) -> Sequence[Document]:
        if filter_ids is not None and not filter_ids:
            return []

        clauses = ["1=1"]
        params: list[object] = []
        if project_id is not None:
            clauses.append("project_id=%s")
            params.append(int(project_id))
        if doc_type is not None:
            clauses.append("doc_type=%s")
            params.append(doc_type.value)
        if uploaded_by is not None:
            clauses.append("uploaded_by=%s")
            params.append(int(uploaded_by))
        if filter_ids is not None:
            placeholders, ids = in_clause(sorted(filter_ids))
            clauses.append(f"project_id IN {placeholders}")
            params.extend(ids)

        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                f"SELECT {_COLUMNS} FROM documents WHERE {' AND '.join(clauses)} ORDER BY created_at DESC, document_id DESC",
                tuple(params),
            )
            return [_to_document(r) for r in fetchall(cur)]

    def create_document(
        self,
        *,
        project_id: int,
        uploaded_by: int,
        doc_type: DocumentType,
        file_name: str,
        file_path: str,
        file_size: Optional[int] = None,
        mime_type: Optional[str] = None,
        description: Optional[str] = None,
    ) -> int:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                """
                INSERT INTO documents(project_id, uploaded_by, doc_type, file_name, file_path, file_size,
                                      mime_type, description)
                VALUES(%s,%s,%s,%s,%s,%s,%s,%s)
                """,
                (int(project_id), int(uploaded_by), doc_type.value, file_name, file_path, file_size, mime_type, description),
            )
            return int(cur.lastrowid)

    def update_document(self, document_id: int, *, file_name: str, description: Optional[str]) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(
                "UPDATE documents SET file_name=%s, description=%s WHERE document_id=%s",
                (file_name, description, int(document_id)),
            )
            return cur.rowcount > 0

    def delete_by_id(self, document_id: int) -> bool:
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute("DELETE FROM documents WHERE document_id=%s", (int(document_id),))
            return cur.rowcount > 0

    def count_by_type(self, *, project_id: Optional[int] = None) -> dict[DocumentType, int]:
        sql = "SELECT doc_type, COUNT(*) AS n FROM documents"
        params: tuple = ()
        if project_id is not None:
            sql += " WHERE project_id=%s"
            params = (int(project_id),)
        with db_cursor(self._conn_factory) as (_, cur):
            cur.execute(sql + " GROUP BY doc_type", params)
            counts = {t: 0 for t in DocumentType}
            for r in fetchall(cur):
                counts[DocumentType(r["doc_type"])] = int(r["n"])
            return counts
