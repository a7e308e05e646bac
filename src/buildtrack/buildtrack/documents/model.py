from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional

from ..core.enums import DocumentType
from ..projects.model import Project
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class Document:
    """A project-level document (requirements, status reports, other)."""

    document_id: int
    project_id: int
    uploaded_by: int
    doc_type: DocumentType
    file_name: str
    file_path: str
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class DocumentView:
    document_id: int
    doc_type: DocumentType
    file_name: str
    file_path: str
    file_size: Optional[int]
    mime_type: Optional[str]
    description: Optional[str]
    project_id: int
    project_name: Optional[str]
    uploaded_by: int
    uploader: Optional[UserSummary]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def compose(cls, doc: Document, projects: Mapping[int, Project], users: Mapping[int, User]) -> "DocumentView":
        project = projects.get(doc.project_id)
        uploader = users.get(doc.uploaded_by)
        return cls(
            document_id=doc.document_id,
            doc_type=doc.doc_type,
            file_name=doc.file_name,
            file_path=doc.file_path,
            file_size=doc.file_size,
            mime_type=doc.mime_type,
            description=doc.description,
            project_id=doc.project_id,
            project_name=project.name if project else None,
            uploaded_by=doc.uploaded_by,
            uploader=UserSummary.of(uploader) if uploader else None,
            created_at=doc.created_at,
            updated_at=doc.updated_at,
        )
