from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional, Tuple

from ..core.enums import DocumentType, UpdateType
from ..projects.model import Project
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class AttachmentDescriptor:
    """What an update keeps about one attached file."""

    doc_type: DocumentType
    file_name: str
    file_path: str
    uploaded_by: int
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class UpdateDocument:
    document_id: int
    position: int
    doc_type: DocumentType
    file_name: str
    file_path: str
    uploaded_by: int
    file_size: Optional[int] = None
    mime_type: Optional[str] = None
    description: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass(frozen=True)
class NewUpdate:
    project_id: int
    contractor_id: Optional[int]
    posted_by: int
    update_type: UpdateType
    update_date: date
    timestamp: datetime
    status: str
    description: Optional[str]
    documents: Tuple[AttachmentDescriptor, ...]


@dataclass(frozen=True)
class Update:
    """A half-day field report.

    ``update_date`` is the UTC day key; ``timestamp`` the exact posting time.
    Unique per ``(posted_by, project_id, update_date, update_type)``.
    """

    update_id: int
    project_id: int
    contractor_id: Optional[int]
    posted_by: int
    update_type: UpdateType
    update_date: date
    timestamp: datetime
    status: str
    description: Optional[str] = None
    documents: Tuple[UpdateDocument, ...] = ()
    created_at: Optional[datetime] = None

    @property
    def first_document_url(self) -> Optional[str]:
        return self.documents[0].file_path if self.documents else None


@dataclass(frozen=True)
class UpdateSlot:
    """Compact form of an update used inside attendance rows and report grids."""

    update_id: int
    update_type: UpdateType
    timestamp: datetime
    status: str
    description: Optional[str]
    document_count: int

    @classmethod
    def of(cls, update: Update) -> "UpdateSlot":
        return cls(
            update_id=update.update_id,
            update_type=update.update_type,
            timestamp=update.timestamp,
            status=update.status,
            description=update.description,
            document_count=len(update.documents),
        )


@dataclass(frozen=True)
class UpdateView:
    update_id: int
    update_type: UpdateType
    update_date: date
    timestamp: datetime
    status: str
    description: Optional[str]
    project_id: int
    project_name: Optional[str]
    contractor_id: Optional[int]
    contractor: Optional[UserSummary]
    posted_by: int
    poster: Optional[UserSummary]
    documents: Tuple[UpdateDocument, ...]
    created_at: Optional[datetime]

    @classmethod
    def compose(cls, update: Update, projects: Mapping[int, Project], users: Mapping[int, User]) -> "UpdateView":
        project = projects.get(update.project_id)
        contractor = users.get(update.contractor_id) if update.contractor_id else None
        poster = users.get(update.posted_by)
        return cls(
            update_id=update.update_id,
            update_type=update.update_type,
            update_date=update.update_date,
            timestamp=update.timestamp,
            status=update.status,
            description=update.description,
            project_id=update.project_id,
            project_name=project.name if project else None,
            contractor_id=update.contractor_id,
            contractor=UserSummary.of(contractor) if contractor else None,
            posted_by=update.posted_by,
            poster=UserSummary.of(poster) if poster else None,
            documents=update.documents,
            created_at=update.created_at,
        )
