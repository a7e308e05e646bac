from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence

from ..access.scope import VisibilityResolver
from ..common.validators import optional_text, parse_enum, parse_id, require_non_empty
from ..core.actor import Actor
from ..core.enums import DocumentType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..projects.model import Project
from ..projects.repository import ProjectRepository
from ..storage.attachments import AttachmentStorage, UploadedFile, project_folder
from ..users.repository import UserRepository
from .model import Document, DocumentView
from .repository import DocumentRepository

logger = logging.getLogger(__name__)

# Which document types each role may upload; roles absent here may not upload.
UPLOADABLE_TYPES = {
    Role.CONTRACTOR: frozenset({DocumentType.STATUS}),
    Role.ADMIN: frozenset({DocumentType.REQUIREMENT, DocumentType.OTHER}),
    Role.ACCOUNTS: frozenset({DocumentType.REQUIREMENT, DocumentType.OTHER}),
}


def check_upload_allowed(role: Role, doc_type: DocumentType) -> None:
    allowed = UPLOADABLE_TYPES.get(role)
    if not allowed:
        raise AuthorizationError("Your role cannot upload project documents")
    if doc_type in allowed:
        return
    if role == Role.CONTRACTOR:
        raise AuthorizationError("Contractors can only upload status documents")
    raise AuthorizationError("Only contractors can upload status documents")


class DocumentService:
    def __init__(
        self,
        documents: DocumentRepository,
        projects: ProjectRepository,
        users: UserRepository,
        storage: AttachmentStorage,
        visibility: VisibilityResolver,
    ):
        self._documents = documents
        self._projects = projects
        self._users = users
        self._storage = storage
        self._visibility = visibility

    def compose(self, docs: Sequence[Document]) -> List[DocumentView]:
        projects = self._projects.get_many({d.project_id for d in docs})
        users = self._users.get_many({d.uploaded_by for d in docs})
        return [DocumentView.compose(d, projects, users) for d in docs]

    def list_documents(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        doc_type: Optional[DocumentType] = None,
        uploaded_by: Optional[int] = None,
    ) -> List[DocumentView]:
        scope = self._visibility.scope_for(actor)
        if project_id is not None and not scope.allows(project_id):
            return []
        docs = self._documents.list_documents(
            project_id=project_id,
            doc_type=doc_type,
            uploaded_by=uploaded_by,
            filter_ids=scope.filter_ids,
        )
        return self.compose(docs)

    def get_document(self, *, actor: Actor, document_id: int) -> DocumentView:
        return self.compose([self._get_visible(actor, document_id)])[0]

    def upload_document(
        self,
        *,
        actor: Actor,
        project_id: Any,
        doc_type: Any,
        file_name: Optional[str] = None,
        file_path: Optional[str] = None,
        file_size: Any = None,
        mime_type: Optional[str] = None,
        description: Optional[str] = None,
        upload: Optional[UploadedFile] = None,
    ) -> DocumentView:
        """Attach a document to a project.

        Either ``upload`` carries the bytes, which go through attachment
        storage, or ``file_name``/``file_path`` describe a file stored
        elsewhere already.
        """

        if project_id in (None, "") or doc_type in (None, ""):
            raise ValidationError("Project ID, type, file name, and file path are required")
        if upload is None and (not file_name or not file_path):
            raise ValidationError("Project ID, type, file name, and file path are required")

        kind = parse_enum(DocumentType, doc_type, "document type")
        check_upload_allowed(actor.role, kind)
        project = self._get_project(actor, parse_id(project_id, "project ID"))

        stored = None
        if upload is not None:
            stored = self._storage.save(upload, folder=project_folder("documents", project.project_id), file_name=file_name)
            file_name, file_path = stored.file_name, stored.url
            file_size, mime_type = stored.file_size, stored.mime_type

        try:
            document_id = self._documents.create_document(
                project_id=project.project_id,
                uploaded_by=actor.user_id,
                doc_type=kind,
                file_name=require_non_empty(file_name, "File name"),
                file_path=require_non_empty(file_path, "File path"),
                file_size=_parse_size(file_size),
                mime_type=optional_text(mime_type),
                description=optional_text(description),
            )
        except Exception:
            if stored is not None:
                self._storage.delete(stored.key)
            raise

        logger.info("document %s (%s) uploaded to project %s by user %s", document_id, kind.value, project.project_id, actor.user_id)
        return self.get_document(actor=actor, document_id=document_id)

    def update_document(
        self,
        *,
        actor: Actor,
        document_id: int,
        file_name: Optional[str] = None,
        description: Any = None,
    ) -> DocumentView:
        doc = self._get_visible(actor, document_id)
        if doc.uploaded_by != actor.user_id and not actor.is_admin:
            raise AuthorizationError("You can only update your own documents")

        new_name = doc.file_name if file_name is None else require_non_empty(file_name, "File name")
        new_description = doc.description if description is None else optional_text(description)
        if not self._documents.update_document(doc.document_id, file_name=new_name, description=new_description):
            raise NotFoundError("Document")
        return self.get_document(actor=actor, document_id=doc.document_id)

    def delete_document(self, *, actor: Actor, document_id: int) -> None:
        doc = self._get_visible(actor, document_id)
        if doc.uploaded_by != actor.user_id and not actor.is_admin:
            raise AuthorizationError("You can only delete your own documents")
        if not self._documents.delete_by_id(doc.document_id):
            raise NotFoundError("Document")

        key = self._storage.key_from_url(doc.file_path)
        if key:
            self._storage.delete(key)
        logger.info("document %s deleted by user %s", doc.document_id, actor.user_id)

    def _get_visible(self, actor: Actor, document_id: int) -> Document:
        doc = self._documents.get_by_id(document_id)
        if not doc or not self._visibility.scope_for(actor).allows(doc.project_id):
            raise NotFoundError("Document")
        return doc

    def _get_project(self, actor: Actor, project_id: int) -> Project:
        project = self._projects.get_by_id(project_id)
        if not project or not self._visibility.scope_for(actor).allows(project.project_id):
            raise NotFoundError("Project")
        return project


def _parse_size(value: Any) -> Optional[int]:
    if value in (None, ""):
        return None
    try:
        size = int(value)
    except (TypeError, ValueError):
        raise ValidationError("File size must be a whole number")
    if size < 0:
        raise ValidationError("File size must be a whole number")
    return size
