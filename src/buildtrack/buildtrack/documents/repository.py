from __future__ import annotations

from typing import Collection, Optional, Protocol, Sequence

from ..core.enums import DocumentType
from .model import Document


class DocumentRepository(Protocol):
    def get_by_id(self, document_id: int) -> Optional[Document]:
        raise NotImplementedError

    def list_documents(
        self,
        *,
        project_id: Optional[int] = None,
        doc_type: Optional[DocumentType] = None,
        uploaded_by: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
    ) -> Sequence[Document]:
        raise NotImplementedError

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
        raise NotImplementedError

    def update_document(self, document_id: int, *, file_name: str, description: Optional[str]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, document_id: int) -> bool:
        raise NotImplementedError

    def count_by_type(self, *, project_id: Optional[int] = None) -> dict[DocumentType, int]:
        raise NotImplementedError
