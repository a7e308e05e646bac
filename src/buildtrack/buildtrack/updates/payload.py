"""Parsing of attachment descriptors sent alongside updates and documents.

Two sources are accepted: ``documents`` (descriptors of files already
stored elsewhere) and uploaded file parts described by ``documentMetadata``
(one metadata object per file, same order).
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, List, Optional

from ..core.enums import DocumentType
from ..core.exceptions import ValidationError
from .model import AttachmentDescriptor


@dataclass(frozen=True)
class FileMetadata:
    doc_type: DocumentType
    description: Optional[str] = None
    file_name: Optional[str] = None


def _load_json_list(raw: Any, what: str) -> List[Any]:
    parsed = raw
    if isinstance(parsed, str):
        try:
            parsed = json.loads(parsed)
        except json.JSONDecodeError:
            raise ValidationError(f"{what} must be valid JSON")
    if not isinstance(parsed, list):
        raise ValidationError(f"{what} must be provided as an array")
    return parsed


def _doc_type(value: Any, label: str) -> DocumentType:
    try:
        return DocumentType(value)
    except ValueError:
        raise ValidationError(f"{label} has an invalid type")


def _opt_str(item: dict, key: str, label: str, *, allow_blank: bool = True) -> Optional[str]:
    value = item.get(key)
    if value is None:
        return None
    if not isinstance(value, str) or (not allow_blank and not value.strip()):
        raise ValidationError(f"{label} must have a valid {key}")
    return value.strip() or None


def parse_documents(raw: Any, *, uploaded_by: int) -> List[AttachmentDescriptor]:
    if raw in (None, ""):
        return []

    items = _load_json_list(raw, "Documents payload")
    documents = []
    for index, item in enumerate(items):
        label = f"Document at index {index}"
        if not isinstance(item, dict):
            raise ValidationError(f"{label} must be an object")

        doc_type = _doc_type(item.get("type"), label)
        file_name = item.get("fileName")
        file_path = item.get("filePath")
        if not isinstance(file_name, str) or not file_name.strip():
            raise ValidationError(f"{label} must have a valid file name")
        if not isinstance(file_path, str) or not file_path.strip():
            raise ValidationError(f"{label} must have a valid file path")

        file_size = item.get("fileSize")
        if file_size is not None and (isinstance(file_size, bool) or not isinstance(file_size, int) or file_size < 0):
            raise ValidationError(f"{label} must have a non-negative file size")

        documents.append(
            AttachmentDescriptor(
                doc_type=doc_type,
                file_name=file_name.strip(),
                file_path=file_path.strip(),
                uploaded_by=uploaded_by,
                file_size=file_size,
                mime_type=_opt_str(item, "mimeType", label, allow_blank=False),
                description=_opt_str(item, "description", label),
            )
        )
    return documents


def parse_file_metadata(raw: Any, expected: int) -> List[FileMetadata]:
    if expected == 0:
        return []
    if raw in (None, ""):
        raise ValidationError("Document metadata is required when uploading files")

    items = _load_json_list(raw, "Document metadata")
    if len(items) != expected:
        raise ValidationError("Document metadata count must match number of uploaded files")

    metadata = []
    for index, item in enumerate(items):
        label = f"Document metadata at index {index}"
        if not isinstance(item, dict):
            raise ValidationError(f"{label} must be an object")
        metadata.append(
            FileMetadata(
                doc_type=_doc_type(item.get("type"), label),
                description=_opt_str(item, "description", label),
                file_name=_opt_str(item, "fileName", label, allow_blank=False),
            )
        )
    return metadata
