from __future__ import annotations

from typing import Any

from flask import request

from ..core.exceptions import ValidationError
from ..storage.attachments import UploadedFile


def json_body() -> dict[str, Any]:
    """Request JSON object, or form fields for multipart submissions."""

    if request.is_json:
        data = request.get_json(silent=True)
        if data is None:
            raise ValidationError("Request body must be valid JSON")
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")
        return data
    return request.form.to_dict()


def query(name: str) -> Any:
    return request.args.get(name)


def parse_bool(value: Any) -> Any:
    if value is None or isinstance(value, bool):
        return value
    return str(value).strip().lower() in {"1", "true", "yes", "on"}


def uploaded_files(field: str = "documents") -> list[UploadedFile]:
    """Multipart file parts of ``field`` as storage-ready uploads."""

    return [
        UploadedFile(file_name=f.filename or "", mime_type=f.mimetype, data=f.read())
        for f in request.files.getlist(field)
        if f and f.filename
    ]


def document_metadata(body: dict[str, Any]) -> Any:
    for key in ("documentMetadata", "documentsMetadata", "documentsMeta"):
        if body.get(key) not in (None, ""):
            return body[key]
    return None
