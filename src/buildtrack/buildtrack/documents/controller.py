from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id, parse_optional_enum, parse_optional_id
from ..container import Container
from ..core.enums import DocumentType
from ..web.auth import current_actor, login_required
from ..web.params import json_body, query, uploaded_files
from ..web.responses import ok


def register(app: Flask, container: Container) -> None:
    @app.get("/api/documents")
    @login_required
    def documents_list():
        views = container.document_service.list_documents(
            actor=current_actor(),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            doc_type=parse_optional_enum(DocumentType, query("type"), "document type"),
            uploaded_by=parse_optional_id(query("uploadedBy"), "user ID"),
        )
        return ok(views)

    @app.get("/api/documents/<document_id>")
    @login_required
    def documents_get(document_id: str):
        return ok(
            container.document_service.get_document(
                actor=current_actor(), document_id=parse_id(document_id, "document ID")
            )
        )

    @app.post("/api/documents")
    @login_required
    def documents_upload():
        body = json_body()
        files = uploaded_files("file")
        view = container.document_service.upload_document(
            actor=current_actor(),
            project_id=body.get("projectId"),
            doc_type=body.get("type"),
            file_name=body.get("fileName"),
            file_path=body.get("filePath"),
            file_size=body.get("fileSize"),
            mime_type=body.get("mimeType"),
            description=body.get("description"),
            upload=files[0] if files else None,
        )
        return ok(view, status=201, message="Document uploaded successfully")

    @app.put("/api/documents/<document_id>")
    @login_required
    def documents_update(document_id: str):
        body = json_body()
        view = container.document_service.update_document(
            actor=current_actor(),
            document_id=parse_id(document_id, "document ID"),
            file_name=body.get("fileName"),
            description=body.get("description"),
        )
        return ok(view, message="Document updated successfully")

    @app.delete("/api/documents/<document_id>")
    @login_required
    def documents_delete(document_id: str):
        container.document_service.delete_document(actor=current_actor(), document_id=parse_id(document_id, "document ID"))
        return ok(message="Document deleted successfully")
