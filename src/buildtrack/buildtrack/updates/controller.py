from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_date_range
from ..common.validators import parse_id, parse_optional_enum, parse_optional_id
from ..container import Container
from ..core.enums import UpdateType
from ..web.auth import current_actor, login_required
from ..web.params import document_metadata, json_body, query, uploaded_files
from ..web.responses import ok


def register(app: Flask, container: Container) -> None:
    @app.get("/api/updates")
    @login_required
    def updates_list():
        start, end = parse_date_range(query("startDate"), query("endDate"))
        views = container.update_service.list_updates(
            actor=current_actor(),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            posted_by=parse_optional_id(query("postedBy"), "user ID"),
            update_type=parse_optional_enum(UpdateType, query("updateType"), "update type"),
            start_date=start,
            end_date=end,
        )
        return ok(views)

    @app.get("/api/updates/<update_id>")
    @login_required
    def updates_get(update_id: str):
        return ok(container.update_service.get_update(actor=current_actor(), update_id=parse_id(update_id, "update ID")))

    @app.post("/api/updates")
    @login_required
    def updates_create():
        body = json_body()
        view = container.update_service.create_update(
            actor=current_actor(),
            project_id=body.get("projectId"),
            update_type=body.get("updateType"),
            status=body.get("status"),
            update_date=body.get("updateDate"),
            timestamp=body.get("timestamp"),
            description=body.get("updateDescription"),
            documents=body.get("documents"),
            files=uploaded_files(),
            document_metadata=document_metadata(body),
        )
        return ok(view, status=201, message="Update created successfully")

    @app.post("/api/updates/<update_id>/documents")
    @login_required
    def updates_add_documents(update_id: str):
        body = json_body()
        view = container.update_service.add_documents(
            actor=current_actor(),
            update_id=parse_id(update_id, "update ID"),
            documents=body.get("documents"),
            files=uploaded_files(),
            document_metadata=document_metadata(body),
        )
        return ok(view, message="Documents added to update successfully")
