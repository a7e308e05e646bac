from __future__ import annotations

from flask import Flask

from ..common.pagination import PageRequest
from ..common.validators import parse_id, parse_optional_enum, parse_optional_id
from ..container import Container
from ..core.enums import RequestStatus, RequestType, Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.params import json_body, query
from ..web.responses import ok, ok_page


def register(app: Flask, container: Container) -> None:
    @app.post("/api/requests/completion")
    @roles_required(Role.CONTRACTOR)
    def requests_create_completion():
        body = json_body()
        view = container.request_service.create_completion_request(
            actor=current_actor(),
            project_id=body.get("projectId"),
            reason=body.get("reason"),
        )
        return ok(view, status=201, message="Completion request created successfully")

    @app.post("/api/requests/extension")
    @roles_required(Role.CONTRACTOR)
    def requests_create_extension():
        body = json_body()
        view = container.request_service.create_extension_request(
            actor=current_actor(),
            project_id=body.get("projectId"),
            requested_end_date=body.get("requestedEndDate"),
            reason=body.get("reason"),
        )
        return ok(view, status=201, message="Extension request created successfully")

    @app.get("/api/requests")
    @login_required
    def requests_list():
        page = container.request_service.list_requests(
            actor=current_actor(),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            status=parse_optional_enum(RequestStatus, query("status"), "request status"),
            request_type=parse_optional_enum(RequestType, query("type"), "request type"),
            requested_by=parse_optional_id(query("requestedBy"), "requested by user ID"),
            page=PageRequest.from_params(query("page"), query("limit"), default_limit=app.config["DEFAULT_PAGE_LIMIT"]),
        )
        return ok_page(page)

    @app.get("/api/requests/<request_id>")
    @login_required
    def requests_get(request_id: str):
        view = container.request_service.get_request(actor=current_actor(), request_id=parse_id(request_id, "request ID"))
        return ok(view)

    @app.patch("/api/requests/<request_id>/approve")
    @roles_required(Role.ADMIN)
    def requests_approve(request_id: str):
        body = json_body()
        view = container.request_service.approve(
            actor=current_actor(),
            request_id=parse_id(request_id, "request ID"),
            approved_end_date=body.get("approvedEndDate"),
            admin_notes=body.get("adminNotes"),
        )
        return ok(view, message="Request approved successfully")

    @app.patch("/api/requests/<request_id>/reject")
    @roles_required(Role.ADMIN)
    def requests_reject(request_id: str):
        view = container.request_service.reject(
            actor=current_actor(),
            request_id=parse_id(request_id, "request ID"),
            admin_notes=json_body().get("adminNotes"),
        )
        return ok(view, message="Request rejected successfully")

    @app.delete("/api/requests/<request_id>/cancel")
    @roles_required(Role.CONTRACTOR)
    def requests_cancel(request_id: str):
        container.request_service.cancel(actor=current_actor(), request_id=parse_id(request_id, "request ID"))
        return ok(message="Request cancelled successfully")
