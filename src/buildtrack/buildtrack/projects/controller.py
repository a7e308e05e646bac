from __future__ import annotations

from flask import Flask

from ..common.pagination import PageRequest
from ..common.validators import parse_id, parse_optional_enum, parse_optional_id
from ..container import Container
from ..core.enums import ProjectStatus, Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.params import json_body, query
from ..web.responses import ok, ok_page

# Request body key -> service field name.
_BODY_FIELDS = {
    "name": "name",
    "description": "description",
    "contractorId": "contractor_id",
    "status": "status",
    "startDate": "start_date",
    "endDate": "end_date",
    "budget": "budget",
    "location": "location",
}


def register(app: Flask, container: Container) -> None:
    @app.get("/api/projects")
    @login_required
    def projects_list():
        page = container.project_service.list_projects(
            actor=current_actor(),
            status=parse_optional_enum(ProjectStatus, query("status"), "project status"),
            contractor_id=parse_optional_id(query("contractorId"), "contractor ID"),
            admin_id=parse_optional_id(query("adminId"), "admin ID"),
            page=PageRequest.from_params(query("page"), query("limit"), default_limit=app.config["DEFAULT_PAGE_LIMIT"]),
        )
        return ok_page(page)

    @app.get("/api/projects/<project_id>")
    @login_required
    def projects_get(project_id: str):
        view = container.project_service.get_project(actor=current_actor(), project_id=parse_id(project_id, "project ID"))
        return ok(view)

    @app.post("/api/projects")
    @roles_required(Role.ADMIN)
    def projects_create():
        body = json_body()
        view = container.project_service.create_project(
            actor=current_actor(),
            name=body.get("name"),
            description=body.get("description"),
            contractor_id=body.get("contractorId"),
            status=body.get("status"),
            start_date=body.get("startDate"),
            end_date=body.get("endDate"),
            budget=body.get("budget"),
            location=body.get("location"),
        )
        return ok(view, status=201, message="Project created successfully")

    @app.route("/api/projects/<project_id>", methods=["PUT", "PATCH"])
    @roles_required(Role.ADMIN)
    def projects_update(project_id: str):
        body = json_body()
        changes = {field: body[key] for key, field in _BODY_FIELDS.items() if key in body}
        view = container.project_service.update_project(
            actor=current_actor(),
            project_id=parse_id(project_id, "project ID"),
            changes=changes,
        )
        return ok(view, message="Project updated successfully")

    @app.post("/api/projects/<project_id>/assign")
    @roles_required(Role.ADMIN)
    def projects_assign(project_id: str):
        view = container.project_service.assign_contractor(
            actor=current_actor(),
            project_id=parse_id(project_id, "project ID"),
            contractor_id=json_body().get("contractorId"),
        )
        return ok(view, message="Project assigned to contractor successfully")

    @app.delete("/api/projects/<project_id>")
    @roles_required(Role.ADMIN)
    def projects_delete(project_id: str):
        container.project_service.delete_project(actor=current_actor(), project_id=parse_id(project_id, "project ID"))
        return ok(message="Project deleted successfully")
