from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id, parse_optional_id
from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.params import json_body, query
from ..web.responses import ok


def register(app: Flask, container: Container) -> None:
    @app.get("/api/teams")
    @login_required
    def teams_list():
        teams = container.team_service.list_teams(
            actor=current_actor(),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            contractor_id=parse_optional_id(query("contractorId"), "contractor ID"),
        )
        return ok(teams)

    @app.get("/api/teams/<team_id>")
    @login_required
    def teams_get(team_id: str):
        return ok(container.team_service.get_team(actor=current_actor(), team_id=parse_id(team_id, "team ID")))

    @app.post("/api/teams")
    @roles_required(Role.ADMIN)
    def teams_create():
        body = json_body()
        view = container.team_service.create_team(
            actor=current_actor(),
            project_id=body.get("projectId"),
            contractor_id=body.get("contractorId"),
            team_name=body.get("teamName"),
            members=body.get("members"),
        )
        return ok(view, status=201, message="Team created successfully")

    @app.post("/api/teams/<team_id>/members")
    @roles_required(Role.ADMIN)
    def teams_add_members(team_id: str):
        view = container.team_service.add_members(
            actor=current_actor(),
            team_id=parse_id(team_id, "team ID"),
            members=json_body().get("members"),
        )
        return ok(view, message="Team members added successfully")

    @app.delete("/api/teams/<team_id>/members/<user_id>")
    @roles_required(Role.ADMIN, Role.CONTRACTOR)
    def teams_remove_member(team_id: str, user_id: str):
        view = container.team_service.remove_member(
            actor=current_actor(),
            team_id=parse_id(team_id, "team ID"),
            user_id=parse_id(user_id, "user ID"),
        )
        return ok(view, message="Team member removed successfully")

    @app.put("/api/teams/<team_id>")
    @roles_required(Role.ADMIN, Role.CONTRACTOR)
    def teams_update(team_id: str):
        body = json_body()
        view = container.team_service.update_team(
            actor=current_actor(),
            team_id=parse_id(team_id, "team ID"),
            team_name=body.get("teamName"),
            members=body.get("members"),
        )
        return ok(view, message="Team updated successfully")

    @app.delete("/api/teams/<team_id>")
    @roles_required(Role.ADMIN)
    def teams_delete(team_id: str):
        container.team_service.delete_team(actor=current_actor(), team_id=parse_id(team_id, "team ID"))
        return ok(message="Team deleted successfully")
