from __future__ import annotations

from flask import Flask

from ..common.datetime_utils import parse_date_range
from ..common.validators import parse_id, parse_optional_id
from ..container import Container
from ..web.auth import current_actor, login_required
from ..web.params import query
from ..web.responses import ok


def register(app: Flask, container: Container) -> None:
    @app.get("/api/attendance")
    @login_required
    def attendance_list():
        start, end = parse_date_range(query("startDate"), query("endDate"))
        rows = container.attendance_service.list_attendance(
            actor=current_actor(),
            user_id=parse_optional_id(query("userId"), "user ID"),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            start_date=start,
            end_date=end,
        )
        return ok(rows)

    @app.get("/api/attendance/user/<user_id>")
    @login_required
    def attendance_for_user(user_id: str):
        start, end = parse_date_range(query("startDate"), query("endDate"))
        rows = container.attendance_service.user_attendance(
            actor=current_actor(),
            user_id=parse_id(user_id, "user ID"),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            start_date=start,
            end_date=end,
        )
        return ok(rows)

    @app.get("/api/attendance/project/<project_id>")
    @login_required
    def attendance_for_project(project_id: str):
        start, end = parse_date_range(query("startDate"), query("endDate"))
        rows = container.attendance_service.project_attendance(
            actor=current_actor(),
            project_id=parse_id(project_id, "project ID"),
            start_date=start,
            end_date=end,
        )
        return ok(rows)
