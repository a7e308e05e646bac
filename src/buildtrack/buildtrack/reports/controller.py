from __future__ import annotations

from flask import Flask

from ..common.validators import parse_id, parse_optional_id
from ..container import Container
from ..core.enums import Role
from ..core.exceptions import ValidationError
from ..web.auth import current_actor, roles_required
from ..web.params import json_body, query
from ..web.responses import ok
from .export import export_filename, grid_to_csv, grid_to_xlsx

_EXPORTS = {
    "csv": (grid_to_csv, "text/csv"),
    "xlsx": (grid_to_xlsx, "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"),
}


def register(app: Flask, container: Container) -> None:
    def _grid(project_id: str):
        return container.report_service.attendance_grid(
            actor=current_actor(),
            project_id=parse_id(project_id, "project ID"),
            start_date=query("startDate"),
            end_date=query("endDate"),
        )

    @app.get("/api/reports/overview")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_overview():
        return ok(container.report_service.overview(actor=current_actor()))

    @app.get("/api/reports")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_list():
        reports = container.report_service.list_reports(
            actor=current_actor(),
            project_id=parse_optional_id(query("projectId"), "project ID"),
            report_type=query("type"),
        )
        return ok(reports)

    @app.post("/api/reports")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_generate():
        body = json_body()
        report = container.report_service.generate_report(
            actor=current_actor(),
            report_type=body.get("type"),
            title=body.get("title"),
            project_id=body.get("projectId"),
            description=body.get("description"),
            file_path=body.get("filePath"),
        )
        return ok(report, status=201, message="Report generated successfully")

    @app.get("/api/reports/<report_id>")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_get(report_id: str):
        return ok(container.report_service.get_report(actor=current_actor(), report_id=parse_id(report_id, "report ID")))

    @app.put("/api/reports/<report_id>")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_update(report_id: str):
        body = json_body()
        report = container.report_service.update_report(
            actor=current_actor(),
            report_id=parse_id(report_id, "report ID"),
            title=body.get("title"),
            description=body.get("description"),
            file_path=body.get("filePath"),
        )
        return ok(report, message="Report updated successfully")

    @app.delete("/api/reports/<report_id>")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_delete(report_id: str):
        container.report_service.delete_report(actor=current_actor(), report_id=parse_id(report_id, "report ID"))
        return ok(message="Report deleted successfully")

    @app.get("/api/reports/project/<project_id>")
    @roles_required(Role.ADMIN)
    def reports_project_grid(project_id: str):
        return ok(_grid(project_id))

    @app.get("/api/reports/project/<project_id>/export")
    @roles_required(Role.ADMIN)
    def reports_project_export(project_id: str):
        fmt = (query("format") or "csv").strip().lower()
        if fmt not in _EXPORTS:
            raise ValidationError("Export format must be csv or xlsx")
        grid = _grid(project_id)
        render, mimetype = _EXPORTS[fmt]
        return app.response_class(
            render(grid),
            mimetype=mimetype,
            headers={"Content-Disposition": f"attachment; filename={export_filename(grid, fmt)}"},
        )

    @app.get("/api/reports/project/<project_id>/summary")
    @roles_required(Role.ADMIN, Role.ACCOUNTS)
    def reports_project_summary(project_id: str):
        report = container.report_service.project_report(
            actor=current_actor(),
            project_id=parse_id(project_id, "project ID"),
            report_type=query("type"),
        )
        return ok(report)
