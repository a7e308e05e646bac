from __future__ import annotations

from flask import Flask

from ..common.validators import parse_optional_id
from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, roles_required
from ..web.params import query
from ..web.responses import ok
from .service import DEFAULT_RECENT_LIMIT


def register(app: Flask, container: Container) -> None:
    @app.get("/api/dashboard/stats")
    @roles_required(Role.ADMIN)
    def dashboard_stats():
        return ok(container.dashboard_service.stats(actor=current_actor()))

    @app.get("/api/dashboard/recent-updates")
    @roles_required(Role.ADMIN)
    def dashboard_recent_updates():
        limit = parse_optional_id(query("limit"), "limit") or DEFAULT_RECENT_LIMIT
        return ok(container.dashboard_service.recent_updates(actor=current_actor(), limit=limit))
