from __future__ import annotations

from datetime import timedelta

from flask import Flask, session

from ..common.pagination import PageRequest
from ..common.validators import parse_id, parse_optional_enum
from ..container import Container
from ..core.enums import Role
from ..web.auth import current_actor, login_required, roles_required
from ..web.params import json_body, parse_bool, query
from ..web.responses import ok, ok_page


def register(app: Flask, container: Container) -> None:
    @app.post("/api/auth/register")
    def auth_register():
        body = json_body()
        user = container.auth_service.register(
            email=body.get("email"),
            password=body.get("password"),
            name=body.get("name"),
            phone=body.get("phone"),
        )
        _start_session(app, user, remember=False)
        return ok({"user": user}, status=201, message="User registered successfully")

    @app.post("/api/auth/login")
    def auth_login():
        body = json_body()
        user = container.auth_service.authenticate(body.get("email"), body.get("password"))
        _start_session(app, user, remember=bool(parse_bool(body.get("rememberMe"))))
        return ok({"user": user}, message="Login successful")

    @app.post("/api/auth/logout")
    @login_required
    def auth_logout():
        session.clear()
        return ok(message="Logged out successfully")

    @app.get("/api/auth/me")
    @login_required
    def auth_me():
        return ok(container.auth_service.me(actor=current_actor()))

    @app.post("/api/auth/change-password")
    @login_required
    def auth_change_password():
        body = json_body()
        container.auth_service.change_password(
            actor=current_actor(),
            current_password=body.get("currentPassword"),
            new_password=body.get("newPassword"),
        )
        return ok(message="Password changed successfully")

    @app.get("/api/users")
    @roles_required(Role.ADMIN)
    def users_list():
        page = container.user_service.list_users(
            actor=current_actor(),
            role=parse_optional_enum(Role, query("role"), "user role"),
            is_active=parse_bool(query("isActive")),
            page=PageRequest.from_params(query("page"), query("limit"), default_limit=app.config["DEFAULT_PAGE_LIMIT"]),
        )
        return ok_page(page)

    @app.get("/api/users/<user_id>")
    @login_required
    def users_get(user_id: str):
        return ok(container.user_service.get_user(actor=current_actor(), user_id=parse_id(user_id, "user ID")))

    @app.post("/api/users")
    @roles_required(Role.ADMIN)
    def users_create():
        body = json_body()
        user = container.user_service.create_user(
            actor=current_actor(),
            email=body.get("email"),
            password=body.get("password"),
            name=body.get("name"),
            role=parse_optional_enum(Role, body.get("role"), "user role"),
            phone=body.get("phone"),
        )
        return ok(user, status=201, message="User created successfully")

    @app.put("/api/users/<user_id>")
    @login_required
    def users_update(user_id: str):
        body = json_body()
        user = container.user_service.update_user(
            actor=current_actor(),
            user_id=parse_id(user_id, "user ID"),
            name=body.get("name"),
            phone=body.get("phone"),
            role=parse_optional_enum(Role, body.get("role"), "user role"),
            is_active=parse_bool(body.get("isActive")),
            password=body.get("password"),
        )
        return ok(user, message="User updated successfully")

    @app.delete("/api/users/<user_id>")
    @roles_required(Role.ADMIN)
    def users_delete(user_id: str):
        container.user_service.delete_user(actor=current_actor(), user_id=parse_id(user_id, "user ID"))
        return ok(message="User deleted successfully")


def _start_session(app: Flask, user, *, remember: bool) -> None:
    session.clear()
    session.permanent = remember
    app.permanent_session_lifetime = timedelta(days=int(app.config["SESSION_DAYS"]))
    session["user_id"] = user.user_id
    session["role"] = user.role.value
