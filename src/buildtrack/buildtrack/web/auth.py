from __future__ import annotations

from functools import wraps
from typing import Callable

from flask import current_app, g, session

from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError


def _load_actor() -> Actor:
    if "user_id" not in session:
        raise AuthenticationError("No session found. Please login to continue")

    container = current_app.extensions["buildtrack"]
    user = container.users_repo.get_by_id(int(session["user_id"]))
    if not user:
        session.clear()
        raise AuthenticationError("User not found")
    if not user.is_active:
        session.clear()
        raise AuthenticationError("User account is inactive. Please contact administrator")
    return Actor(user_id=user.user_id, role=user.role)


def current_actor() -> Actor:
    """The verified caller for this request (loaded once, then cached on ``g``)."""

    actor = g.get("actor")
    if actor is None:
        actor = _load_actor()
        g.actor = actor
    return actor


def login_required(view: Callable):
    @wraps(view)
    def wrapper(*args, **kwargs):
        current_actor()
        return view(*args, **kwargs)

    return wrapper


def roles_required(*roles: Role):
    def decorator(view: Callable):
        @wraps(view)
        def wrapper(*args, **kwargs):
            actor = current_actor()
            if actor.role not in roles:
                allowed = ", ".join(r.value for r in roles)
                raise AuthorizationError(f"Access denied. Required roles: {allowed}")
            return view(*args, **kwargs)

        return wrapper

    return decorator
