from __future__ import annotations

import logging
from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, require_email, require_min_length, require_non_empty
from ..core.actor import Actor
from ..core.constants import MIN_PASSWORD_LENGTH
from ..core.enums import Role
from ..core.exceptions import AuthenticationError, AuthorizationError, ConflictError, NotFoundError, ValidationError
from .model import User
from .repository import UserRepository

logger = logging.getLogger(__name__)


def _password_matches(password_hash: str, password: str) -> bool:
    try:
        return check_password_hash(password_hash, password)
    except ValueError:
        # e.g. placeholder hashes like 'CHANGE_ME' or corrupted values
        return False


class AuthService:
    """Use case: login, self-registration and password change."""

    def __init__(self, users: UserRepository):
        self._users = users

    def authenticate(self, email: str, password: str) -> User:
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self._users.get_by_email(str(email).strip().lower())
        if not user:
            raise AuthenticationError("Invalid email or password")
        if not user.is_active:
            raise AuthenticationError("User account is inactive. Please contact administrator")
        if not _password_matches(user.password_hash, password):
            raise AuthenticationError("Invalid email or password")

        logger.info("user %s logged in", user.user_id)
        return user

    def register(self, *, email: str, password: str, name: str, phone: Optional[str] = None) -> User:
        """Public sign-up. The role is always ``developer``."""

        if not email or not password or not name:
            raise ValidationError("Email, password, and name are required")
        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)

        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            name=require_non_empty(name, "Name"),
            role=Role.DEVELOPER,
            phone=optional_text(phone),
        )
        logger.info("registered user %s", user_id)
        return self._users.get_by_id(user_id)

    def me(self, *, actor: Actor) -> User:
        user = self._users.get_by_id(actor.user_id)
        if not user:
            raise AuthenticationError("User not found")
        return user

    def change_password(self, *, actor: Actor, current_password: str, new_password: str) -> None:
        if not current_password or not new_password:
            raise ValidationError("Current password and new password are required")
        require_min_length(new_password, "New password", MIN_PASSWORD_LENGTH)

        user = self.me(actor=actor)
        if not _password_matches(user.password_hash, current_password):
            raise AuthenticationError("Current password is incorrect")

        self._users.set_password_hash(user.user_id, generate_password_hash(new_password))
        logger.info("user %s changed password", user.user_id)


class UserService:
    """Use case: manage users (admin), view and edit own profile."""

    def __init__(self, users: UserRepository):
        self._users = users

    def list_users(
        self,
        *,
        actor: Actor,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        page: PageRequest,
    ) -> Page[User]:
        if not actor.is_admin:
            raise AuthorizationError("Access denied. Required roles: admin")
        items, total = self._users.list_users(role=role, is_active=is_active, page=page)
        return Page(items=items, total=total, request=page)

    def get_user(self, *, actor: Actor, user_id: int) -> User:
        if not actor.is_admin and actor.user_id != user_id:
            raise AuthorizationError("You can only view your own profile")
        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User")
        return user

    def create_user(
        self,
        *,
        actor: Actor,
        email: str,
        password: str,
        name: str,
        role: Optional[Role],
        phone: Optional[str] = None,
    ) -> User:
        if not actor.is_admin:
            raise AuthorizationError("Access denied. Required roles: admin")
        if not email or not password or not name or role is None:
            raise ValidationError("Email, password, name, and role are required")

        email = require_email(email)
        require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
        if self._users.get_by_email(email):
            raise ConflictError("User with this email already exists")

        user_id = self._users.create_user(
            email=email,
            password_hash=generate_password_hash(password),
            name=require_non_empty(name, "Name"),
            role=role,
            phone=optional_text(phone),
        )
        logger.info("admin %s created user %s (%s)", actor.user_id, user_id, role.value)
        return self._users.get_by_id(user_id)

    def update_user(
        self,
        *,
        actor: Actor,
        user_id: int,
        name: Optional[str] = None,
        phone: Optional[str] = None,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        password: Optional[str] = None,
    ) -> User:
        """Self-service edits cover name and phone; everything else is admin only."""

        user = self._users.get_by_id(user_id)
        if not user:
            raise NotFoundError("User")

        if not actor.is_admin:
            if actor.user_id != user_id:
                raise AuthorizationError("You can only update your own profile")
            if role is not None or is_active is not None or password:
                raise ValidationError("You can only update your own name and phone")

        new_name = require_non_empty(name, "Name") if name is not None else user.name
        new_phone = optional_text(phone) if phone is not None else user.phone
        new_role = role if role is not None else user.role
        new_active = bool(is_active) if is_active is not None else user.is_active

        if actor.user_id == user_id and actor.is_admin and (new_role != Role.ADMIN or not new_active):
            raise ValidationError("Admins cannot demote or deactivate themselves")

        self._users.update_user(user_id, name=new_name, phone=new_phone, role=new_role, is_active=new_active)
        if password:
            require_min_length(password, "Password", MIN_PASSWORD_LENGTH)
            self._users.set_password_hash(user_id, generate_password_hash(password))
            logger.info("admin %s reset password of user %s", actor.user_id, user_id)

        return self._users.get_by_id(user_id)

    def delete_user(self, *, actor: Actor, user_id: int) -> None:
        if not actor.is_admin:
            raise AuthorizationError("Access denied. Required roles: admin")
        if actor.user_id == user_id:
            raise ValidationError("You cannot delete your own account")

        if not self._users.delete_by_id(user_id):
            raise NotFoundError("User")
        logger.info("admin %s deleted user %s", actor.user_id, user_id)
