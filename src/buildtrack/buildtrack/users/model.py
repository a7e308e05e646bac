from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..core.enums import Role


@dataclass(frozen=True)
class User:
    """Domain entity: User.

    Note: Plain data object (no DB access code). The password hash never
    leaves the service layer.
    """

    user_id: int
    email: str
    password_hash: str = field(repr=False, metadata={"private": True})
    name: str = ""
    role: Role = Role.DEVELOPER
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class UserSummary:
    """Referenced-user view embedded in other entities' responses."""

    user_id: int
    name: str
    email: str
    role: Role

    @classmethod
    def of(cls, user: User) -> "UserSummary":
        return cls(user_id=user.user_id, name=user.name, email=user.email, role=user.role)
