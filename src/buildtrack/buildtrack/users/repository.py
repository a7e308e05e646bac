from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import Role
from .model import User

USER_IN_USE_MESSAGE = "User is still referenced by project records. Deactivate the account instead"


class UserRepository(Protocol):
    """Repository interface for User.

    Note (DIP): the service layer depends on this interface, not on a concrete DB.
    """

    def get_by_id(self, user_id: int) -> Optional[User]:
        raise NotImplementedError

    def get_by_email(self, email: str) -> Optional[User]:
        raise NotImplementedError

    def get_many(self, user_ids: Iterable[int]) -> dict[int, User]:
        """Batch lookup used for read-side composition."""

        raise NotImplementedError

    def list_users(
        self,
        *,
        role: Optional[Role] = None,
        is_active: Optional[bool] = None,
        page: PageRequest,
    ) -> tuple[Sequence[User], int]:
        raise NotImplementedError

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        name: str,
        role: Role,
        phone: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_user(
        self,
        user_id: int,
        *,
        name: str,
        phone: Optional[str],
        role: Role,
        is_active: bool,
    ) -> None:
        raise NotImplementedError

    def set_password_hash(self, user_id: int, password_hash: str) -> bool:
        raise NotImplementedError

    def delete_by_id(self, user_id: int) -> bool:
        """Raises ConflictError while projects, teams or history rows point at the user."""
        raise NotImplementedError
