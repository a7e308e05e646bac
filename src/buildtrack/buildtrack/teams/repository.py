from __future__ import annotations

from typing import Iterable, Optional, Protocol, Sequence

from .model import Team


class TeamRepository(Protocol):
    """Repository interface for Team and its membership relation."""

    def get_by_id(self, team_id: int) -> Optional[Team]:
        raise NotImplementedError

    def list_teams(
        self,
        *,
        project_id: Optional[int] = None,
        contractor_id: Optional[int] = None,
        member_id: Optional[int] = None,
    ) -> Sequence[Team]:
        raise NotImplementedError

    def project_ids_for_member(self, user_id: int) -> set[int]:
        raise NotImplementedError

    def member_ids_for_project(self, project_id: int) -> set[int]:
        raise NotImplementedError

    def is_project_member(self, project_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def create_team(self, *, project_id: int, contractor_id: int, team_name: str, created_by: int) -> int:
        raise NotImplementedError

    def rename(self, team_id: int, team_name: str) -> bool:
        raise NotImplementedError

    def add_members(self, team_id: int, project_id: int, user_ids: Iterable[int]) -> None:
        """Insert membership rows; an existing ``(team_id, user_id)`` raises ConflictError."""

        raise NotImplementedError

    def replace_members(self, team_id: int, project_id: int, user_ids: Iterable[int]) -> None:
        raise NotImplementedError

    def remove_member(self, team_id: int, user_id: int) -> bool:
        raise NotImplementedError

    def delete_by_id(self, team_id: int) -> bool:
        raise NotImplementedError
