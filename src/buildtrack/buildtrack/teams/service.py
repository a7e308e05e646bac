from __future__ import annotations

import logging
from contextlib import nullcontext
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..common.validators import parse_id, require_non_empty
from ..core.actor import Actor
from ..core.enums import Role
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError, ValidationError
from ..projects.repository import ProjectRepository
from ..users.repository import UserRepository
from .model import Team, TeamView
from .repository import TeamRepository

logger = logging.getLogger(__name__)

# Roles a user must hold to be enrolled in a team.
MEMBER_ROLES = frozenset({Role.MEMBER})


class TeamService:
    """Use case: teams and the team/project/user membership relation."""

    def __init__(
        self,
        teams: TeamRepository,
        projects: ProjectRepository,
        users: UserRepository,
        *,
        unit_of_work: Callable[[], ContextManager[Any]] = nullcontext,
    ):
        self._teams = teams
        self._projects = projects
        self._users = users
        self._unit_of_work = unit_of_work

    def compose(self, teams: Sequence[Team]) -> list[TeamView]:
        user_ids: set[int] = set()
        for t in teams:
            user_ids.update((t.contractor_id, t.created_by, *t.member_ids))
        users = self._users.get_many(user_ids)
        projects = self._projects.get_many({t.project_id for t in teams})
        return [TeamView.compose(t, projects, users) for t in teams]

    def list_teams(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        contractor_id: Optional[int] = None,
    ) -> list[TeamView]:
        member_id = None
        if actor.role == Role.CONTRACTOR:
            contractor_id = actor.user_id
        elif actor.role == Role.MEMBER:
            member_id = actor.user_id
        teams = self._teams.list_teams(project_id=project_id, contractor_id=contractor_id, member_id=member_id)
        return self.compose(teams)

    def get_team(self, *, actor: Actor, team_id: int) -> TeamView:
        return self.compose([self._get_visible(actor, team_id)])[0]

    def create_team(
        self,
        *,
        actor: Actor,
        project_id: Any,
        contractor_id: Any,
        team_name: Optional[str],
        members: Any = None,
    ) -> TeamView:
        _require_admin(actor)
        if not project_id or not contractor_id or not team_name:
            raise ValidationError("Project ID, contractor ID, and team name are required")

        project = self._projects.get_by_id(parse_id(project_id, "project ID"))
        if not project:
            raise NotFoundError("Project")
        contractor = self._users.get_by_id(parse_id(contractor_id, "contractor ID"))
        if not contractor or contractor.role != Role.CONTRACTOR:
            raise ValidationError("Invalid contractor user")
        member_ids = self._validate_members(members if members is not None else [])

        with self._unit_of_work():
            team_id = self._teams.create_team(
                project_id=project.project_id,
                contractor_id=contractor.user_id,
                team_name=require_non_empty(team_name, "Team name"),
                created_by=actor.user_id,
            )
            self._teams.add_members(team_id, project.project_id, member_ids)

        logger.info("team %s created for project %s with %d members", team_id, project.project_id, len(member_ids))
        return self.compose([self._teams.get_by_id(team_id)])[0]

    def add_members(self, *, actor: Actor, team_id: int, members: Any) -> TeamView:
        _require_admin(actor)
        if not isinstance(members, list) or not members:
            raise ValidationError("Members array is required and must not be empty")

        team = self._teams.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team")
        member_ids = self._validate_members(members)
        already = [m for m in member_ids if m in team.member_ids]
        if already:
            raise ConflictError(f"User {already[0]} is already a member of this team")

        self._teams.add_members(team.team_id, team.project_id, member_ids)
        logger.info("added %d members to team %s", len(member_ids), team.team_id)
        return self.compose([self._teams.get_by_id(team.team_id)])[0]

    def update_team(
        self,
        *,
        actor: Actor,
        team_id: int,
        team_name: Optional[str] = None,
        members: Any = None,
    ) -> TeamView:
        """Admins may rename and re-staff a team; its contractor may only re-staff it."""

        if actor.role not in (Role.ADMIN, Role.CONTRACTOR):
            raise AuthorizationError("Access denied. Required roles: admin, contractor")
        team = self._get_visible(actor, team_id)
        if actor.role == Role.CONTRACTOR and team_name:
            raise AuthorizationError("Contractors can only update team members")

        member_ids = self._validate_members(members) if members is not None else None
        with self._unit_of_work():
            if team_name:
                self._teams.rename(team.team_id, require_non_empty(team_name, "Team name"))
            if member_ids is not None:
                self._teams.replace_members(team.team_id, team.project_id, member_ids)

        logger.info("team %s updated by %s %s", team.team_id, actor.role.value, actor.user_id)
        return self.compose([self._teams.get_by_id(team.team_id)])[0]

    def remove_member(self, *, actor: Actor, team_id: int, user_id: int) -> TeamView:
        if actor.role not in (Role.ADMIN, Role.CONTRACTOR):
            raise AuthorizationError("Access denied. Required roles: admin, contractor")
        team = self._get_visible(actor, team_id)
        if not self._teams.remove_member(team.team_id, user_id):
            raise NotFoundError("Team member")
        logger.info("user %s removed from team %s", user_id, team.team_id)
        return self.compose([self._teams.get_by_id(team.team_id)])[0]

    def delete_team(self, *, actor: Actor, team_id: int) -> None:
        _require_admin(actor)
        if not self._teams.delete_by_id(team_id):
            raise NotFoundError("Team")
        logger.info("admin %s deleted team %s", actor.user_id, team_id)

    def _get_visible(self, actor: Actor, team_id: int) -> Team:
        team = self._teams.get_by_id(team_id)
        if not team:
            raise NotFoundError("Team")
        if actor.role == Role.CONTRACTOR and team.contractor_id != actor.user_id:
            raise NotFoundError("Team")
        if actor.role == Role.MEMBER and actor.user_id not in team.member_ids:
            raise NotFoundError("Team")
        return team

    def _validate_members(self, members: Any) -> list[int]:
        if not isinstance(members, list):
            raise ValidationError("Members must be provided as an array")

        member_ids = [parse_id(m, "member ID") for m in members]
        if len(set(member_ids)) != len(member_ids):
            raise ValidationError("Duplicate member ids are not allowed")

        users = self._users.get_many(member_ids)
        for member_id in member_ids:
            user = users.get(member_id)
            if not user or not user.is_active or user.role not in MEMBER_ROLES:
                raise ValidationError(f"User {member_id} is not an active member")
        return member_ids


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Access denied. Required roles: admin")
