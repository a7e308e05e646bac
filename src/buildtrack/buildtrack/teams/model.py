from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Mapping, Optional, Tuple

from ..projects.model import Project
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class Team:
    """A named group of members working for a contractor on one project.

    Membership itself lives in its own relation, one row per
    ``(team_id, user_id)``; ``member_ids`` is that relation read back in
    insertion order.
    """

    team_id: int
    project_id: int
    contractor_id: int
    team_name: str
    created_by: int
    member_ids: Tuple[int, ...] = ()
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProjectRef:
    project_id: int
    name: str
    description: str


@dataclass(frozen=True)
class TeamView:
    team_id: int
    team_name: str
    project_id: int
    project: Optional[ProjectRef]
    contractor_id: int
    contractor: Optional[UserSummary]
    created_by: Optional[UserSummary]
    members: Tuple[UserSummary, ...]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def compose(cls, team: Team, projects: Mapping[int, Project], users: Mapping[int, User]) -> "TeamView":
        project = projects.get(team.project_id)
        contractor = users.get(team.contractor_id)
        creator = users.get(team.created_by)
        return cls(
            team_id=team.team_id,
            team_name=team.team_name,
            project_id=team.project_id,
            project=ProjectRef(project.project_id, project.name, project.description) if project else None,
            contractor_id=team.contractor_id,
            contractor=UserSummary.of(contractor) if contractor else None,
            created_by=UserSummary.of(creator) if creator else None,
            members=tuple(UserSummary.of(users[m]) for m in team.member_ids if m in users),
            created_at=team.created_at,
            updated_at=team.updated_at,
        )
