from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from ..core.enums import ProjectStatus
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class Project:
    project_id: int
    name: str
    description: str
    admin_id: int
    contractor_id: Optional[int] = None
    status: ProjectStatus = ProjectStatus.PLANNING
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    budget: Optional[float] = None
    location: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class ProjectView:
    """Read model: a project with its admin and contractor resolved."""

    project_id: int
    name: str
    description: str
    status: ProjectStatus
    admin_id: int
    admin: Optional[UserSummary]
    contractor_id: Optional[int]
    contractor: Optional[UserSummary]
    start_date: Optional[date]
    end_date: Optional[date]
    budget: Optional[float]
    location: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def compose(cls, project: Project, users: Mapping[int, User]) -> "ProjectView":
        admin = users.get(project.admin_id)
        contractor = users.get(project.contractor_id) if project.contractor_id else None
        return cls(
            project_id=project.project_id,
            name=project.name,
            description=project.description,
            status=project.status,
            admin_id=project.admin_id,
            admin=UserSummary.of(admin) if admin else None,
            contractor_id=project.contractor_id,
            contractor=UserSummary.of(contractor) if contractor else None,
            start_date=project.start_date,
            end_date=project.end_date,
            budget=project.budget,
            location=project.location,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
