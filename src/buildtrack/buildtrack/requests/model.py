from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Mapping, Optional

from ..core.enums import ProjectStatus, RequestStatus, RequestType
from ..projects.model import Project
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class ProjectRequest:
    """Contractor-initiated completion/extension request.

    ``status`` only ever moves pending -> approved or pending -> rejected.
    """

    request_id: int
    project_id: int
    requested_by: int
    request_type: RequestType
    status: RequestStatus = RequestStatus.PENDING
    requested_end_date: Optional[date] = None
    approved_end_date: Optional[date] = None
    reason: Optional[str] = None
    admin_notes: Optional[str] = None
    reviewed_by: Optional[int] = None
    reviewed_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_pending(self) -> bool:
        return self.status == RequestStatus.PENDING


@dataclass(frozen=True)
class ProjectBrief:
    project_id: int
    name: str
    description: str
    status: ProjectStatus
    end_date: Optional[date]


@dataclass(frozen=True)
class RequestView:
    request_id: int
    request_type: RequestType
    status: RequestStatus
    project_id: int
    project: Optional[ProjectBrief]
    requested_by: int
    requester: Optional[UserSummary]
    requested_end_date: Optional[date]
    approved_end_date: Optional[date]
    reason: Optional[str]
    admin_notes: Optional[str]
    reviewed_by: Optional[int]
    reviewer: Optional[UserSummary]
    reviewed_at: Optional[datetime]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def compose(
        cls,
        req: ProjectRequest,
        projects: Mapping[int, Project],
        users: Mapping[int, User],
    ) -> "RequestView":
        project = projects.get(req.project_id)
        requester = users.get(req.requested_by)
        reviewer = users.get(req.reviewed_by) if req.reviewed_by else None
        return cls(
            request_id=req.request_id,
            request_type=req.request_type,
            status=req.status,
            project_id=req.project_id,
            project=(
                ProjectBrief(project.project_id, project.name, project.description, project.status, project.end_date)
                if project
                else None
            ),
            requested_by=req.requested_by,
            requester=UserSummary.of(requester) if requester else None,
            requested_end_date=req.requested_end_date,
            approved_end_date=req.approved_end_date,
            reason=req.reason,
            admin_notes=req.admin_notes,
            reviewed_by=req.reviewed_by,
            reviewer=UserSummary.of(reviewer) if reviewer else None,
            reviewed_at=req.reviewed_at,
            created_at=req.created_at,
            updated_at=req.updated_at,
        )
