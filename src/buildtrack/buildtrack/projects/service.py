from __future__ import annotations

import dataclasses
import logging
from typing import Any, Mapping, Optional, Sequence

from ..access.scope import VisibilityResolver
from ..common.datetime_utils import parse_date_param
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_enum, parse_non_negative, parse_optional_id, require_non_empty
from ..core.actor import Actor
from ..core.enums import ProjectStatus, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..requests.repository import ProjectRequestRepository
from ..users.repository import UserRepository
from .lifecycle import ensure_transition
from .model import Project, ProjectView
from .repository import ProjectRepository

logger = logging.getLogger(__name__)

PENDING_REQUESTS_MESSAGE = (
    "Cannot change project status while there are pending requests. "
    "Please resolve pending requests first."
)

# Fields an admin may change through update_project().
UPDATABLE_FIELDS = frozenset(
    {"name", "description", "contractor_id", "status", "start_date", "end_date", "budget", "location"}
)


class ProjectService:
    """Use case: project CRUD, contractor assignment and status changes."""

    def __init__(
        self,
        projects: ProjectRepository,
        users: UserRepository,
        requests: ProjectRequestRepository,
        visibility: VisibilityResolver,
    ):
        self._projects = projects
        self._users = users
        self._requests = requests
        self._visibility = visibility

    # ---- reads ----

    def compose(self, projects: Sequence[Project]) -> list[ProjectView]:
        ids = set()
        for p in projects:
            ids.add(p.admin_id)
            if p.contractor_id:
                ids.add(p.contractor_id)
        users = self._users.get_many(ids)
        return [ProjectView.compose(p, users) for p in projects]

    def list_projects(
        self,
        *,
        actor: Actor,
        status: Optional[ProjectStatus] = None,
        contractor_id: Optional[int] = None,
        admin_id: Optional[int] = None,
        page: PageRequest,
    ) -> Page[ProjectView]:
        scope = self._visibility.scope_for(actor)
        items, total = self._projects.list_projects(
            status=status,
            contractor_id=contractor_id,
            admin_id=admin_id,
            filter_ids=scope.filter_ids,
            page=page,
        )
        return Page(items=self.compose(items), total=total, request=page)

    def get_visible(self, *, actor: Actor, project_id: int) -> Project:
        """Project by id, or NotFound when absent or outside the caller's scope."""

        project = self._projects.get_by_id(project_id)
        if not project or not self._visibility.scope_for(actor).allows(project.project_id):
            raise NotFoundError("Project")
        return project

    def get_project(self, *, actor: Actor, project_id: int) -> ProjectView:
        return self.compose([self.get_visible(actor=actor, project_id=project_id)])[0]

    # ---- writes (admin) ----

    def create_project(
        self,
        *,
        actor: Actor,
        name: Optional[str],
        description: Optional[str],
        contractor_id: Any = None,
        status: Any = None,
        start_date: Any = None,
        end_date: Any = None,
        budget: Any = None,
        location: Any = None,
    ) -> ProjectView:
        _require_admin(actor)
        if not name or not description:
            raise ValidationError("Project name and description are required")
        if status not in (None, "", ProjectStatus.PLANNING.value, ProjectStatus.PLANNING):
            raise ValidationError("New projects always start in planning")

        contractor = parse_optional_id(contractor_id, "contractor ID")
        if contractor is not None:
            self._require_contractor(contractor)
        start = parse_date_param(start_date, "Start date")
        end = parse_date_param(end_date, "End date")
        _check_dates(start, end)

        project_id = self._projects.create_project(
            name=require_non_empty(name, "Project name"),
            description=require_non_empty(description, "Project description"),
            admin_id=actor.user_id,
            contractor_id=contractor,
            status=ProjectStatus.PLANNING,
            start_date=start,
            end_date=end,
            budget=parse_non_negative(budget, "Budget"),
            location=optional_text(location),
        )
        logger.info("admin %s created project %s", actor.user_id, project_id)
        return self.compose([self._projects.get_by_id(project_id)])[0]

    def update_project(self, *, actor: Actor, project_id: int, changes: Mapping[str, Any]) -> ProjectView:
        """Apply a partial update. ``changes`` holds only the fields the caller sent."""

        _require_admin(actor)
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise ValidationError(f"Unknown project fields: {', '.join(sorted(unknown))}")

        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project")

        updated = project
        if changes.get("name"):
            updated = dataclasses.replace(updated, name=require_non_empty(changes["name"], "Project name"))
        if changes.get("description"):
            updated = dataclasses.replace(
                updated, description=require_non_empty(changes["description"], "Project description")
            )
        if "contractor_id" in changes:
            contractor = parse_optional_id(changes["contractor_id"], "contractor ID")
            if contractor is not None:
                self._require_contractor(contractor)
            updated = dataclasses.replace(updated, contractor_id=contractor)
        if changes.get("start_date"):
            updated = dataclasses.replace(updated, start_date=parse_date_param(changes["start_date"], "Start date"))
        if changes.get("end_date"):
            updated = dataclasses.replace(updated, end_date=parse_date_param(changes["end_date"], "End date"))
        if "budget" in changes:
            updated = dataclasses.replace(updated, budget=parse_non_negative(changes["budget"], "Budget"))
        if "location" in changes:
            updated = dataclasses.replace(updated, location=optional_text(changes["location"]))
        _check_dates(updated.start_date, updated.end_date)

        if changes.get("status"):
            target = parse_enum(ProjectStatus, changes["status"], "project status")
            if target != project.status:
                if self._requests.has_pending(project.project_id):
                    raise ValidationError(PENDING_REQUESTS_MESSAGE)
                ensure_transition(project.status, target)
                updated = dataclasses.replace(updated, status=target)

        self._projects.update_project(updated)
        if updated.status != project.status:
            logger.info(
                "project %s status %s -> %s by admin %s",
                project.project_id,
                project.status.value,
                updated.status.value,
                actor.user_id,
            )
        return self.compose([self._projects.get_by_id(project_id)])[0]

    def assign_contractor(self, *, actor: Actor, project_id: int, contractor_id: Any) -> ProjectView:
        _require_admin(actor)
        if contractor_id in (None, ""):
            raise ValidationError("Contractor ID is required")
        contractor = parse_optional_id(contractor_id, "contractor ID")
        self._require_contractor(contractor)

        if not self._projects.set_contractor(project_id, contractor):
            raise NotFoundError("Project")
        logger.info("project %s assigned to contractor %s", project_id, contractor)
        return self.compose([self._projects.get_by_id(project_id)])[0]

    def delete_project(self, *, actor: Actor, project_id: int) -> None:
        _require_admin(actor)
        if not self._projects.delete_by_id(project_id):
            raise NotFoundError("Project")
        logger.info("admin %s deleted project %s", actor.user_id, project_id)

    def _require_contractor(self, user_id: int) -> None:
        user = self._users.get_by_id(user_id)
        if not user or user.role != Role.CONTRACTOR or not user.is_active:
            raise ValidationError("Invalid contractor user")


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Access denied. Required roles: admin")


def _check_dates(start, end) -> None:
    if start and end and start > end:
        raise ValidationError("Start date must be on or before end date")
