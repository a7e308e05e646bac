from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, Optional, Sequence

from ..access.scope import VisibilityResolver
from ..common.datetime_utils import now_utc, parse_date_param
from ..common.pagination import Page, PageRequest
from ..common.validators import optional_text, parse_id
from ..core.actor import Actor
from ..core.enums import ProjectStatus, RequestStatus, RequestType, Role
from ..core.exceptions import AuthorizationError, ConsistencyError, DomainError, NotFoundError, ValidationError
from ..projects.lifecycle import accepts_updates
from ..projects.model import Project
from ..projects.repository import ProjectRepository
from ..users.repository import UserRepository
from .model import ProjectRequest, RequestView
from .repository import ProjectRequestRepository

logger = logging.getLogger(__name__)


class RequestService:
    """Completion/extension request workflow.

    A decision and its project side effect run inside one unit of work. The
    request is moved to its terminal status first (conditionally on it still
    being pending), then the project is mutated. If the project write fails
    a ConsistencyError (500) is raised; a transactional unit of work rolls
    both back, otherwise the terminal request is left for reconciliation.
    """

    def __init__(
        self,
        requests: ProjectRequestRepository,
        projects: ProjectRepository,
        users: UserRepository,
        visibility: VisibilityResolver,
        *,
        unit_of_work: Callable[[], ContextManager[Any]] = nullcontext,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._requests = requests
        self._projects = projects
        self._users = users
        self._visibility = visibility
        self._unit_of_work = unit_of_work
        self._clock = clock

    # ---- contractor ----

    def create_completion_request(self, *, actor: Actor, project_id: Any, reason: Optional[str] = None) -> RequestView:
        project = self._check_can_request(actor, project_id, RequestType.COMPLETION)
        return self._create(actor, project, RequestType.COMPLETION, reason=reason)

    def create_extension_request(
        self,
        *,
        actor: Actor,
        project_id: Any,
        requested_end_date: Any,
        reason: Optional[str] = None,
    ) -> RequestView:
        if project_id in (None, "") or requested_end_date in (None, ""):
            raise ValidationError("Project ID and requested end date are required")
        end = parse_date_param(requested_end_date, "Requested end date")

        project = self._check_can_request(actor, project_id, RequestType.EXTENSION)
        _require_after_end_date(project, end, "Requested end date")
        return self._create(actor, project, RequestType.EXTENSION, requested_end_date=end, reason=reason)

    def cancel(self, *, actor: Actor, request_id: int) -> None:
        req = self._requests.get_by_id(request_id)
        if not req:
            raise NotFoundError("Request")
        if req.requested_by != actor.user_id:
            raise AuthorizationError("You can only cancel your own requests")
        if not req.is_pending:
            raise ValidationError(f"Cannot cancel a request that is already {req.status.value}")

        if not self._requests.delete_pending(req.request_id):
            raise ValidationError("Request has already been processed")
        logger.info("request %s cancelled by contractor %s", req.request_id, actor.user_id)

    # ---- admin ----

    def approve(
        self,
        *,
        actor: Actor,
        request_id: int,
        approved_end_date: Any = None,
        admin_notes: Optional[str] = None,
    ) -> RequestView:
        _require_admin(actor, "Only admins can approve requests")
        req, project = self._load_pending(request_id)

        end: Optional[date] = None
        if req.request_type == RequestType.EXTENSION:
            end = req.requested_end_date
            if approved_end_date not in (None, ""):
                end = parse_date_param(approved_end_date, "Approved end date")
                _require_after_end_date(project, end, "Approved end date")
            if not end:
                raise ValidationError("End date is required for extension approval")

        with self._unit_of_work():
            self._decide(req, RequestStatus.APPROVED, actor, admin_notes, approved_end_date=end)
            if req.request_type == RequestType.COMPLETION:
                self._mutate_project(req, lambda: self._projects.set_status(project.project_id, ProjectStatus.COMPLETED))
            else:
                self._mutate_project(req, lambda: self._projects.set_end_date(project.project_id, end))

        logger.info(
            "request %s (%s) approved by admin %s for project %s",
            req.request_id,
            req.request_type.value,
            actor.user_id,
            project.project_id,
        )
        return self.get_request(actor=actor, request_id=req.request_id)

    def reject(self, *, actor: Actor, request_id: int, admin_notes: Optional[str] = None) -> RequestView:
        _require_admin(actor, "Only admins can reject requests")
        req, project = self._load_pending(request_id)

        with self._unit_of_work():
            self._decide(req, RequestStatus.REJECTED, actor, admin_notes)
            # Extension rejections leave the project alone.
            if req.request_type == RequestType.COMPLETION and project.status != ProjectStatus.IN_PROGRESS:
                self._mutate_project(req, lambda: self._projects.set_status(project.project_id, ProjectStatus.IN_PROGRESS))
                logger.info("project %s restored to in_progress", project.project_id)

        logger.info("request %s (%s) rejected by admin %s", req.request_id, req.request_type.value, actor.user_id)
        return self.get_request(actor=actor, request_id=req.request_id)

    # ---- reads ----

    def list_requests(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        request_type: Optional[RequestType] = None,
        requested_by: Optional[int] = None,
        page: PageRequest,
    ) -> Page[RequestView]:
        filter_ids = None
        if actor.role == Role.CONTRACTOR:
            requested_by = actor.user_id
        else:
            filter_ids = self._visibility.scope_for(actor).filter_ids

        items, total = self._requests.list_requests(
            project_id=project_id,
            status=status,
            request_type=request_type,
            requested_by=requested_by,
            filter_ids=filter_ids,
            page=page,
        )
        return Page(items=self.compose(items), total=total, request=page)

    def get_request(self, *, actor: Actor, request_id: int) -> RequestView:
        req = self._requests.get_by_id(request_id)
        if not req:
            raise NotFoundError("Request")
        if actor.role == Role.CONTRACTOR:
            if req.requested_by != actor.user_id:
                raise NotFoundError("Request")
        elif not self._visibility.scope_for(actor).allows(req.project_id):
            raise NotFoundError("Request")
        return self.compose([req])[0]

    def compose(self, requests: Sequence[ProjectRequest]) -> list[RequestView]:
        user_ids = {r.requested_by for r in requests} | {r.reviewed_by for r in requests if r.reviewed_by}
        users = self._users.get_many(user_ids)
        projects = self._projects.get_many({r.project_id for r in requests})
        return [RequestView.compose(r, projects, users) for r in requests]

    # ---- helpers ----

    def _check_can_request(self, actor: Actor, project_id: Any, request_type: RequestType) -> Project:
        if actor.role != Role.CONTRACTOR:
            raise AuthorizationError(f"Only contractors can create {request_type.value} requests")
        if project_id in (None, ""):
            raise ValidationError("Project ID is required")

        project = self._projects.get_by_id(parse_id(project_id, "project ID"))
        if not project:
            raise NotFoundError("Project")
        if project.contractor_id != actor.user_id:
            raise AuthorizationError(
                f"You can only create {request_type.value} requests for projects assigned to you"
            )
        if not accepts_updates(project.status):
            raise ValidationError(
                f'{request_type.value.capitalize()} requests can only be created for projects with status '
                f'"in_progress". Current status: {project.status.value}'
            )
        if self._requests.has_pending(project.project_id, request_type):
            raise ValidationError(f"A pending {request_type.value} request already exists for this project")
        return project

    def _create(
        self,
        actor: Actor,
        project: Project,
        request_type: RequestType,
        *,
        requested_end_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> RequestView:
        request_id = self._requests.create_request(
            project_id=project.project_id,
            requested_by=actor.user_id,
            request_type=request_type,
            requested_end_date=requested_end_date,
            reason=optional_text(reason),
        )
        logger.info(
            "contractor %s opened %s request %s for project %s",
            actor.user_id,
            request_type.value,
            request_id,
            project.project_id,
        )
        return self.compose([self._requests.get_by_id(request_id)])[0]

    def _load_pending(self, request_id: int) -> tuple[ProjectRequest, Project]:
        req = self._requests.get_by_id(request_id)
        if not req:
            raise NotFoundError("Request")
        if not req.is_pending:
            raise ValidationError(f"Request is already {req.status.value}")
        project = self._projects.get_by_id(req.project_id)
        if not project:
            raise NotFoundError("Project")
        return req, project

    def _decide(
        self,
        req: ProjectRequest,
        status: RequestStatus,
        actor: Actor,
        admin_notes: Optional[str],
        *,
        approved_end_date: Optional[date] = None,
    ) -> None:
        decided = self._requests.decide(
            req.request_id,
            status=status,
            reviewed_by=actor.user_id,
            reviewed_at=self._clock(),
            admin_notes=optional_text(admin_notes),
            approved_end_date=approved_end_date,
        )
        if not decided:
            raise ValidationError("Request has already been processed")

    def _mutate_project(self, req: ProjectRequest, write: Callable[[], bool]) -> None:
        try:
            written = write()
        except DomainError:
            raise
        except Exception as e:
            logger.exception("request %s decided but project %s update failed", req.request_id, req.project_id)
            raise ConsistencyError(
                f"Request {req.request_id} was decided but project {req.project_id} could not be updated"
            ) from e
        if not written:
            logger.error("request %s decided but project %s is gone", req.request_id, req.project_id)
            raise ConsistencyError(
                f"Request {req.request_id} was decided but project {req.project_id} could not be updated"
            )


def _require_admin(actor: Actor, message: str) -> None:
    if not actor.is_admin:
        raise AuthorizationError(message)


def _require_after_end_date(project: Project, end: date, field_name: str) -> None:
    if project.end_date and end <= project.end_date:
        raise ValidationError(f"{field_name} must be after the current project end date")
