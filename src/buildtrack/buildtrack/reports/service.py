from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Callable, Iterable, List, Optional, Tuple

from ..attendance.repository import AttendanceRepository
from ..common.datetime_utils import now_utc, parse_date_range
from ..common.serialization import serialize
from ..common.validators import optional_text, parse_enum, parse_id, parse_optional_enum, require_non_empty
from ..core.actor import Actor
from ..core.enums import DocumentType, ProjectStatus, ReportType, Role
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..documents.model import Document
from ..documents.repository import DocumentRepository
from ..documents.service import DocumentService
from ..projects.model import Project
from ..projects.repository import ProjectRepository
from ..projects.service import ProjectService
from ..teams.model import ProjectRef
from ..teams.repository import TeamRepository
from ..updates.repository import UpdateRepository
from ..users.model import UserSummary
from ..users.repository import UserRepository
from .grid import build_grid
from .model import AttendanceGrid, CountEntry, ProjectReport, ProjectsOverview, SavedReport, SavedReportView
from .repository import SavedReportRepository

logger = logging.getLogger(__name__)

SUMMARY_ROLES = (Role.ADMIN, Role.ACCOUNTS)

# Documents each report type lists; SUMMARY lists all of them.
_REPORT_DOCUMENT_TYPES = {
    ReportType.FINANCIAL: frozenset({DocumentType.REQUIREMENT, DocumentType.OTHER}),
    ReportType.PROGRESS: frozenset({DocumentType.STATUS}),
    ReportType.SUMMARY: frozenset(DocumentType),
}


class ReportService:
    """Reports computed from projects, updates and documents.

    Summaries can also be saved: ``generate_report`` stores a snapshot that
    its author (or an admin) may later retitle or delete.
    """

    def __init__(
        self,
        projects: ProjectRepository,
        teams: TeamRepository,
        updates: UpdateRepository,
        users: UserRepository,
        documents: DocumentRepository,
        attendance: AttendanceRepository,
        reports: SavedReportRepository,
        project_service: ProjectService,
        document_service: DocumentService,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._projects = projects
        self._teams = teams
        self._updates = updates
        self._users = users
        self._documents = documents
        self._attendance = attendance
        self._reports = reports
        self._project_service = project_service
        self._document_service = document_service
        self._clock = clock

    def attendance_grid(self, *, actor: Actor, project_id: int, start_date: Any, end_date: Any) -> AttendanceGrid:
        if not actor.is_admin:
            raise AuthorizationError("Access denied. Required roles: admin")
        if start_date in (None, "") or end_date in (None, ""):
            raise ValidationError("Start date and end date are required")
        start, end = parse_date_range(start_date, end_date)

        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project")
        _check_within_project(project, start, end)

        member_ids = set(self._teams.member_ids_for_project(project.project_id))
        member_ids |= self._updates.poster_ids_for_project(project.project_id)
        if project.contractor_id:
            member_ids.add(project.contractor_id)
        members = _ordered_members(self._users.get_many(member_ids).values(), project.contractor_id)

        updates = self._updates.list_updates(project_id=project.project_id, start_date=start, end_date=end)
        return build_grid(
            project=ProjectRef(project.project_id, project.name, project.description),
            start=start,
            end=end,
            members=members,
            updates=updates,
        )

    def project_report(self, *, actor: Actor, project_id: int, report_type: Any) -> ProjectReport:
        _require_summary_role(actor)
        kind = parse_enum(ReportType, report_type or ReportType.SUMMARY.value, "report type")
        project = self._projects.get_by_id(project_id)
        if not project:
            raise NotFoundError("Project")

        docs = self._documents.list_documents(project_id=project.project_id)
        listed = [d for d in docs if d.doc_type in _REPORT_DOCUMENT_TYPES[kind]]
        present_days = [
            a for a in self._attendance.list_attendance(project_id=project.project_id) if a.is_present
        ]
        report = ProjectReport(
            report_type=kind,
            generated_at=self._clock(),
            generated_by=actor.user_id,
            project=self._project_service.compose([project])[0],
            documents=tuple(self._document_service.compose(listed)),
            total_documents=len(docs),
            documents_by_type=_count_types(docs),
            updates_posted=len(self._updates.list_updates(project_id=project.project_id)),
            days_fully_attended=len(present_days),
        )
        logger.info("%s report for project %s generated by user %s", kind.value, project.project_id, actor.user_id)
        return report

    def overview(self, *, actor: Actor) -> ProjectsOverview:
        _require_summary_role(actor)
        projects = self._projects.list_all()
        docs = self._documents.list_documents()
        by_status = {s: 0 for s in ProjectStatus}
        for p in projects:
            by_status[p.status] += 1
        return ProjectsOverview(
            generated_at=self._clock(),
            generated_by=actor.user_id,
            total_projects=len(projects),
            projects=tuple(self._project_service.compose(projects)),
            total_documents=len(docs),
            projects_by_status=tuple(CountEntry(s.value, n) for s, n in by_status.items()),
            documents_by_type=_count_types(docs),
            total_budget=float(sum(p.budget or 0 for p in projects)),
        )

    # ---- saved reports ----

    def generate_report(
        self,
        *,
        actor: Actor,
        report_type: Any,
        title: Optional[str],
        project_id: Any = None,
        description: Any = None,
        file_path: Any = None,
    ) -> SavedReportView:
        """Compute a summary now and keep it.

        With ``project_id`` the snapshot is that project's report of
        ``report_type``; without it, the all-projects overview.
        """

        _require_summary_role(actor)
        if report_type in (None, "") or not title:
            raise ValidationError("Report type and title are required")
        kind = parse_enum(ReportType, report_type, "report type")

        if project_id in (None, ""):
            target = None
            snapshot = self.overview(actor=actor)
        else:
            target = parse_id(project_id, "project ID")
            snapshot = self.project_report(actor=actor, project_id=target, report_type=kind)

        report_id = self._reports.create_report(
            project_id=target,
            generated_by=actor.user_id,
            report_type=kind,
            title=require_non_empty(title, "Title"),
            data=serialize(snapshot),
            description=optional_text(description),
            file_path=optional_text(file_path),
        )
        logger.info("user %s saved %s report %s (project=%s)", actor.user_id, kind.value, report_id, target)
        return self.get_report(actor=actor, report_id=report_id)

    def list_reports(
        self, *, actor: Actor, project_id: Optional[int] = None, report_type: Any = None
    ) -> List[SavedReportView]:
        _require_summary_role(actor)
        kind = parse_optional_enum(ReportType, report_type, "report type")
        return self._compose_saved(self._reports.list_reports(project_id=project_id, report_type=kind))

    def get_report(self, *, actor: Actor, report_id: int) -> SavedReportView:
        _require_summary_role(actor)
        return self._compose_saved([self._get_saved(report_id)])[0]

    def update_report(
        self,
        *,
        actor: Actor,
        report_id: int,
        title: Any = None,
        description: Any = None,
        file_path: Any = None,
    ) -> SavedReportView:
        _require_summary_role(actor)
        report = self._get_saved(report_id)
        if report.generated_by != actor.user_id and not actor.is_admin:
            raise AuthorizationError("You can only update your own reports")

        updated = self._reports.update_report(
            report.report_id,
            title=require_non_empty(title, "Title") if title else report.title,
            description=report.description if description is None else optional_text(description),
            file_path=optional_text(file_path) if file_path else report.file_path,
        )
        if not updated:
            raise NotFoundError("Report")
        return self.get_report(actor=actor, report_id=report.report_id)

    def delete_report(self, *, actor: Actor, report_id: int) -> None:
        _require_summary_role(actor)
        report = self._get_saved(report_id)
        if report.generated_by != actor.user_id and not actor.is_admin:
            raise AuthorizationError("You can only delete your own reports")
        if not self._reports.delete_by_id(report.report_id):
            raise NotFoundError("Report")
        logger.info("report %s deleted by user %s", report.report_id, actor.user_id)

    def _get_saved(self, report_id: int) -> SavedReport:
        report = self._reports.get_by_id(report_id)
        if not report:
            raise NotFoundError("Report")
        return report

    def _compose_saved(self, reports) -> List[SavedReportView]:
        projects = self._projects.get_many({r.project_id for r in reports if r.project_id})
        users = self._users.get_many({r.generated_by for r in reports})
        return [SavedReportView.compose(r, projects, users) for r in reports]


def _require_summary_role(actor: Actor) -> None:
    if not actor.has_role(*SUMMARY_ROLES):
        raise AuthorizationError("Access denied. Required roles: admin, accounts")


def _check_within_project(project: Project, start: date, end: date) -> None:
    if project.start_date and start < project.start_date:
        raise ValidationError(
            f"Start date cannot be before the project start date ({project.start_date.isoformat()})"
        )
    if project.end_date and end > project.end_date:
        raise ValidationError(f"End date cannot be after the project end date ({project.end_date.isoformat()})")


def _ordered_members(users: Iterable, contractor_id: Optional[int]) -> Tuple[UserSummary, ...]:
    """Contractor first, then everyone else by name."""

    summaries = [UserSummary.of(u) for u in users]
    summaries.sort(key=lambda s: (s.user_id != contractor_id, s.name.lower(), s.user_id))
    return tuple(summaries)


def _count_types(docs: Iterable[Document]) -> Tuple[CountEntry, ...]:
    counts = {t: 0 for t in DocumentType}
    for d in docs:
        counts[d.doc_type] += 1
    return tuple(CountEntry(t.value, n) for t, n in counts.items())
