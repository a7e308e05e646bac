from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional, Tuple

from ..core.enums import ReportType
from ..documents.model import DocumentView
from ..projects.model import Project, ProjectView
from ..teams.model import ProjectRef
from ..updates.model import UpdateSlot
from ..users.model import User, UserSummary


@dataclass(frozen=True)
class GridCell:
    """One member's day: the morning and evening update, either may be absent."""

    user_id: int
    morning: Optional[UpdateSlot] = None
    evening: Optional[UpdateSlot] = None

    @property
    def is_present(self) -> bool:
        return self.morning is not None and self.evening is not None


@dataclass(frozen=True)
class GridDay:
    day: date
    cells: Tuple[GridCell, ...]

    def cell_for(self, user_id: int) -> Optional[GridCell]:
        for cell in self.cells:
            if cell.user_id == user_id:
                return cell
        return None


@dataclass(frozen=True)
class AttendanceGrid:
    """Date x member grid of a project's half-day updates.

    ``days`` covers every calendar day of the inclusive range, and every day
    carries one cell per entry of ``members``, in the same order.
    """

    project: ProjectRef
    start_date: date
    end_date: date
    members: Tuple[UserSummary, ...]
    days: Tuple[GridDay, ...]


@dataclass(frozen=True)
class CountEntry:
    key: str
    count: int


@dataclass(frozen=True)
class ProjectReport:
    report_type: ReportType
    generated_at: datetime
    generated_by: int
    project: ProjectView
    documents: Tuple[DocumentView, ...]
    total_documents: int
    documents_by_type: Tuple[CountEntry, ...]
    updates_posted: int
    days_fully_attended: int


@dataclass(frozen=True)
class ProjectsOverview:
    generated_at: datetime
    generated_by: int
    total_projects: int
    projects: Tuple[ProjectView, ...]
    total_documents: int
    projects_by_status: Tuple[CountEntry, ...]
    documents_by_type: Tuple[CountEntry, ...]
    total_budget: float


@dataclass(frozen=True)
class SavedReport:
    """A generated report kept for later: ``data`` is the JSON snapshot taken at generation time.

    ``project_id`` is None for all-projects overviews, and again once the project is deleted.
    """

    report_id: int
    project_id: Optional[int]
    generated_by: int
    report_type: ReportType
    title: str
    data: Mapping[str, Any]
    description: Optional[str] = None
    file_path: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass(frozen=True)
class SavedReportView:
    report_id: int
    report_type: ReportType
    title: str
    description: Optional[str]
    file_path: Optional[str]
    project_id: Optional[int]
    project: Optional[ProjectRef]
    generated_by: int
    generator: Optional[UserSummary]
    data: Mapping[str, Any]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    @classmethod
    def compose(
        cls, report: SavedReport, projects: Mapping[int, Project], users: Mapping[int, User]
    ) -> "SavedReportView":
        project = projects.get(report.project_id) if report.project_id else None
        generator = users.get(report.generated_by)
        return cls(
            report_id=report.report_id,
            report_type=report.report_type,
            title=report.title,
            description=report.description,
            file_path=report.file_path,
            project_id=report.project_id,
            project=ProjectRef(project.project_id, project.name, project.description) if project else None,
            generated_by=report.generated_by,
            generator=UserSummary.of(generator) if generator else None,
            data=report.data,
            created_at=report.created_at,
            updated_at=report.updated_at,
        )
