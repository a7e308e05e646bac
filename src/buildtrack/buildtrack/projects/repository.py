from __future__ import annotations

from datetime import date
from typing import Collection, Iterable, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import ProjectStatus
from .model import Project


class ProjectRepository(Protocol):
    """Repository interface for Project.

    ``filter_ids`` restricts reads to an accessible-project set; ``None``
    means unrestricted.
    """

    def get_by_id(self, project_id: int) -> Optional[Project]:
        raise NotImplementedError

    def get_many(self, project_ids: Iterable[int]) -> dict[int, Project]:
        raise NotImplementedError

    def list_projects(
        self,
        *,
        status: Optional[ProjectStatus] = None,
        contractor_id: Optional[int] = None,
        admin_id: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
        page: PageRequest,
    ) -> tuple[Sequence[Project], int]:
        raise NotImplementedError

    def list_all(self, *, filter_ids: Optional[Collection[int]] = None) -> Sequence[Project]:
        raise NotImplementedError

    def ids_for_contractor(self, contractor_id: int) -> set[int]:
        raise NotImplementedError

    def create_project(
        self,
        *,
        name: str,
        description: str,
        admin_id: int,
        contractor_id: Optional[int],
        status: ProjectStatus,
        start_date: Optional[date],
        end_date: Optional[date],
        budget: Optional[float],
        location: Optional[str],
    ) -> int:
        raise NotImplementedError

    def update_project(self, project: Project) -> bool:
        """Persist every mutable field of ``project``."""

        raise NotImplementedError

    def set_status(self, project_id: int, status: ProjectStatus) -> bool:
        raise NotImplementedError

    def set_end_date(self, project_id: int, end_date: date) -> bool:
        raise NotImplementedError

    def set_contractor(self, project_id: int, contractor_id: Optional[int]) -> bool:
        raise NotImplementedError

    def delete_by_id(self, project_id: int) -> bool:
        raise NotImplementedError

    def count_by_status(self) -> dict[ProjectStatus, int]:
        raise NotImplementedError

    def count_active_contractors(self) -> int:
        """Distinct contractors assigned to ``in_progress`` projects."""

        raise NotImplementedError
