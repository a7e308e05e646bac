from __future__ import annotations

from typing import Any, Mapping, Optional, Protocol, Sequence

from ..core.enums import ReportType
from .model import SavedReport


class SavedReportRepository(Protocol):
    def get_by_id(self, report_id: int) -> Optional[SavedReport]:
        raise NotImplementedError

    def list_reports(
        self,
        *,
        project_id: Optional[int] = None,
        report_type: Optional[ReportType] = None,
    ) -> Sequence[SavedReport]:
        """Newest first."""
        raise NotImplementedError

    def create_report(
        self,
        *,
        project_id: Optional[int],
        generated_by: int,
        report_type: ReportType,
        title: str,
        data: Mapping[str, Any],
        description: Optional[str] = None,
        file_path: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def update_report(
        self,
        report_id: int,
        *,
        title: str,
        description: Optional[str],
        file_path: Optional[str],
    ) -> bool:
        raise NotImplementedError

    def delete_by_id(self, report_id: int) -> bool:
        raise NotImplementedError
