from __future__ import annotations

from datetime import date, datetime
from typing import Collection, Optional, Protocol, Sequence

from ..common.pagination import PageRequest
from ..core.enums import RequestStatus, RequestType
from .model import ProjectRequest


class ProjectRequestRepository(Protocol):
    """Repository interface for ProjectRequest.

    Storage must enforce at most one pending request per
    ``(project_id, request_type)``; a losing insert raises ConflictError.
    """

    def get_by_id(self, request_id: int) -> Optional[ProjectRequest]:
        raise NotImplementedError

    def list_requests(
        self,
        *,
        project_id: Optional[int] = None,
        status: Optional[RequestStatus] = None,
        request_type: Optional[RequestType] = None,
        requested_by: Optional[int] = None,
        filter_ids: Optional[Collection[int]] = None,
        page: PageRequest,
    ) -> tuple[Sequence[ProjectRequest], int]:
        raise NotImplementedError

    def has_pending(self, project_id: int, request_type: Optional[RequestType] = None) -> bool:
        raise NotImplementedError

    def count_pending(self) -> int:
        raise NotImplementedError

    def create_request(
        self,
        *,
        project_id: int,
        requested_by: int,
        request_type: RequestType,
        requested_end_date: Optional[date] = None,
        reason: Optional[str] = None,
    ) -> int:
        raise NotImplementedError

    def decide(
        self,
        request_id: int,
        *,
        status: RequestStatus,
        reviewed_by: int,
        reviewed_at: datetime,
        admin_notes: Optional[str] = None,
        approved_end_date: Optional[date] = None,
    ) -> bool:
        """Move a pending request to a terminal status.

        Returns False when the request is no longer pending.
        """

        raise NotImplementedError

    def delete_pending(self, request_id: int) -> bool:
        raise NotImplementedError
