from __future__ import annotations

from datetime import date
from typing import Collection, Iterable, Optional, Protocol, Sequence

from ..core.enums import UpdateType
from .model import AttachmentDescriptor, NewUpdate, Update


class UpdateRepository(Protocol):
    """Repository interface for the update ledger.

    ``create_update`` must raise ConflictError when an update already exists
    for the same ``(posted_by, project_id, update_date, update_type)``.
    """

    def get_by_id(self, update_id: int) -> Optional[Update]:
        raise NotImplementedError

    def get_many(self, update_ids: Iterable[int]) -> dict[int, Update]:
        raise NotImplementedError

    def list_updates(
        self,
        *,
        project_id: Optional[int] = None,
        posted_by: Optional[int] = None,
        update_type: Optional[UpdateType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        filter_ids: Optional[Collection[int]] = None,
        limit: Optional[int] = None,
    ) -> Sequence[Update]:
        """Newest first: ``update_date`` then ``timestamp`` descending."""

        raise NotImplementedError

    def poster_ids_for_project(self, project_id: int) -> set[int]:
        raise NotImplementedError

    def count_for_day(self, day: date) -> int:
        raise NotImplementedError

    def create_update(self, new: NewUpdate) -> int:
        raise NotImplementedError

    def add_documents(self, update_id: int, documents: Sequence[AttachmentDescriptor]) -> None:
        raise NotImplementedError
