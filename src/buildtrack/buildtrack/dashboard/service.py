from __future__ import annotations

from datetime import datetime
from typing import Callable, List

from ..common.datetime_utils import day_key, now_utc
from ..core.actor import Actor
from ..core.exceptions import AuthorizationError, ValidationError
from ..projects.repository import ProjectRepository
from ..requests.repository import ProjectRequestRepository
from ..updates.repository import UpdateRepository
from ..users.repository import UserRepository
from .model import DashboardStats, RecentUpdate

DEFAULT_RECENT_LIMIT = 8
MAX_RECENT_LIMIT = 50
NO_IMAGE_URL = "https://placehold.co/400/300/cccccc/000000?text=No+Image"


class DashboardService:
    def __init__(
        self,
        projects: ProjectRepository,
        updates: UpdateRepository,
        requests: ProjectRequestRepository,
        users: UserRepository,
        *,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._projects = projects
        self._updates = updates
        self._requests = requests
        self._users = users
        self._clock = clock

    def stats(self, *, actor: Actor) -> DashboardStats:
        """Headline numbers; "today" is the current UTC day."""

        _require_admin(actor)
        return DashboardStats(
            total_projects=sum(self._projects.count_by_status().values()),
            updates_today=self._updates.count_for_day(day_key(self._clock())),
            active_contractors=self._projects.count_active_contractors(),
            pending_requests=self._requests.count_pending(),
        )

    def recent_updates(self, *, actor: Actor, limit: int = DEFAULT_RECENT_LIMIT) -> List[RecentUpdate]:
        _require_admin(actor)
        if limit < 1 or limit > MAX_RECENT_LIMIT:
            raise ValidationError(f"Limit must be between 1 and {MAX_RECENT_LIMIT}")

        updates = self._updates.list_updates(limit=limit)
        projects = self._projects.get_many({u.project_id for u in updates})
        user_ids = {u.posted_by for u in updates} | {u.contractor_id for u in updates if u.contractor_id}
        users = self._users.get_many(user_ids)

        out = []
        for u in updates:
            project = projects.get(u.project_id)
            contractor = users.get(u.contractor_id) if u.contractor_id else None
            poster = users.get(u.posted_by)
            out.append(
                RecentUpdate(
                    update_id=u.update_id,
                    image_url=u.first_document_url or NO_IMAGE_URL,
                    project_id=u.project_id,
                    project_name=project.name if project else "Unknown Project",
                    contractor_name=contractor.name if contractor else "Unknown Contractor",
                    posted_by_name=poster.name if poster else "Unknown User",
                    description=u.description or "",
                    update_type=u.update_type,
                    timestamp=u.timestamp,
                    status=u.status,
                    document_count=len(u.documents),
                    location=project.location if project else None,
                )
            )
        return out


def _require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Access denied. Required roles: admin")
