from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.enums import UpdateType


@dataclass(frozen=True)
class DashboardStats:
    total_projects: int
    updates_today: int
    active_contractors: int
    pending_requests: int


@dataclass(frozen=True)
class RecentUpdate:
    update_id: int
    image_url: str
    project_id: int
    project_name: str
    contractor_name: str
    posted_by_name: str
    description: str
    update_type: UpdateType
    timestamp: datetime
    status: str
    document_count: int
    location: Optional[str] = None
