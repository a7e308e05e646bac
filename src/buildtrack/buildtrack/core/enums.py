from __future__ import annotations

from enum import Enum


class Role(str, Enum):
    """User roles used for authorization."""

    DEVELOPER = "developer"
    ADMIN = "admin"
    ACCOUNTS = "accounts"
    CONTRACTOR = "contractor"
    MEMBER = "member"


class ProjectStatus(str, Enum):
    PLANNING = "planning"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class UpdateType(str, Enum):
    """Half-day slot an update belongs to."""

    MORNING = "morning"
    EVENING = "evening"


class DocumentType(str, Enum):
    REQUIREMENT = "requirement"
    STATUS = "status"
    OTHER = "other"


class RequestType(str, Enum):
    COMPLETION = "completion"
    EXTENSION = "extension"


class RequestStatus(str, Enum):
    """Approval workflow state of a project request."""

    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportType(str, Enum):
    FINANCIAL = "financial"
    PROGRESS = "progress"
    SUMMARY = "summary"
