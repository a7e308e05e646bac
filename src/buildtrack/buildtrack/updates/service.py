from __future__ import annotations

import logging
from contextlib import nullcontext
from datetime import date, datetime
from typing import Any, Callable, ContextManager, List, Optional, Sequence

from ..access.scope import VisibilityResolver
from ..attendance.service import AttendanceService
from ..common.datetime_utils import day_key, now_utc, parse_date_param, parse_datetime_param, to_naive_utc
from ..common.validators import optional_text, parse_enum, parse_id
from ..core.actor import Actor
from ..core.enums import Role, UpdateType
from ..core.exceptions import AuthorizationError, NotFoundError, ValidationError
from ..projects.lifecycle import accepts_updates
from ..projects.model import Project
from ..projects.repository import ProjectRepository
from ..storage.attachments import (
    MAX_FILES_PER_REQUEST,
    AttachmentStorage,
    StoredFile,
    UploadedFile,
    project_folder,
)
from ..teams.repository import TeamRepository
from ..users.repository import UserRepository
from .model import AttachmentDescriptor, NewUpdate, Update, UpdateView
from .payload import parse_documents, parse_file_metadata
from .repository import UpdateRepository

logger = logging.getLogger(__name__)

POSTER_ROLES = frozenset({Role.CONTRACTOR, Role.MEMBER})


class UpdateService:
    """Use case: post half-day updates and derive attendance from them.

    Posting is open to the project's contractor and to members of any of
    its teams, only while the project is ``in_progress``, and needs at least
    one document. The storage-level unique key on
    ``(posted_by, project_id, update_date, update_type)`` decides races:
    the loser gets a ConflictError.
    """

    def __init__(
        self,
        updates: UpdateRepository,
        projects: ProjectRepository,
        teams: TeamRepository,
        users: UserRepository,
        attendance: AttendanceService,
        storage: AttachmentStorage,
        visibility: VisibilityResolver,
        *,
        unit_of_work: Callable[[], ContextManager[Any]] = nullcontext,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._updates = updates
        self._projects = projects
        self._teams = teams
        self._users = users
        self._attendance = attendance
        self._storage = storage
        self._visibility = visibility
        self._unit_of_work = unit_of_work
        self._clock = clock

    def create_update(
        self,
        *,
        actor: Actor,
        project_id: Any,
        update_type: Any,
        status: Optional[str],
        update_date: Any,
        timestamp: Any = None,
        description: Optional[str] = None,
        documents: Any = None,
        files: Sequence[UploadedFile] = (),
        document_metadata: Any = None,
    ) -> UpdateView:
        if project_id in (None, "") or not status or update_date in (None, "") or update_type in (None, ""):
            raise ValidationError("Project ID, update type, status, and update date are required")

        kind = parse_enum(UpdateType, update_type, "update type")
        day = parse_date_param(update_date, "Update date")
        posted_at = parse_datetime_param(timestamp, "Timestamp")
        posted_at = to_naive_utc(posted_at) if posted_at else self._clock()

        project = self._projects.get_by_id(parse_id(project_id, "project ID"))
        if not project or not self._visibility.scope_for(actor).allows(project.project_id):
            raise NotFoundError("Project")
        self._check_can_post(actor, project)
        if not accepts_updates(project.status):
            raise ValidationError(
                f'Updates can only be posted for projects with status "in_progress". '
                f"Current status: {project.status.value}"
            )

        descriptors = parse_documents(documents, uploaded_by=actor.user_id)
        _check_file_count(files)
        metadata = parse_file_metadata(document_metadata, len(files))
        if not descriptors and not files:
            raise ValidationError("At least one document is required")

        stored = self._store_files(files, metadata, actor, folder=project_folder("updates", project.project_id))
        descriptors.extend(stored_descriptors(stored, metadata, actor))

        new = NewUpdate(
            project_id=project.project_id,
            contractor_id=project.contractor_id,
            posted_by=actor.user_id,
            update_type=kind,
            update_date=day_key(day),
            timestamp=posted_at,
            status=str(status).strip(),
            description=optional_text(description),
            documents=tuple(descriptors),
        )
        try:
            with self._unit_of_work():
                update_id = self._updates.create_update(new)
                update = self._updates.get_by_id(update_id)
                self._attendance.record_update(update)
        except Exception:
            self._discard(stored)
            raise

        logger.info(
            "update %s posted: project=%s user=%s %s %s (%d documents)",
            update.update_id,
            update.project_id,
            update.posted_by,
            update.update_type.value,
            update.update_date.isoformat(),
            len(update.documents),
        )
        return self.compose([update])[0]

    def add_documents(
        self,
        *,
        actor: Actor,
        update_id: int,
        documents: Any = None,
        files: Sequence[UploadedFile] = (),
        document_metadata: Any = None,
    ) -> UpdateView:
        update = self._get_visible(actor, update_id)
        if update.posted_by != actor.user_id:
            raise AuthorizationError("You can only modify your own updates")

        descriptors = parse_documents(documents, uploaded_by=actor.user_id)
        _check_file_count(files)
        metadata = parse_file_metadata(document_metadata, len(files))
        if not descriptors and not files:
            raise ValidationError("At least one document must be provided")

        stored = self._store_files(files, metadata, actor, folder=project_folder("updates", update.project_id))
        descriptors.extend(stored_descriptors(stored, metadata, actor))
        try:
            self._updates.add_documents(update.update_id, descriptors)
        except Exception:
            self._discard(stored)
            raise

        logger.info("added %d documents to update %s", len(descriptors), update.update_id)
        return self.compose([self._updates.get_by_id(update.update_id)])[0]

    def list_updates(
        self,
        *,
        actor: Actor,
        project_id: Optional[int] = None,
        posted_by: Optional[int] = None,
        update_type: Optional[UpdateType] = None,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
    ) -> List[UpdateView]:
        scope = self._visibility.scope_for(actor)
        if project_id is not None and not scope.allows(project_id):
            raise NotFoundError("Project")
        updates = self._updates.list_updates(
            project_id=project_id,
            posted_by=posted_by,
            update_type=update_type,
            start_date=start_date,
            end_date=end_date,
            filter_ids=scope.filter_ids,
        )
        return self.compose(updates)

    def get_update(self, *, actor: Actor, update_id: int) -> UpdateView:
        return self.compose([self._get_visible(actor, update_id)])[0]

    def compose(self, updates: Sequence[Update]) -> List[UpdateView]:
        user_ids = set()
        for u in updates:
            user_ids.add(u.posted_by)
            if u.contractor_id:
                user_ids.add(u.contractor_id)
        users = self._users.get_many(user_ids)
        projects = self._projects.get_many({u.project_id for u in updates})
        return [UpdateView.compose(u, projects, users) for u in updates]

    def _get_visible(self, actor: Actor, update_id: int) -> Update:
        update = self._updates.get_by_id(update_id)
        if not update or not self._visibility.scope_for(actor).allows(update.project_id):
            raise NotFoundError("Update")
        return update

    def _check_can_post(self, actor: Actor, project: Project) -> None:
        if actor.role not in POSTER_ROLES:
            raise AuthorizationError("Only contractors and team members can post updates")
        if project.contractor_id == actor.user_id:
            return
        if not self._teams.is_project_member(project.project_id, actor.user_id):
            raise AuthorizationError("Only the project's contractor or team members can post updates")

    def _store_files(self, files, metadata, actor: Actor, *, folder: str) -> List[StoredFile]:
        stored: List[StoredFile] = []
        try:
            for upload, meta in zip(files, metadata):
                stored.append(self._storage.save(upload, folder=folder, file_name=meta.file_name))
        except Exception:
            self._discard(stored)
            raise
        return stored

    def _discard(self, stored: Sequence[StoredFile]) -> None:
        for s in stored:
            self._storage.delete(s.key)
            logger.info("discarded orphaned attachment %s", s.key)


def stored_descriptors(stored: Sequence[StoredFile], metadata, actor: Actor) -> List[AttachmentDescriptor]:
    return [
        AttachmentDescriptor(
            doc_type=meta.doc_type,
            file_name=s.file_name,
            file_path=s.url,
            uploaded_by=actor.user_id,
            file_size=s.file_size,
            mime_type=s.mime_type,
            description=meta.description,
        )
        for s, meta in zip(stored, metadata)
    ]


def _check_file_count(files: Sequence[UploadedFile]) -> None:
    if len(files) > MAX_FILES_PER_REQUEST:
        raise ValidationError(f"At most {MAX_FILES_PER_REQUEST} files can be uploaded at once")
