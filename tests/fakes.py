"""In-memory repositories and storage used across the test suite.

They keep the same uniqueness rules the MySQL schema enforces, so the
services see the same ConflictErrors they would against a real database.
"""

from __future__ import annotations

import dataclasses
from datetime import date, datetime
from typing import Collection, Iterable, Optional

from werkzeug.security import generate_password_hash

from src.buildtrack.buildtrack.attendance.deriver import DayMark, apply_mark
from src.buildtrack.buildtrack.attendance.model import Attendance
from src.buildtrack.buildtrack.container import Container, wire
from src.buildtrack.buildtrack.core.actor import Actor
from src.buildtrack.buildtrack.core.enums import DocumentType, ProjectStatus, RequestType, Role
from src.buildtrack.buildtrack.core.exceptions import ConflictError
from src.buildtrack.buildtrack.documents.model import Document
from src.buildtrack.buildtrack.projects.model import Project
from src.buildtrack.buildtrack.reports.model import SavedReport
from src.buildtrack.buildtrack.requests.model import ProjectRequest
from src.buildtrack.buildtrack.storage.attachments import StoredFile, UploadedFile
from src.buildtrack.buildtrack.teams.model import Team
from src.buildtrack.buildtrack.updates.model import Update, UpdateDocument
from src.buildtrack.buildtrack.users.model import User
from src.buildtrack.buildtrack.users.repository import USER_IN_USE_MESSAGE

NOW = datetime(2026, 3, 2, 9, 0, 0)


def _page(items, page):
    return items[page.offset : page.offset + page.limit], len(items)


def _in_scope(project_id: int, filter_ids: Optional[Collection[int]]) -> bool:
    return filter_ids is None or project_id in filter_ids


class InMemoryUsers:
    def __init__(self):
        self.users: dict[int, User] = {}
        self._next_id = 1
        # Stands in for the RESTRICT foreign keys; World points it at the other stores.
        self.is_referenced = lambda user_id: False

    def add(self, name: str, role: Role, *, password: str = "secret123", is_active: bool = True) -> User:
        user_id = self.create_user(
            email=f"{name.lower().replace(' ', '.')}@example.com",
            password_hash=generate_password_hash(password),
            name=name,
            role=role,
        )
        if not is_active:
            self.users[user_id] = dataclasses.replace(self.users[user_id], is_active=False)
        return self.users[user_id]

    def get_by_id(self, user_id):
        return self.users.get(int(user_id))

    def get_by_email(self, email):
        return next((u for u in self.users.values() if u.email == email), None)

    def get_many(self, user_ids):
        return {i: self.users[i] for i in user_ids if i in self.users}

    def list_users(self, *, role=None, is_active=None, page):
        items = [
            u
            for u in self.users.values()
            if (role is None or u.role == role) and (is_active is None or u.is_active == is_active)
        ]
        return _page(items, page)

    def create_user(self, *, email, password_hash, name, role, phone=None):
        if self.get_by_email(email):
            raise ConflictError("User with this email already exists")
        user_id = self._next_id
        self._next_id += 1
        self.users[user_id] = User(
            user_id=user_id,
            email=email,
            password_hash=password_hash,
            name=name,
            role=role,
            phone=phone,
            created_at=NOW,
        )
        return user_id

    def update_user(self, user_id, *, name, phone, role, is_active):
        self.users[user_id] = dataclasses.replace(
            self.users[user_id], name=name, phone=phone, role=role, is_active=is_active
        )

    def set_password_hash(self, user_id, password_hash):
        if user_id not in self.users:
            return False
        self.users[user_id] = dataclasses.replace(self.users[user_id], password_hash=password_hash)
        return True

    def delete_by_id(self, user_id):
        if user_id in self.users and self.is_referenced(user_id):
            raise ConflictError(USER_IN_USE_MESSAGE)
        return self.users.pop(user_id, None) is not None


class InMemoryProjects:
    def __init__(self):
        self.projects: dict[int, Project] = {}
        self._next_id = 1
        self.fail_writes = False

    def get_by_id(self, project_id):
        return self.projects.get(int(project_id))

    def get_many(self, project_ids):
        return {i: self.projects[i] for i in project_ids if i in self.projects}

    def list_projects(self, *, status=None, contractor_id=None, admin_id=None, filter_ids=None, page):
        items = [
            p
            for p in self.projects.values()
            if (status is None or p.status == status)
            and (contractor_id is None or p.contractor_id == contractor_id)
            and (admin_id is None or p.admin_id == admin_id)
            and _in_scope(p.project_id, filter_ids)
        ]
        return _page(items, page)

    def list_all(self, *, filter_ids=None):
        return [p for p in self.projects.values() if _in_scope(p.project_id, filter_ids)]

    def ids_for_contractor(self, contractor_id):
        return {p.project_id for p in self.projects.values() if p.contractor_id == contractor_id}

    def create_project(self, *, name, description, admin_id, contractor_id, status, start_date, end_date, budget, location):
        project_id = self._next_id
        self._next_id += 1
        self.projects[project_id] = Project(
            project_id=project_id,
            name=name,
            description=description,
            admin_id=admin_id,
            contractor_id=contractor_id,
            status=status,
            start_date=start_date,
            end_date=end_date,
            budget=budget,
            location=location,
            created_at=NOW,
        )
        return project_id

    def _replace(self, project_id, **changes):
        if self.fail_writes:
            raise RuntimeError("project store unavailable")
        if project_id not in self.projects:
            return False
        self.projects[project_id] = dataclasses.replace(self.projects[project_id], **changes)
        return True

    def update_project(self, project):
        if self.fail_writes:
            raise RuntimeError("project store unavailable")
        if project.project_id not in self.projects:
            return False
        self.projects[project.project_id] = project
        return True

    def set_status(self, project_id, status):
        return self._replace(project_id, status=status)

    def set_end_date(self, project_id, end_date):
        return self._replace(project_id, end_date=end_date)

    def set_contractor(self, project_id, contractor_id):
        return self._replace(project_id, contractor_id=contractor_id)

    def delete_by_id(self, project_id):
        return self.projects.pop(project_id, None) is not None

    def count_by_status(self):
        counts = {s: 0 for s in ProjectStatus}
        for p in self.projects.values():
            counts[p.status] += 1
        return counts

    def count_active_contractors(self):
        return len(
            {
                p.contractor_id
                for p in self.projects.values()
                if p.status == ProjectStatus.IN_PROGRESS and p.contractor_id
            }
        )


class InMemoryTeams:
    def __init__(self):
        self.teams: dict[int, Team] = {}
        self._next_id = 1

    def get_by_id(self, team_id):
        return self.teams.get(int(team_id))

    def list_teams(self, *, project_id=None, contractor_id=None, member_id=None):
        return [
            t
            for t in self.teams.values()
            if (project_id is None or t.project_id == project_id)
            and (contractor_id is None or t.contractor_id == contractor_id)
            and (member_id is None or member_id in t.member_ids)
        ]

    def project_ids_for_member(self, user_id):
        return {t.project_id for t in self.teams.values() if user_id in t.member_ids}

    def member_ids_for_project(self, project_id):
        ids: set[int] = set()
        for t in self.teams.values():
            if t.project_id == project_id:
                ids.update(t.member_ids)
        return ids

    def is_project_member(self, project_id, user_id):
        return user_id in self.member_ids_for_project(project_id)

    def create_team(self, *, project_id, contractor_id, team_name, created_by):
        team_id = self._next_id
        self._next_id += 1
        self.teams[team_id] = Team(
            team_id=team_id,
            project_id=project_id,
            contractor_id=contractor_id,
            team_name=team_name,
            created_by=created_by,
            created_at=NOW,
        )
        return team_id

    def rename(self, team_id, team_name):
        if team_id not in self.teams:
            return False
        self.teams[team_id] = dataclasses.replace(self.teams[team_id], team_name=team_name)
        return True

    def add_members(self, team_id, project_id, user_ids):
        team = self.teams[team_id]
        members = list(team.member_ids)
        for user_id in user_ids:
            if user_id in members:
                raise ConflictError(f"User {user_id} is already a member of this team")
            members.append(user_id)
        self.teams[team_id] = dataclasses.replace(team, member_ids=tuple(members))

    def replace_members(self, team_id, project_id, user_ids):
        self.teams[team_id] = dataclasses.replace(self.teams[team_id], member_ids=tuple(user_ids))

    def remove_member(self, team_id, user_id):
        team = self.teams.get(team_id)
        if not team or user_id not in team.member_ids:
            return False
        self.teams[team_id] = dataclasses.replace(
            team, member_ids=tuple(m for m in team.member_ids if m != user_id)
        )
        return True

    def delete_by_id(self, team_id):
        return self.teams.pop(team_id, None) is not None


class InMemoryRequests:
    def __init__(self):
        self.requests: dict[int, ProjectRequest] = {}
        self._next_id = 1

    def get_by_id(self, request_id):
        return self.requests.get(int(request_id))

    def list_requests(
        self, *, project_id=None, status=None, request_type=None, requested_by=None, filter_ids=None, page
    ):
        items = [
            r
            for r in self.requests.values()
            if (project_id is None or r.project_id == project_id)
            and (status is None or r.status == status)
            and (request_type is None or r.request_type == request_type)
            and (requested_by is None or r.requested_by == requested_by)
            and _in_scope(r.project_id, filter_ids)
        ]
        return _page(items, page)

    def has_pending(self, project_id, request_type=None):
        return any(
            r.project_id == project_id
            and r.is_pending
            and (request_type is None or r.request_type == request_type)
            for r in self.requests.values()
        )

    def count_pending(self):
        return sum(1 for r in self.requests.values() if r.is_pending)

    def create_request(self, *, project_id, requested_by, request_type, requested_end_date=None, reason=None):
        if self.has_pending(project_id, request_type):
            raise ConflictError(f"A pending {request_type.value} request already exists for this project")
        request_id = self._next_id
        self._next_id += 1
        self.requests[request_id] = ProjectRequest(
            request_id=request_id,
            project_id=project_id,
            requested_by=requested_by,
            request_type=request_type,
            requested_end_date=requested_end_date,
            reason=reason,
            created_at=NOW,
        )
        return request_id

    def decide(self, request_id, *, status, reviewed_by, reviewed_at, admin_notes=None, approved_end_date=None):
        req = self.requests.get(request_id)
        if not req or not req.is_pending:
            return False
        self.requests[request_id] = dataclasses.replace(
            req,
            status=status,
            reviewed_by=reviewed_by,
            reviewed_at=reviewed_at,
            admin_notes=admin_notes,
            approved_end_date=approved_end_date,
        )
        return True

    def delete_pending(self, request_id):
        req = self.requests.get(request_id)
        if not req or not req.is_pending:
            return False
        del self.requests[request_id]
        return True


class InMemoryUpdates:
    def __init__(self):
        self.updates: dict[int, Update] = {}
        self._next_id = 1
        self._next_doc_id = 1

    def _documents(self, descriptors, start: int):
        docs = []
        for position, d in enumerate(descriptors, start=start):
            docs.append(
                UpdateDocument(
                    document_id=self._next_doc_id,
                    position=position,
                    doc_type=d.doc_type,
                    file_name=d.file_name,
                    file_path=d.file_path,
                    uploaded_by=d.uploaded_by,
                    file_size=d.file_size,
                    mime_type=d.mime_type,
                    description=d.description,
                )
            )
            self._next_doc_id += 1
        return tuple(docs)

    def get_by_id(self, update_id):
        return self.updates.get(int(update_id))

    def get_many(self, update_ids):
        return {i: self.updates[i] for i in update_ids if i in self.updates}

    def list_updates(
        self,
        *,
        project_id=None,
        posted_by=None,
        update_type=None,
        start_date=None,
        end_date=None,
        filter_ids=None,
        limit=None,
    ):
        items = [
            u
            for u in self.updates.values()
            if (project_id is None or u.project_id == project_id)
            and (posted_by is None or u.posted_by == posted_by)
            and (update_type is None or u.update_type == update_type)
            and (start_date is None or u.update_date >= start_date)
            and (end_date is None or u.update_date <= end_date)
            and _in_scope(u.project_id, filter_ids)
        ]
        items.sort(key=lambda u: (u.update_date, u.timestamp), reverse=True)
        return items[:limit] if limit else items

    def poster_ids_for_project(self, project_id):
        return {u.posted_by for u in self.updates.values() if u.project_id == project_id}

    def count_for_day(self, day):
        return sum(1 for u in self.updates.values() if u.update_date == day)

    def create_update(self, new):
        key = (new.posted_by, new.project_id, new.update_date, new.update_type)
        for u in self.updates.values():
            if (u.posted_by, u.project_id, u.update_date, u.update_type) == key:
                raise ConflictError("An update of this type has already been posted for this project today")
        update_id = self._next_id
        self._next_id += 1
        self.updates[update_id] = Update(
            update_id=update_id,
            project_id=new.project_id,
            contractor_id=new.contractor_id,
            posted_by=new.posted_by,
            update_type=new.update_type,
            update_date=new.update_date,
            timestamp=new.timestamp,
            status=new.status,
            description=new.description,
            documents=self._documents(new.documents, 1),
            created_at=NOW,
        )
        return update_id

    def add_documents(self, update_id, documents):
        update = self.updates[update_id]
        added = self._documents(documents, len(update.documents) + 1)
        self.updates[update_id] = dataclasses.replace(update, documents=update.documents + added)


class InMemoryAttendance:
    def __init__(self):
        self.records: dict[tuple[int, int, date], Attendance] = {}
        self._next_id = 1

    def upsert_mark(self, mark: DayMark) -> Attendance:
        current = self.records.get(mark.key)
        if current is None:
            record = apply_mark(None, mark, attendance_id=self._next_id)
            self._next_id += 1
        else:
            record = apply_mark(current, mark)
        self.records[mark.key] = record
        return record

    def get_for(self, user_id, project_id, work_date):
        return self.records.get((user_id, project_id, work_date))

    def list_attendance(self, *, user_id=None, project_id=None, start_date=None, end_date=None, filter_ids=None):
        items = [
            a
            for a in self.records.values()
            if (user_id is None or a.user_id == user_id)
            and (project_id is None or a.project_id == project_id)
            and (start_date is None or a.work_date >= start_date)
            and (end_date is None or a.work_date <= end_date)
            and _in_scope(a.project_id, filter_ids)
        ]
        items.sort(key=lambda a: (-a.work_date.toordinal(), a.user_id))
        return items


class InMemoryDocuments:
    def __init__(self):
        self.documents: dict[int, Document] = {}
        self._next_id = 1

    def get_by_id(self, document_id):
        return self.documents.get(int(document_id))

    def list_documents(self, *, project_id=None, doc_type=None, uploaded_by=None, filter_ids=None):
        return [
            d
            for d in self.documents.values()
            if (project_id is None or d.project_id == project_id)
            and (doc_type is None or d.doc_type == doc_type)
            and (uploaded_by is None or d.uploaded_by == uploaded_by)
            and _in_scope(d.project_id, filter_ids)
        ]

    def create_document(
        self,
        *,
        project_id,
        uploaded_by,
        doc_type,
        file_name,
        file_path,
        file_size=None,
        mime_type=None,
        description=None,
    ):
        document_id = self._next_id
        self._next_id += 1
        self.documents[document_id] = Document(
            document_id=document_id,
            project_id=project_id,
            uploaded_by=uploaded_by,
            doc_type=doc_type,
            file_name=file_name,
            file_path=file_path,
            file_size=file_size,
            mime_type=mime_type,
            description=description,
            created_at=NOW,
        )
        return document_id

    def update_document(self, document_id, *, file_name, description):
        if document_id not in self.documents:
            return False
        self.documents[document_id] = dataclasses.replace(
            self.documents[document_id], file_name=file_name, description=description
        )
        return True

    def delete_by_id(self, document_id):
        return self.documents.pop(document_id, None) is not None

    def count_by_type(self, *, project_id=None):
        counts = {t: 0 for t in DocumentType}
        for d in self.list_documents(project_id=project_id):
            counts[d.doc_type] += 1
        return counts


class InMemoryReports:
    def __init__(self):
        self.reports: dict[int, SavedReport] = {}
        self._next_id = 1

    def get_by_id(self, report_id):
        return self.reports.get(int(report_id))

    def list_reports(self, *, project_id=None, report_type=None):
        items = [
            r
            for r in self.reports.values()
            if (project_id is None or r.project_id == project_id)
            and (report_type is None or r.report_type == report_type)
        ]
        return sorted(items, key=lambda r: r.report_id, reverse=True)

    def create_report(self, *, project_id, generated_by, report_type, title, data, description=None, file_path=None):
        report_id = self._next_id
        self._next_id += 1
        self.reports[report_id] = SavedReport(
            report_id=report_id,
            project_id=project_id,
            generated_by=generated_by,
            report_type=report_type,
            title=title,
            data=data,
            description=description,
            file_path=file_path,
            created_at=NOW,
            updated_at=NOW,
        )
        return report_id

    def update_report(self, report_id, *, title, description, file_path):
        if report_id not in self.reports:
            return False
        self.reports[report_id] = dataclasses.replace(
            self.reports[report_id], title=title, description=description, file_path=file_path
        )
        return True

    def delete_by_id(self, report_id):
        return self.reports.pop(report_id, None) is not None


class InMemoryStorage:
    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.deleted: list[str] = []

    def save(self, upload: UploadedFile, *, folder: str, file_name: Optional[str] = None) -> StoredFile:
        name = file_name or upload.file_name
        key = f"{folder}/{len(self.files) + 1}_{name}"
        self.files[key] = upload.data
        return StoredFile(key=key, url=f"/uploads/{key}", file_name=name, file_size=upload.size, mime_type=upload.mime_type)

    def delete(self, key: str) -> bool:
        self.deleted.append(key)
        return self.files.pop(key, None) is not None

    def key_from_url(self, url: str) -> Optional[str]:
        return url[len("/uploads/") :] if url and url.startswith("/uploads/") else None


class World:
    """A wired container over in-memory repositories, plus seeding helpers."""

    def __init__(self):
        self.users = InMemoryUsers()
        self.projects = InMemoryProjects()
        self.teams = InMemoryTeams()
        self.requests = InMemoryRequests()
        self.updates = InMemoryUpdates()
        self.attendance = InMemoryAttendance()
        self.documents = InMemoryDocuments()
        self.reports = InMemoryReports()
        self.storage = InMemoryStorage()
        self.users.is_referenced = self._user_is_referenced
        self.container: Container = wire(
            users_repo=self.users,
            projects_repo=self.projects,
            teams_repo=self.teams,
            requests_repo=self.requests,
            updates_repo=self.updates,
            attendance_repo=self.attendance,
            documents_repo=self.documents,
            reports_repo=self.reports,
            storage=self.storage,
        )

    def _user_is_referenced(self, user_id: int) -> bool:
        return (
            any(p.admin_id == user_id for p in self.projects.projects.values())
            or any(user_id in (t.contractor_id, t.created_by) for t in self.teams.teams.values())
            or any(u.posted_by == user_id for u in self.updates.updates.values())
            or any(r.requested_by == user_id for r in self.requests.requests.values())
            or any(d.uploaded_by == user_id for d in self.documents.documents.values())
            or any(r.generated_by == user_id for r in self.reports.reports.values())
        )

    @staticmethod
    def actor(user: User) -> Actor:
        return Actor(user_id=user.user_id, role=user.role)

    def project(
        self,
        admin: User,
        *,
        contractor: Optional[User] = None,
        status: ProjectStatus = ProjectStatus.IN_PROGRESS,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        name: str = "Harbor Bridge",
        budget: Optional[float] = None,
    ) -> Project:
        project_id = self.projects.create_project(
            name=name,
            description=f"{name} works",
            admin_id=admin.user_id,
            contractor_id=contractor.user_id if contractor else None,
            status=status,
            start_date=start_date,
            end_date=end_date,
            budget=budget,
            location=None,
        )
        return self.projects.get_by_id(project_id)

    def team(self, project: Project, contractor: User, members: Iterable[User], *, name: str = "Crew A") -> Team:
        team_id = self.teams.create_team(
            project_id=project.project_id,
            contractor_id=contractor.user_id,
            team_name=name,
            created_by=project.admin_id,
        )
        self.teams.add_members(team_id, project.project_id, [m.user_id for m in members])
        return self.teams.get_by_id(team_id)

    def pending_request(self, project: Project, contractor: User, request_type: RequestType = RequestType.COMPLETION):
        request_id = self.requests.create_request(
            project_id=project.project_id,
            requested_by=contractor.user_id,
            request_type=request_type,
        )
        return self.requests.get_by_id(request_id)


def document_payload(name: str = "site.jpg") -> list[dict]:
    return [{"type": "status", "fileName": name, "filePath": f"https://files.example.com/{name}"}]
