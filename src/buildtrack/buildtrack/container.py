from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional, Union

from .access.scope import VisibilityResolver
from .attendance.mysql_attendance_repository import MySQLAttendanceRepository
from .attendance.repository import AttendanceRepository
from .attendance.service import AttendanceService
from .dashboard.service import DashboardService
from .database.connection import DBConfig, DatabaseConnection
from .documents.mysql_document_repository import MySQLDocumentRepository
from .documents.repository import DocumentRepository
from .documents.service import DocumentService
from .projects.mysql_project_repository import MySQLProjectRepository
from .projects.repository import ProjectRepository
from .projects.service import ProjectService
from .reports.mysql_report_repository import MySQLSavedReportRepository
from .reports.repository import SavedReportRepository
from .reports.service import ReportService
from .requests.mysql_request_repository import MySQLProjectRequestRepository
from .requests.repository import ProjectRequestRepository
from .requests.service import RequestService
from .storage.attachments import AttachmentStorage, LocalAttachmentStorage
from .teams.mysql_team_repository import MySQLTeamRepository
from .teams.repository import TeamRepository
from .teams.service import TeamService
from .updates.mysql_update_repository import MySQLUpdateRepository
from .updates.repository import UpdateRepository
from .updates.service import UpdateService
from .users.mysql_user_repository import MySQLUserRepository
from .users.repository import UserRepository
from .users.service import AuthService, UserService


@dataclass(frozen=True)
class Container:
    conn: Optional[DatabaseConnection]
    storage: AttachmentStorage
    visibility: VisibilityResolver

    users_repo: UserRepository
    projects_repo: ProjectRepository
    teams_repo: TeamRepository
    requests_repo: ProjectRequestRepository
    updates_repo: UpdateRepository
    attendance_repo: AttendanceRepository
    documents_repo: DocumentRepository
    reports_repo: SavedReportRepository

    auth_service: AuthService
    user_service: UserService
    project_service: ProjectService
    team_service: TeamService
    request_service: RequestService
    update_service: UpdateService
    attendance_service: AttendanceService
    document_service: DocumentService
    report_service: ReportService
    dashboard_service: DashboardService


def wire(
    *,
    users_repo: UserRepository,
    projects_repo: ProjectRepository,
    teams_repo: TeamRepository,
    requests_repo: ProjectRequestRepository,
    updates_repo: UpdateRepository,
    attendance_repo: AttendanceRepository,
    documents_repo: DocumentRepository,
    reports_repo: SavedReportRepository,
    storage: AttachmentStorage,
    conn: Optional[DatabaseConnection] = None,
) -> Container:
    """Build every service on top of the given repositories.

    With ``conn`` the multi-step writes run inside its transactions;
    without it (in-memory repositories) they run unwrapped.
    """

    unit_of_work = {"unit_of_work": conn.transaction} if conn is not None else {}

    visibility = VisibilityResolver(projects_repo, teams_repo)
    project_service = ProjectService(projects_repo, users_repo, requests_repo, visibility)
    attendance_service = AttendanceService(attendance_repo, users_repo, projects_repo, updates_repo, visibility)
    document_service = DocumentService(documents_repo, projects_repo, users_repo, storage, visibility)

    return Container(
        conn=conn,
        storage=storage,
        visibility=visibility,
        users_repo=users_repo,
        projects_repo=projects_repo,
        teams_repo=teams_repo,
        requests_repo=requests_repo,
        updates_repo=updates_repo,
        attendance_repo=attendance_repo,
        documents_repo=documents_repo,
        reports_repo=reports_repo,
        auth_service=AuthService(users_repo),
        user_service=UserService(users_repo),
        project_service=project_service,
        team_service=TeamService(teams_repo, projects_repo, users_repo, **unit_of_work),
        request_service=RequestService(requests_repo, projects_repo, users_repo, visibility, **unit_of_work),
        update_service=UpdateService(
            updates_repo,
            projects_repo,
            teams_repo,
            users_repo,
            attendance_service,
            storage,
            visibility,
            **unit_of_work,
        ),
        attendance_service=attendance_service,
        document_service=document_service,
        report_service=ReportService(
            projects_repo,
            teams_repo,
            updates_repo,
            users_repo,
            documents_repo,
            attendance_repo,
            reports_repo,
            project_service,
            document_service,
        ),
        dashboard_service=DashboardService(projects_repo, updates_repo, requests_repo, users_repo),
    )


def build_container(*, db_config: dict, upload_folder: Union[str, os.PathLike]) -> Container:
    config = DBConfig(
        host=str(db_config["host"]),
        port=int(db_config.get("port", 3306)),
        user=str(db_config["user"]),
        password=str(db_config["password"]),
        database=str(db_config["database"]),
    )
    conn = DatabaseConnection.get_instance(config)

    return wire(
        users_repo=MySQLUserRepository(conn),
        projects_repo=MySQLProjectRepository(conn),
        teams_repo=MySQLTeamRepository(conn),
        requests_repo=MySQLProjectRequestRepository(conn),
        updates_repo=MySQLUpdateRepository(conn),
        attendance_repo=MySQLAttendanceRepository(conn),
        documents_repo=MySQLDocumentRepository(conn),
        reports_repo=MySQLSavedReportRepository(conn),
        storage=LocalAttachmentStorage(upload_folder),
        conn=conn,
    )
