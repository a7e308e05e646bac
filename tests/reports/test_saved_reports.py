from __future__ import annotations

from datetime import date

import pytest

from src.buildtrack.buildtrack.core.enums import ReportType, Role
from src.buildtrack.buildtrack.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import World


@pytest.fixture()
def world():
    w = World()
    w.admin = w.users.add("Ada Admin", Role.ADMIN)
    w.accounts = w.users.add("Alex Accounts", Role.ACCOUNTS)
    w.auditor = w.users.add("Abe Auditor", Role.ACCOUNTS)
    w.contractor = w.users.add("Carl Contractor", Role.CONTRACTOR)
    w.site = w.project(w.admin, contractor=w.contractor, start_date=date(2026, 3, 1), budget=5000.0)
    w.svc = w.container.report_service
    return w


def test_generate_project_report_keeps_a_snapshot(world):
    report = world.svc.generate_report(
        actor=world.actor(world.accounts),
        report_type="financial",
        title="March costs",
        project_id=str(world.site.project_id),
        description="  month end  ",
    )

    assert report.report_type == ReportType.FINANCIAL
    assert report.project.name == "Harbor Bridge"
    assert report.generator.name == "Alex Accounts"
    assert report.description == "month end"
    assert report.data["reportType"] == "financial"
    assert report.data["project"]["projectId"] == world.site.project_id

    # The snapshot does not follow later changes to the project.
    world.projects.set_end_date(world.site.project_id, date(2026, 6, 30))
    again = world.svc.get_report(actor=world.actor(world.admin), report_id=report.report_id)
    assert again.data["project"]["endDate"] is None


def test_generate_without_project_snapshots_the_overview(world):
    report = world.svc.generate_report(actor=world.actor(world.admin), report_type="summary", title="All sites")

    assert report.project_id is None
    assert report.project is None
    assert report.data["totalProjects"] == 1
    assert report.data["totalBudget"] == 5000.0


def test_generate_validation_and_roles(world):
    accounts = world.actor(world.accounts)

    with pytest.raises(ValidationError, match="Report type and title are required"):
        world.svc.generate_report(actor=accounts, report_type="summary", title="")
    with pytest.raises(ValidationError, match="Report type and title are required"):
        world.svc.generate_report(actor=accounts, report_type=None, title="Untyped")
    with pytest.raises(ValidationError):
        world.svc.generate_report(actor=accounts, report_type="weekly", title="Bad type")
    with pytest.raises(NotFoundError):
        world.svc.generate_report(actor=accounts, report_type="progress", title="Ghost", project_id=999)
    with pytest.raises(AuthorizationError):
        world.svc.generate_report(actor=world.actor(world.contractor), report_type="summary", title="Mine")
    assert world.reports.reports == {}


def test_list_filters_newest_first(world):
    accounts = world.actor(world.accounts)
    first = world.svc.generate_report(
        actor=accounts, report_type="progress", title="Week 1", project_id=world.site.project_id
    )
    overview = world.svc.generate_report(actor=accounts, report_type="summary", title="All sites")
    second = world.svc.generate_report(
        actor=accounts, report_type="progress", title="Week 2", project_id=world.site.project_id
    )

    listed = world.svc.list_reports(actor=world.actor(world.admin))
    assert [r.report_id for r in listed] == [second.report_id, overview.report_id, first.report_id]

    progress = world.svc.list_reports(actor=accounts, project_id=world.site.project_id, report_type="progress")
    assert [r.title for r in progress] == ["Week 2", "Week 1"]

    with pytest.raises(AuthorizationError):
        world.svc.list_reports(actor=world.actor(world.contractor))


def test_only_author_or_admin_may_change_a_report(world):
    report = world.svc.generate_report(actor=world.actor(world.accounts), report_type="summary", title="Draft")

    with pytest.raises(AuthorizationError, match="update your own reports"):
        world.svc.update_report(actor=world.actor(world.auditor), report_id=report.report_id, title="Hijacked")
    with pytest.raises(AuthorizationError, match="delete your own reports"):
        world.svc.delete_report(actor=world.actor(world.auditor), report_id=report.report_id)

    renamed = world.svc.update_report(actor=world.actor(world.accounts), report_id=report.report_id, title="Final")
    assert renamed.title == "Final"
    assert renamed.data == report.data

    world.svc.delete_report(actor=world.actor(world.admin), report_id=report.report_id)
    with pytest.raises(NotFoundError, match="Report not found"):
        world.svc.get_report(actor=world.actor(world.accounts), report_id=report.report_id)


def test_report_keeps_author_fields_on_partial_update(world):
    report = world.svc.generate_report(
        actor=world.actor(world.accounts),
        report_type="summary",
        title="Quarter",
        description="Q1",
        file_path="https://files.example.com/q1.pdf",
    )

    updated = world.svc.update_report(actor=world.actor(world.admin), report_id=report.report_id, description="")

    assert updated.title == "Quarter"
    assert updated.description is None
    assert updated.file_path == "https://files.example.com/q1.pdf"
