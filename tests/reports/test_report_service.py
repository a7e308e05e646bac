from __future__ import annotations

from datetime import date, datetime

import pytest

from src.buildtrack.buildtrack.core.enums import DocumentType, ReportType, Role, UpdateType
from src.buildtrack.buildtrack.core.exceptions import AuthorizationError, ValidationError
from src.buildtrack.buildtrack.updates.model import NewUpdate
from tests.fakes import World


@pytest.fixture()
def world():
    w = World()
    w.admin = w.users.add("Ada Admin", Role.ADMIN)
    w.accounts = w.users.add("Alex Accounts", Role.ACCOUNTS)
    w.contractor = w.users.add("Carl Contractor", Role.CONTRACTOR)
    w.mia = w.users.add("Mia Member", Role.MEMBER)
    w.site = w.project(
        w.admin, contractor=w.contractor, start_date=date(2026, 3, 1), end_date=date(2026, 3, 31), budget=5000.0
    )
    w.team(w.site, w.contractor, [w.mia])
    w.svc = w.container.report_service
    return w


def _update(world, user, day: date, kind: UpdateType, hour: int):
    return world.updates.create_update(
        NewUpdate(
            project_id=world.site.project_id,
            contractor_id=world.contractor.user_id,
            posted_by=user.user_id,
            update_type=kind,
            update_date=day,
            timestamp=datetime(day.year, day.month, day.day, hour),
            status="ok",
            description=None,
            documents=(),
        )
    )


def test_grid_covers_every_day_and_member(world):
    morning = _update(world, world.mia, date(2026, 3, 2), UpdateType.MORNING, 8)
    _update(world, world.contractor, date(2026, 3, 3), UpdateType.EVENING, 17)

    grid = world.svc.attendance_grid(
        actor=world.actor(world.admin), project_id=world.site.project_id, start_date="2026-03-02", end_date="2026-03-04"
    )

    assert [d.day for d in grid.days] == [date(2026, 3, 2), date(2026, 3, 3), date(2026, 3, 4)]
    assert [m.name for m in grid.members] == ["Carl Contractor", "Mia Member"]
    assert all(len(d.cells) == 2 for d in grid.days)

    mia_day1 = grid.days[0].cell_for(world.mia.user_id)
    assert mia_day1.morning.update_id == morning
    assert mia_day1.evening is None
    assert grid.days[1].cell_for(world.contractor.user_id).evening is not None
    assert grid.days[2].cell_for(world.mia.user_id).morning is None


def test_grid_includes_posters_who_left_the_team(world):
    former = world.users.add("Fay Former", Role.MEMBER)
    _update(world, former, date(2026, 3, 5), UpdateType.MORNING, 9)

    grid = world.svc.attendance_grid(
        actor=world.actor(world.admin), project_id=world.site.project_id, start_date="2026-03-05", end_date="2026-03-05"
    )

    assert former.user_id in {m.user_id for m in grid.members}


def test_grid_range_validation(world):
    actor = world.actor(world.admin)
    pid = world.site.project_id

    with pytest.raises(ValidationError, match="on or before"):
        world.svc.attendance_grid(actor=actor, project_id=pid, start_date="2026-03-10", end_date="2026-03-01")
    with pytest.raises(ValidationError, match="project start date"):
        world.svc.attendance_grid(actor=actor, project_id=pid, start_date="2026-02-27", end_date="2026-03-01")
    with pytest.raises(ValidationError, match="project end date"):
        world.svc.attendance_grid(actor=actor, project_id=pid, start_date="2026-03-30", end_date="2026-04-02")
    with pytest.raises(ValidationError, match="required"):
        world.svc.attendance_grid(actor=actor, project_id=pid, start_date=None, end_date="2026-03-02")


def test_grid_is_admin_only(world):
    with pytest.raises(AuthorizationError):
        world.svc.attendance_grid(
            actor=world.actor(world.accounts),
            project_id=world.site.project_id,
            start_date="2026-03-02",
            end_date="2026-03-02",
        )


def test_financial_report_lists_requirement_and_other_documents(world):
    for doc_type in (DocumentType.REQUIREMENT, DocumentType.STATUS, DocumentType.OTHER):
        world.documents.create_document(
            project_id=world.site.project_id,
            uploaded_by=world.admin.user_id,
            doc_type=doc_type,
            file_name=f"{doc_type.value}.pdf",
            file_path=f"/files/{doc_type.value}.pdf",
        )

    report = world.svc.project_report(
        actor=world.actor(world.accounts), project_id=world.site.project_id, report_type="financial"
    )

    assert report.report_type == ReportType.FINANCIAL
    assert {d.doc_type for d in report.documents} == {DocumentType.REQUIREMENT, DocumentType.OTHER}
    assert report.total_documents == 3
    assert report.project.budget == 5000.0


def test_overview_counts_projects_by_status(world):
    world.project(world.admin, name="Dock")

    overview = world.svc.overview(actor=world.actor(world.accounts))

    counts = {c.key: c.count for c in overview.projects_by_status}
    assert overview.total_projects == 2
    assert counts["in_progress"] == 2
    assert counts["completed"] == 0
    assert overview.total_budget == 5000.0
    with pytest.raises(AuthorizationError):
        world.svc.overview(actor=world.actor(world.mia))
