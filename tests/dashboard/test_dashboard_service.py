from __future__ import annotations

from datetime import date, datetime

import pytest

from src.buildtrack.buildtrack.core.enums import DocumentType, ProjectStatus, Role, UpdateType
from src.buildtrack.buildtrack.core.exceptions import AuthorizationError, ValidationError
from src.buildtrack.buildtrack.dashboard.service import NO_IMAGE_URL, DashboardService
from src.buildtrack.buildtrack.updates.model import AttachmentDescriptor, NewUpdate
from tests.fakes import World


@pytest.fixture()
def world():
    w = World()
    w.admin = w.users.add("Ada Admin", Role.ADMIN)
    w.carl = w.users.add("Carl Contractor", Role.CONTRACTOR)
    w.olga = w.users.add("Olga Other", Role.CONTRACTOR)
    w.site = w.project(w.admin, contractor=w.carl)
    w.dock = w.project(w.admin, contractor=w.olga, status=ProjectStatus.PLANNING, name="Dock")
    w.svc = DashboardService(w.projects, w.updates, w.requests, w.users, clock=lambda: datetime(2026, 3, 2, 23, 0))
    return w


def _update(world, day, kind, *, documents=()):
    return world.updates.create_update(
        NewUpdate(
            project_id=world.site.project_id,
            contractor_id=world.carl.user_id,
            posted_by=world.carl.user_id,
            update_type=kind,
            update_date=day,
            timestamp=datetime(day.year, day.month, day.day, 8 if kind == UpdateType.MORNING else 17),
            status="ok",
            description="Framing",
            documents=documents,
        )
    )


def test_stats(world):
    _update(world, date(2026, 3, 2), UpdateType.MORNING)
    _update(world, date(2026, 3, 2), UpdateType.EVENING)
    _update(world, date(2026, 3, 1), UpdateType.MORNING)
    world.pending_request(world.site, world.carl)

    stats = world.svc.stats(actor=world.actor(world.admin))

    assert stats.total_projects == 2
    assert stats.updates_today == 2
    assert stats.active_contractors == 1
    assert stats.pending_requests == 1


def test_recent_updates_newest_first_with_names(world):
    photo = AttachmentDescriptor(
        doc_type=DocumentType.STATUS, file_name="a.jpg", file_path="/uploads/a.jpg", uploaded_by=world.carl.user_id
    )
    _update(world, date(2026, 3, 1), UpdateType.MORNING)
    _update(world, date(2026, 3, 2), UpdateType.MORNING, documents=(photo,))

    recent = world.svc.recent_updates(actor=world.actor(world.admin), limit=1)

    assert len(recent) == 1
    assert recent[0].image_url == "/uploads/a.jpg"
    assert recent[0].project_name == "Harbor Bridge"
    assert recent[0].contractor_name == "Carl Contractor"

    older = world.svc.recent_updates(actor=world.actor(world.admin))[1]
    assert older.image_url == NO_IMAGE_URL


def test_dashboard_is_admin_only_and_limit_checked(world):
    with pytest.raises(AuthorizationError):
        world.svc.stats(actor=world.actor(world.carl))
    with pytest.raises(ValidationError):
        world.svc.recent_updates(actor=world.actor(world.admin), limit=500)
