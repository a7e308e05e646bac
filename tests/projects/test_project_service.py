from __future__ import annotations

from datetime import date

import pytest

from src.buildtrack.buildtrack.core.enums import ProjectStatus, Role
from src.buildtrack.buildtrack.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from tests.fakes import World


@pytest.fixture()
def world():
    w = World()
    w.admin = w.users.add("Ada Admin", Role.ADMIN)
    w.contractor = w.users.add("Carl Contractor", Role.CONTRACTOR)
    return w


def test_create_starts_in_planning_and_composes_people(world):
    view = world.container.project_service.create_project(
        actor=world.actor(world.admin),
        name="Harbor Bridge",
        description="Steel works",
        contractor_id=world.contractor.user_id,
        start_date="2026-03-01",
        end_date="2026-06-30",
        budget="125000",
    )

    assert view.status == ProjectStatus.PLANNING
    assert view.admin.name == "Ada Admin"
    assert view.contractor.user_id == world.contractor.user_id
    assert view.budget == 125000.0


def test_create_refuses_other_initial_status(world):
    with pytest.raises(ValidationError, match="start in planning"):
        world.container.project_service.create_project(
            actor=world.actor(world.admin), name="P", description="D", status="in_progress"
        )


def test_create_requires_admin(world):
    with pytest.raises(AuthorizationError):
        world.container.project_service.create_project(
            actor=world.actor(world.contractor), name="P", description="D"
        )


def test_create_rejects_inactive_or_non_contractor(world):
    member = world.users.add("Mia Member", Role.MEMBER)
    gone = world.users.add("Gus Gone", Role.CONTRACTOR, is_active=False)

    for user in (member, gone):
        with pytest.raises(ValidationError, match="Invalid contractor user"):
            world.container.project_service.create_project(
                actor=world.actor(world.admin), name="P", description="D", contractor_id=user.user_id
            )


def test_create_rejects_inverted_dates(world):
    with pytest.raises(ValidationError):
        world.container.project_service.create_project(
            actor=world.actor(world.admin),
            name="P",
            description="D",
            start_date="2026-06-01",
            end_date="2026-05-01",
        )


def test_status_moves_through_state_machine(world):
    project = world.project(world.admin, contractor=world.contractor, status=ProjectStatus.PLANNING)
    svc = world.container.project_service

    view = svc.update_project(actor=world.actor(world.admin), project_id=project.project_id, changes={"status": "in_progress"})
    assert view.status == ProjectStatus.IN_PROGRESS

    with pytest.raises(ValidationError, match="from in_progress to planning"):
        svc.update_project(actor=world.actor(world.admin), project_id=project.project_id, changes={"status": "planning"})


def test_status_change_blocked_by_pending_request(world):
    project = world.project(world.admin, contractor=world.contractor)
    world.pending_request(project, world.contractor)

    with pytest.raises(ValidationError, match="resolve pending requests first"):
        world.container.project_service.update_project(
            actor=world.actor(world.admin), project_id=project.project_id, changes={"status": "on_hold"}
        )
    assert world.projects.get_by_id(project.project_id).status == ProjectStatus.IN_PROGRESS


def test_pending_request_does_not_block_other_fields(world):
    project = world.project(world.admin, contractor=world.contractor)
    world.pending_request(project, world.contractor)

    view = world.container.project_service.update_project(
        actor=world.actor(world.admin),
        project_id=project.project_id,
        changes={"name": "Harbor Bridge II", "status": "in_progress"},
    )

    assert view.name == "Harbor Bridge II"


def test_update_rejects_unknown_fields_and_negative_budget(world):
    project = world.project(world.admin)
    svc = world.container.project_service

    with pytest.raises(ValidationError, match="Unknown project fields"):
        svc.update_project(actor=world.actor(world.admin), project_id=project.project_id, changes={"owner": 1})
    with pytest.raises(ValidationError):
        svc.update_project(actor=world.actor(world.admin), project_id=project.project_id, changes={"budget": -5})


def test_update_checks_dates_against_existing_values(world):
    project = world.project(world.admin, start_date=date(2026, 3, 1), end_date=date(2026, 6, 30))

    with pytest.raises(ValidationError):
        world.container.project_service.update_project(
            actor=world.actor(world.admin), project_id=project.project_id, changes={"end_date": "2026-02-01"}
        )


def test_assign_contractor(world):
    project = world.project(world.admin, status=ProjectStatus.PLANNING)

    view = world.container.project_service.assign_contractor(
        actor=world.actor(world.admin), project_id=project.project_id, contractor_id=world.contractor.user_id
    )

    assert view.contractor_id == world.contractor.user_id


def test_assign_contractor_to_missing_project(world):
    with pytest.raises(NotFoundError):
        world.container.project_service.assign_contractor(
            actor=world.actor(world.admin), project_id=999, contractor_id=world.contractor.user_id
        )


def test_out_of_scope_project_reads_as_not_found(world):
    stranger = world.users.add("Stan Stranger", Role.CONTRACTOR)
    project = world.project(world.admin, contractor=world.contractor)

    with pytest.raises(NotFoundError, match="Project not found"):
        world.container.project_service.get_project(actor=world.actor(stranger), project_id=project.project_id)
    assert world.container.project_service.get_project(
        actor=world.actor(world.contractor), project_id=project.project_id
    ).name == "Harbor Bridge"


def test_delete_project(world):
    project = world.project(world.admin)
    svc = world.container.project_service

    svc.delete_project(actor=world.actor(world.admin), project_id=project.project_id)

    with pytest.raises(NotFoundError):
        svc.delete_project(actor=world.actor(world.admin), project_id=project.project_id)
