from __future__ import annotations

from src.buildtrack.buildtrack.access.scope import AccessScope, VisibilityResolver
from src.buildtrack.buildtrack.common.pagination import PageRequest
from src.buildtrack.buildtrack.core.actor import Actor
from src.buildtrack.buildtrack.core.enums import ProjectStatus, Role
from tests.fakes import World


def _setup():
    w = World()
    admin = w.users.add("Ada Admin", Role.ADMIN)
    contractor = w.users.add("Carl Contractor", Role.CONTRACTOR)
    other_contractor = w.users.add("Olga Other", Role.CONTRACTOR)
    member = w.users.add("Mia Member", Role.MEMBER)
    mine = w.project(admin, contractor=contractor, name="Mine")
    theirs = w.project(admin, contractor=other_contractor, name="Theirs")
    w.team(theirs, other_contractor, [member])
    return w, admin, contractor, member, mine, theirs


def test_unrestricted_roles_see_everything():
    w, admin, *_ = _setup()
    resolver = VisibilityResolver(w.projects, w.teams)

    for role in (Role.ADMIN, Role.ACCOUNTS, Role.DEVELOPER):
        scope = resolver.scope_for(Actor(user_id=admin.user_id, role=role))
        assert scope.unrestricted
        assert scope.filter_ids is None


def test_contractor_sees_only_assigned_projects():
    w, _, contractor, _, mine, theirs = _setup()
    scope = VisibilityResolver(w.projects, w.teams).scope_for(w.actor(contractor))

    assert scope.allows(mine.project_id)
    assert not scope.allows(theirs.project_id)


def test_member_project_listing_never_leaks_outside_memberships():
    w, _, _, member, mine, theirs = _setup()

    page = w.container.project_service.list_projects(actor=w.actor(member), page=PageRequest())

    assert [p.project_id for p in page.items] == [theirs.project_id]
    assert mine.project_id not in {p.project_id for p in page.items}


def test_member_without_team_sees_nothing():
    w = World()
    loner = w.users.add("Lone Member", Role.MEMBER)
    admin = w.users.add("Ada Admin", Role.ADMIN)
    w.project(admin, status=ProjectStatus.PLANNING)

    page = w.container.project_service.list_projects(actor=w.actor(loner), page=PageRequest())

    assert page.total == 0
    assert list(page.items) == []


def test_access_scope_helpers():
    assert AccessScope.everything().allows(123)
    assert AccessScope.only(()).is_empty
    assert AccessScope.only([1, 2]).filter_ids == frozenset({1, 2})
