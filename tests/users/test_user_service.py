from __future__ import annotations

import pytest
from mysql.connector import errorcode
from mysql.connector.errors import IntegrityError

from src.buildtrack.buildtrack.common.pagination import PageRequest
from src.buildtrack.buildtrack.core.enums import Role
from src.buildtrack.buildtrack.core.exceptions import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    ValidationError,
)
from src.buildtrack.buildtrack.users.mysql_user_repository import MySQLUserRepository
from tests.fakes import World


@pytest.fixture()
def world():
    w = World()
    w.admin = w.users.add("Ada Admin", Role.ADMIN)
    w.dev = w.users.add("Dan Dev", Role.DEVELOPER)
    return w


def test_register_always_creates_developer(world):
    user = world.container.auth_service.register(email="New.Person@Example.com", password="secret123", name="New Person")

    assert user.role == Role.DEVELOPER
    assert user.email == "new.person@example.com"


def test_register_rejects_duplicates_and_short_passwords(world):
    auth = world.container.auth_service
    with pytest.raises(ConflictError):
        auth.register(email="dan.dev@example.com", password="secret123", name="Dan Again")
    with pytest.raises(ValidationError):
        auth.register(email="short@example.com", password="abc", name="Short")


def test_login_errors(world):
    auth = world.container.auth_service
    world.users.add("Ivy Inactive", Role.MEMBER, is_active=False)

    assert auth.authenticate("DAN.DEV@example.com", "secret123").user_id == world.dev.user_id
    with pytest.raises(AuthenticationError, match="Invalid email or password"):
        auth.authenticate("dan.dev@example.com", "wrong-one")
    with pytest.raises(AuthenticationError, match="inactive"):
        auth.authenticate("ivy.inactive@example.com", "secret123")
    with pytest.raises(ValidationError):
        auth.authenticate("", "")


def test_change_password(world):
    auth = world.container.auth_service
    actor = world.actor(world.dev)

    with pytest.raises(AuthenticationError, match="Current password is incorrect"):
        auth.change_password(actor=actor, current_password="nope-nope", new_password="another1")
    auth.change_password(actor=actor, current_password="secret123", new_password="another1")

    assert auth.authenticate("dan.dev@example.com", "another1").user_id == world.dev.user_id


def test_admin_manages_users(world):
    svc = world.container.user_service
    admin = world.actor(world.admin)

    created = svc.create_user(actor=admin, email="carl@example.com", password="secret123", name="Carl", role=Role.CONTRACTOR)
    assert created.role == Role.CONTRACTOR
    with pytest.raises(ConflictError):
        svc.create_user(actor=admin, email="carl@example.com", password="secret123", name="Carl", role=Role.CONTRACTOR)

    page = svc.list_users(actor=admin, role=Role.CONTRACTOR, page=PageRequest(page=1, limit=10))
    assert [u.user_id for u in page.items] == [created.user_id]

    updated = svc.update_user(actor=admin, user_id=created.user_id, is_active=False)
    assert updated.is_active is False

    svc.delete_user(actor=admin, user_id=created.user_id)
    assert world.users.get_by_id(created.user_id) is None


def test_self_service_limits(world):
    svc = world.container.user_service
    dev = world.actor(world.dev)

    assert svc.update_user(actor=dev, user_id=world.dev.user_id, phone="555-0100").phone == "555-0100"
    with pytest.raises(ValidationError):
        svc.update_user(actor=dev, user_id=world.dev.user_id, role=Role.ADMIN)
    with pytest.raises(AuthorizationError):
        svc.get_user(actor=dev, user_id=world.admin.user_id)
    with pytest.raises(AuthorizationError):
        svc.list_users(actor=dev, page=PageRequest())


def test_admin_cannot_demote_or_delete_self(world):
    svc = world.container.user_service
    admin = world.actor(world.admin)

    with pytest.raises(ValidationError, match="cannot demote"):
        svc.update_user(actor=admin, user_id=world.admin.user_id, role=Role.ACCOUNTS)
    with pytest.raises(ValidationError):
        svc.delete_user(actor=admin, user_id=world.admin.user_id)


def test_deleting_referenced_user_conflicts(world):
    svc = world.container.user_service
    admin = world.actor(world.admin)
    carl = world.users.add("Carl Contractor", Role.CONTRACTOR)
    site = world.project(world.admin, contractor=carl)
    world.pending_request(site, carl)

    with pytest.raises(ConflictError, match="Deactivate"):
        svc.delete_user(actor=admin, user_id=carl.user_id)
    assert world.users.get_by_id(carl.user_id) is not None

    svc.delete_user(actor=admin, user_id=world.dev.user_id)
    assert world.users.get_by_id(world.dev.user_id) is None


class _RaisingCursor:
    def __init__(self, error):
        self._error = error

    def execute(self, sql, params=None):
        raise self._error

    def close(self):
        pass


class _RaisingConnection:
    def __init__(self, error):
        self._error = error
        self.rolled_back = False

    def cursor(self, dictionary=True):
        return _RaisingCursor(self._error)

    def commit(self):
        pass

    def rollback(self):
        self.rolled_back = True

    def close(self):
        pass


class _StubConnectionFactory:
    def __init__(self, error):
        self.conn = _RaisingConnection(error)

    def active_connection(self):
        return None

    def connect(self):
        return self.conn


def test_mysql_delete_translates_foreign_key_violation():
    factory = _StubConnectionFactory(IntegrityError(msg="Cannot delete a parent row", errno=errorcode.ER_ROW_IS_REFERENCED_2))
    with pytest.raises(ConflictError, match="Deactivate"):
        MySQLUserRepository(factory).delete_by_id(7)
    assert factory.conn.rolled_back

    other = _StubConnectionFactory(IntegrityError(msg="Duplicate entry", errno=errorcode.ER_DUP_ENTRY))
    with pytest.raises(IntegrityError):
        MySQLUserRepository(other).delete_by_id(7)
