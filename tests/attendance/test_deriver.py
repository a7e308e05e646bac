from __future__ import annotations

from datetime import date, datetime

import pytest

from src.buildtrack.buildtrack.attendance.deriver import DayMark, apply_mark, is_present
from src.buildtrack.buildtrack.attendance.mysql_attendance_repository import MySQLAttendanceRepository
from src.buildtrack.buildtrack.core.enums import UpdateType
from src.buildtrack.buildtrack.updates.model import Update

DAY = date(2026, 3, 2)


def _mark(kind: UpdateType, update_id: int, *, day: date = DAY) -> DayMark:
    return DayMark(user_id=7, project_id=3, work_date=day, update_type=kind, update_id=update_id)


def test_first_mark_creates_half_day_record():
    record = apply_mark(None, _mark(UpdateType.MORNING, 11), attendance_id=5)

    assert record.attendance_id == 5
    assert record.morning_update_id == 11
    assert record.evening_update_id is None
    assert record.is_present is False


def test_both_halves_make_present():
    record = apply_mark(None, _mark(UpdateType.MORNING, 11))
    record = apply_mark(record, _mark(UpdateType.EVENING, 12))

    assert (record.morning_update_id, record.evening_update_id) == (11, 12)
    assert record.is_present is True


def test_applying_same_mark_twice_is_idempotent():
    once = apply_mark(None, _mark(UpdateType.EVENING, 12))
    twice = apply_mark(once, _mark(UpdateType.EVENING, 12))

    assert once == twice


def test_set_half_is_never_overwritten():
    record = apply_mark(None, _mark(UpdateType.MORNING, 11))
    record = apply_mark(record, _mark(UpdateType.MORNING, 99))

    assert record.morning_update_id == 11


def test_mark_for_another_day_is_rejected():
    record = apply_mark(None, _mark(UpdateType.MORNING, 11))
    with pytest.raises(ValueError):
        apply_mark(record, _mark(UpdateType.EVENING, 12, day=date(2026, 3, 3)))


def test_mark_from_update_uses_day_key():
    update = Update(
        update_id=4,
        project_id=3,
        contractor_id=7,
        posted_by=7,
        update_type=UpdateType.EVENING,
        update_date=datetime(2026, 3, 2, 18, 30),
        timestamp=datetime(2026, 3, 2, 18, 30),
        status="done",
    )

    mark = DayMark.from_update(update)

    assert mark.key == (7, 3, DAY)
    assert mark.update_type == UpdateType.EVENING


@pytest.mark.parametrize("morning, evening, expected", [(1, 2, True), (1, None, False), (None, 2, False), (None, None, False)])
def test_is_present_needs_both_halves(morning, evening, expected):
    assert is_present(morning, evening) is expected


class _RecordingCursor:
    def __init__(self, row):
        self.statements = []
        self._row = row

    def execute(self, sql, params=None):
        self.statements.append(" ".join(sql.split()))

    def fetchone(self):
        return self._row

    def close(self):
        pass


class _RecordingFactory:
    def __init__(self, row):
        self.cursor_ = _RecordingCursor(row)

    def active_connection(self):
        return self

    def cursor(self, dictionary=True):
        return self.cursor_


def test_mysql_upsert_uses_row_alias():
    row = {
        "attendance_id": 9,
        "user_id": 7,
        "project_id": 3,
        "work_date": DAY,
        "morning_update_id": 11,
        "evening_update_id": None,
        "is_present": 0,
    }
    factory = _RecordingFactory(row)

    record = MySQLAttendanceRepository(factory).upsert_mark(_mark(UpdateType.MORNING, 11))

    upsert = factory.cursor_.statements[0]
    assert "AS new ON DUPLICATE KEY UPDATE" in upsert
    assert "COALESCE(attendance.morning_update_id, new.morning_update_id)" in upsert
    assert "VALUES(morning_update_id)" not in upsert
    assert record.morning_update_id == 11 and record.is_present is False
