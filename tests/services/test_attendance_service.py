import uuid
from datetime import date, timedelta
from unittest.mock import AsyncMock

import pytest

from app.records.models.db_models import AttendanceEntry, AttendanceStatus
from app.records.services.attendance_service import AttendanceService
from app.records.services.errors import BatchWriteError, InvalidInputError, StoreError

DAY = date(2024, 3, 1)


@pytest.fixture
def service(fake_db) -> AttendanceService:
    return AttendanceService(db_client=fake_db)


def roster(*students, status=AttendanceStatus.PRESENT):
    return [AttendanceEntry(student_id=s.id, status=status) for s in students]


@pytest.mark.asyncio
class TestMarkBatch:

    async def test_writes_one_row_per_entry(self, service, fake_db, school_class, student, make_student):
        other = make_student()
        count = await service.mark_batch(school_class.id, DAY, roster(student, other))

        assert count == 2
        assert len(fake_db.attendance) == 2

    async def test_resubmitting_is_idempotent(self, service, fake_db, school_class, student):
        await service.mark_batch(school_class.id, DAY, roster(student))
        first = dict(fake_db.attendance)

        await service.mark_batch(school_class.id, DAY, roster(student))

        assert len(fake_db.attendance) == 1
        key = (student.id, school_class.id, DAY)
        assert fake_db.attendance[key].id == first[key].id
        assert fake_db.attendance[key].status == AttendanceStatus.PRESENT

    async def test_resubmission_overwrites_status_and_notes(self, service, fake_db, school_class, student):
        await service.mark_batch(school_class.id, DAY, roster(student))
        await service.mark_batch(
            school_class.id, DAY,
            [AttendanceEntry(student_id=student.id, status=AttendanceStatus.LATE, notes="bus delay")]
        )

        record = fake_db.attendance[(student.id, school_class.id, DAY)]
        assert record.status == AttendanceStatus.LATE
        assert record.notes == "bus delay"

    async def test_different_days_are_separate_rows(self, service, fake_db, school_class, student):
        await service.mark_batch(school_class.id, DAY, roster(student))
        await service.mark_batch(school_class.id, DAY + timedelta(days=1), roster(student))
        assert len(fake_db.attendance) == 2

    async def test_unknown_student_rolls_back_whole_batch(self, service, fake_db, school_class, student, make_student):
        """One bad roster line leaves nothing behind, including rows that would have been created first."""
        other = make_student()
        entries = roster(student, other) + [AttendanceEntry(student_id=uuid.uuid4(), status=AttendanceStatus.ABSENT)]

        with pytest.raises(BatchWriteError, match="no records were saved"):
            await service.mark_batch(school_class.id, DAY, entries)

        assert fake_db.attendance == {}

    async def test_failed_batch_keeps_prior_state(self, service, fake_db, school_class, student, make_student):
        other = make_student()
        await service.mark_batch(school_class.id, DAY, roster(student, other, status=AttendanceStatus.PRESENT))
        before = {k: (v.status, v.notes) for k, v in fake_db.attendance.items()}

        bad = roster(student, other, status=AttendanceStatus.ABSENT)
        bad.append(AttendanceEntry(student_id=uuid.uuid4(), status=AttendanceStatus.ABSENT))
        with pytest.raises(BatchWriteError):
            await service.mark_batch(school_class.id, DAY, bad)

        after = {k: (v.status, v.notes) for k, v in fake_db.attendance.items()}
        assert after == before

    async def test_unknown_class_fails_the_batch(self, service, fake_db, student):
        with pytest.raises(BatchWriteError):
            await service.mark_batch(uuid.uuid4(), DAY, roster(student))
        assert fake_db.attendance == {}

    async def test_empty_roster_is_rejected_before_the_store(self, service, fake_db, school_class):
        with pytest.raises(InvalidInputError, match="Class ID, date, and records array are required"):
            await service.mark_batch(school_class.id, DAY, [])
        assert fake_db.batch_calls == 0

    async def test_missing_class_or_date_is_rejected(self, service, fake_db, school_class, student):
        with pytest.raises(InvalidInputError):
            await service.mark_batch(None, DAY, roster(student))
        with pytest.raises(InvalidInputError):
            await service.mark_batch(school_class.id, None, roster(student))
        assert fake_db.batch_calls == 0

    async def test_repeated_student_is_rejected_before_the_store(self, service, fake_db, school_class, student):
        entries = roster(student) + roster(student, status=AttendanceStatus.ABSENT)

        with pytest.raises(InvalidInputError, match="only once per attendance batch"):
            await service.mark_batch(school_class.id, DAY, entries)
        assert fake_db.batch_calls == 0
        assert fake_db.attendance == {}


@pytest.mark.asyncio
class TestQuery:

    async def test_filters_and_orders_newest_first(self, service, school_class, student, make_student):
        other = make_student()
        for offset in range(3):
            await service.mark_batch(school_class.id, DAY + timedelta(days=offset), roster(student, other))

        rows = await service.query(student_id=student.id)

        assert [r.date for r in rows] == [DAY + timedelta(days=2), DAY + timedelta(days=1), DAY]
        assert all(r.student_id == student.id for r in rows)
        assert rows[0].class_code == "MATH-101"
        assert rows[0].student_name == "Alan Turing"

    async def test_date_bounds_are_inclusive(self, service, school_class, student):
        for offset in range(5):
            await service.mark_batch(school_class.id, DAY + timedelta(days=offset), roster(student))

        rows = await service.query(
            class_id=school_class.id, start_date=DAY + timedelta(days=1), end_date=DAY + timedelta(days=3)
        )
        assert {r.date for r in rows} == {DAY + timedelta(days=n) for n in (1, 2, 3)}

    async def test_single_day_range(self, service, school_class, student):
        jan_1 = date(2024, 1, 1)
        for offset in (-1, 0, 1):
            await service.mark_batch(school_class.id, jan_1 + timedelta(days=offset), roster(student))

        rows = await service.query(start_date=jan_1, end_date=jan_1)
        assert [r.date for r in rows] == [jan_1]

    async def test_inverted_range_returns_nothing(self, service, school_class, student):
        await service.mark_batch(school_class.id, DAY, roster(student))
        assert await service.query(start_date=DAY + timedelta(days=1), end_date=DAY - timedelta(days=1)) == []

    async def test_store_failure_is_wrapped(self, service, fake_db):
        fake_db.query_attendance = AsyncMock(side_effect=ConnectionError("db down"))
        with pytest.raises(StoreError):
            await service.query()
