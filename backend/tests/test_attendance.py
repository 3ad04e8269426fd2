"""
Attendance tests.

States per operator and business day: no record -> checked in -> checked out.
Check-ins after 08:15 are late. Tests run with BUSINESS_TIMEZONE=UTC.
"""

from datetime import date, datetime

import pytest

from motorbersih.models import AttendanceRecord
from motorbersih.services import attendance_service
from motorbersih.time_utils import to_business_time
from motorbersih.validation import ConflictError, NotFoundError, ValidationError


DAY = (2026, 10, 19)


def at(hour, minute, second=0, day=DAY):
    return datetime(*day, hour, minute, second)


@pytest.mark.parametrize(
    "clock,expected",
    [
        (at(7, 0), "present"),
        (at(8, 10), "present"),
        (at(8, 15), "present"),
        (at(8, 15, 59), "present"),
        (at(8, 16), "late"),
        (at(8, 20), "late"),
        (at(13, 0), "late"),
    ],
)
def test_classify_check_in(clock, expected):
    assert attendance_service.classify_check_in(clock, "08:15") == expected


def test_classify_uses_business_timezone():
    # 01:20 UTC is 08:20 in Jakarta
    local = to_business_time(at(1, 20), "Asia/Jakarta")
    assert attendance_service.classify_check_in(local) == "late"


def test_check_in_present(db_session, operator):
    record = attendance_service.check_in(operator_id=operator.id, now=at(8, 10))
    assert record.status == "present"
    assert record.work_date == date(*DAY)
    assert record.to_dict()["check_in"] == "2026-10-19T08:10:00Z"


def test_check_in_late(db_session, operator):
    record = attendance_service.check_in(operator_id=operator.id, now=at(8, 20))
    assert record.status == "late"


def test_double_check_in_conflicts(db_session, operator):
    attendance_service.check_in(operator_id=operator.id, now=at(8, 0))
    with pytest.raises(ConflictError):
        attendance_service.check_in(operator_id=operator.id, now=at(9, 0))
    assert db_session.query(AttendanceRecord).count() == 1


def test_check_in_next_day_is_new_record(db_session, operator):
    attendance_service.check_in(operator_id=operator.id, now=at(8, 0))
    attendance_service.check_in(operator_id=operator.id, now=at(8, 0, day=(2026, 10, 20)))
    assert db_session.query(AttendanceRecord).count() == 2


def test_check_in_unknown_operator(db_session):
    with pytest.raises(NotFoundError):
        attendance_service.check_in(operator_id=999, now=at(8, 0))


def test_check_out_flow(db_session, operator):
    operator_id = operator.id
    assert attendance_service.status_for(operator_id, now=at(7, 0)) == attendance_service.NO_RECORD

    attendance_service.check_in(operator_id=operator_id, now=at(8, 0))
    assert attendance_service.status_for(operator_id, now=at(12, 0)) == attendance_service.CHECKED_IN

    record = attendance_service.check_out(operator_id=operator_id, now=at(17, 0))
    assert record.check_out_at == at(17, 0)
    assert attendance_service.status_for(operator_id, now=at(18, 0)) == attendance_service.CHECKED_OUT

    with pytest.raises(ConflictError):
        attendance_service.check_out(operator_id=operator_id, now=at(18, 0))


def test_check_out_without_record(db_session, operator):
    with pytest.raises(NotFoundError):
        attendance_service.check_out(operator_id=operator.id, now=at(17, 0))


def test_check_out_on_manual_absence_requires_check_in(db_session, operator):
    attendance_service.record_manual(operator_id=operator.id, work_date="2026-10-19", status="absent")
    with pytest.raises(ValidationError):
        attendance_service.check_out(operator_id=operator.id, now=at(17, 0))


def test_check_in_over_manual_absence_record(db_session, operator):
    attendance_service.record_manual(operator_id=operator.id, work_date="2026-10-19", status="on-leave")
    record = attendance_service.check_in(operator_id=operator.id, now=at(10, 0))
    assert record.status == "late"
    assert db_session.query(AttendanceRecord).count() == 1


def test_record_manual_rejects_duplicates_and_bad_input(db_session, operator):
    attendance_service.record_manual(operator_id=operator.id, work_date=date(*DAY), status="absent")
    with pytest.raises(ConflictError):
        attendance_service.record_manual(operator_id=operator.id, work_date="2026-10-19", status="present")
    with pytest.raises(ValidationError):
        attendance_service.record_manual(operator_id=operator.id, work_date="2026-10-20", status="sick")
    with pytest.raises(ValidationError):
        attendance_service.record_manual(operator_id=operator.id, work_date="19/10/2026", status="absent")
    with pytest.raises(ValidationError):
        attendance_service.record_manual(
            operator_id=operator.id,
            work_date="2026-10-21",
            status="present",
            check_in_at=at(9, 0),
            check_out_at=at(8, 0),
        )


def test_list_attendance(db_session, operator):
    attendance_service.check_in(operator_id=operator.id, now=at(8, 0))
    attendance_service.check_in(operator_id=operator.id, now=at(9, 0, day=(2026, 10, 20)))

    assert len(attendance_service.list_attendance(operator_id=operator.id)) == 2
    late = attendance_service.list_attendance(status="late")
    assert [r.work_date for r in late] == [date(2026, 10, 20)]
    assert len(attendance_service.list_attendance(work_date="2026-10-19")) == 1
