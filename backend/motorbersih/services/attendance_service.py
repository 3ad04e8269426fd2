# Overview: Service-layer operations for operator attendance; encapsulates business logic.

"""
Attendance Service (Daily Check-In)

WHY: Operators check in once per business day and check out at the end of it.
A check-in later than the configured cutoff (08:15 local) is recorded as late.

States per (operator, business date): no record -> checked in -> checked out.
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import AttendanceRecord, Operator, ATTENDANCE_STATUSES
from ..validation import ConflictError, NotFoundError, PermissionDeniedError, ValidationError, parse_date
from .activity_service import append_activity_event
from .concurrency import lock_for_update, unit_of_work
from motorbersih.time_utils import parse_clock, to_business_time, utcnow


logger = logging.getLogger(__name__)

NO_RECORD = "no-record"
CHECKED_IN = "checked-in"
CHECKED_OUT = "checked-out"


def _business_now(now: datetime | None) -> tuple[datetime, datetime]:
    """Return (utc_now, local_now)."""
    now = now or utcnow()
    tz_name = current_app.config.get("BUSINESS_TIMEZONE", "Asia/Jakarta")
    return now, to_business_time(now, tz_name)


def classify_check_in(local_time: datetime, cutoff: str = "08:15") -> str:
    """present up to and including the cutoff minute, late afterwards."""
    clock = local_time.time().replace(second=0, microsecond=0)
    return "late" if clock > parse_clock(cutoff) else "present"


def _require_operator(operator_id: int) -> Operator:
    operator = db.session.get(Operator, operator_id)
    if not operator:
        raise NotFoundError("Operator not found")
    return operator


def require_own_operator(operator_id: int, user_id: int) -> Operator:
    """The operator record linked to the calling user; anyone else's is refused."""
    operator = _require_operator(operator_id)
    if operator.user_id != user_id:
        logger.warning("attendance.denied operator_id=%s user_id=%s", operator_id, user_id)
        raise PermissionDeniedError("Operators can only use their own attendance")
    return operator


def _get_record(operator_id: int, work_date: date, *, lock: bool = False) -> AttendanceRecord | None:
    query = db.session.query(AttendanceRecord).filter_by(operator_id=operator_id, work_date=work_date)
    if lock:
        query = lock_for_update(query)
    return query.first()


def check_in(*, operator_id: int, now: datetime | None = None, notes: str | None = None) -> AttendanceRecord:
    now, local_now = _business_now(now)
    work_date = local_now.date()
    status = classify_check_in(local_now, current_app.config.get("ATTENDANCE_LATE_CUTOFF", "08:15"))

    with unit_of_work():
        _require_operator(operator_id)

        record = _get_record(operator_id, work_date, lock=True)
        if record and record.check_in_at:
            raise ConflictError("Already checked in today")

        if record is None:
            record = AttendanceRecord(operator_id=operator_id, work_date=work_date)
            db.session.add(record)
        record.check_in_at = now
        record.status = status
        record.notes = notes
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Already checked in today") from exc

        append_activity_event(
            event_type="attendance.check_in",
            entity_type="attendance",
            entity_id=record.id,
            operator_id=operator_id,
            occurred_at=now,
            note=status,
        )

    logger.info("attendance.check_in operator_id=%s date=%s status=%s", operator_id, work_date, status)
    return record


def check_out(*, operator_id: int, now: datetime | None = None) -> AttendanceRecord:
    now, local_now = _business_now(now)
    work_date = local_now.date()

    with unit_of_work():
        record = _get_record(operator_id, work_date, lock=True)
        if not record:
            raise NotFoundError("No check-in record found for today")
        if not record.check_in_at:
            raise ValidationError("Must check in first")
        if record.check_out_at:
            raise ConflictError("Already checked out today")

        record.check_out_at = now
        db.session.flush()

        append_activity_event(
            event_type="attendance.check_out",
            entity_type="attendance",
            entity_id=record.id,
            operator_id=operator_id,
            occurred_at=now,
        )

    logger.info("attendance.check_out operator_id=%s date=%s", operator_id, work_date)
    return record


def status_for(operator_id: int, now: datetime | None = None) -> str:
    _, local_now = _business_now(now)
    record = _get_record(operator_id, local_now.date())
    if not record or not record.check_in_at:
        return NO_RECORD
    if record.check_out_at:
        return CHECKED_OUT
    return CHECKED_IN


def record_manual(
    *,
    operator_id: int,
    work_date,
    status: str,
    check_in_at: datetime | None = None,
    check_out_at: datetime | None = None,
    notes: str | None = None,
    actor_user_id: int | None = None,
) -> AttendanceRecord:
    """Admin entry for absences, leave and missed check-ins."""
    work_date = parse_date(work_date)
    if status not in ATTENDANCE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(ATTENDANCE_STATUSES)}")
    if check_out_at and not check_in_at:
        raise ValidationError("check_out requires check_in")
    if check_in_at and check_out_at and check_out_at < check_in_at:
        raise ValidationError("check_out cannot be before check_in")

    with unit_of_work():
        _require_operator(operator_id)
        if _get_record(operator_id, work_date):
            raise ConflictError("Attendance record already exists for this date")

        record = AttendanceRecord(
            operator_id=operator_id,
            work_date=work_date,
            check_in_at=check_in_at,
            check_out_at=check_out_at,
            status=status,
            notes=notes,
        )
        db.session.add(record)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError("Attendance record already exists for this date") from exc

        append_activity_event(
            event_type="attendance.recorded",
            entity_type="attendance",
            entity_id=record.id,
            actor_user_id=actor_user_id,
            operator_id=operator_id,
            note=status,
        )

    return record


def list_attendance(
    *,
    operator_id: int | None = None,
    work_date=None,
    status: str | None = None,
    limit: int = 500,
) -> list[AttendanceRecord]:
    query = db.session.query(AttendanceRecord)
    if operator_id:
        query = query.filter_by(operator_id=operator_id)
    if work_date:
        query = query.filter_by(work_date=parse_date(work_date))
    if status:
        query = query.filter_by(status=status)
    return query.order_by(AttendanceRecord.work_date.desc(), AttendanceRecord.check_in_at.desc()).limit(limit).all()
