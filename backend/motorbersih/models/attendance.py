from __future__ import annotations

from ..extensions import db
from motorbersih.time_utils import to_utc_z


ATTENDANCE_STATUSES = ("present", "late", "absent", "on-leave")


class AttendanceRecord(db.Model):
    """
    One attendance record per operator per business day.

    LIFECYCLE:
    - no record -> checked in (check_in_at set, status present/late)
    - checked in -> checked out (check_out_at set)

    work_date is the local business date; check_in_at / check_out_at are UTC.
    absent / on-leave records are entered manually by an admin.
    """
    __tablename__ = "operator_attendance"
    __table_args__ = (
        db.UniqueConstraint("operator_id", "work_date", name="uq_attendance_operator_date"),
        db.Index("ix_attendance_date", "work_date"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=False, index=True)
    work_date = db.Column(db.Date, nullable=False)

    check_in_at = db.Column(db.DateTime(timezone=True), nullable=True)
    check_out_at = db.Column(db.DateTime(timezone=True), nullable=True)

    # present | late | absent | on-leave
    status = db.Column(db.String(16), nullable=False, default="present")
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    operator = db.relationship("Operator", backref=db.backref("attendance_records", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operator_id": self.operator_id,
            "date": self.work_date.isoformat(),
            "check_in": to_utc_z(self.check_in_at) if self.check_in_at else None,
            "check_out": to_utc_z(self.check_out_at) if self.check_out_at else None,
            "status": self.status,
            "notes": self.notes,
        }
