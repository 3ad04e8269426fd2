# Overview: Flask API routes for operator attendance; parses input and returns JSON responses.

"""
Attendance Routes

SECURITY:
- Check-in, check-out and status: any authenticated role (kiosk or cashier desk).
  An operator token only reaches the operator record linked to its user.
- Manual records and history: admin only.
"""

from flask import Blueprint, request

from ..decorators import require_auth, require_role, rate_limited
from ..operations import Operation
from . import json_payload, run


attendance_bp = Blueprint("attendance", __name__, url_prefix="/api/attendance")


@attendance_bp.post("/check-in")
@rate_limited
@require_auth
def check_in_route():
    return run(Operation.CHECK_IN, json_payload(), 201)


@attendance_bp.post("/check-out")
@rate_limited
@require_auth
def check_out_route():
    return run(Operation.CHECK_OUT, json_payload())


@attendance_bp.get("/status")
@rate_limited
@require_auth
def attendance_status_route():
    return run(Operation.ATTENDANCE_STATUS, request.args.to_dict())


@attendance_bp.post("/")
@rate_limited
@require_auth
@require_role("admin")
def record_attendance_route():
    """Body: operator_id, date, status, check_in, check_out, notes."""
    return run(Operation.RECORD_ATTENDANCE, json_payload(), 201)


@attendance_bp.get("/")
@rate_limited
@require_auth
@require_role("admin")
def list_attendance_route():
    return run(Operation.LIST_ATTENDANCE, request.args.to_dict())
