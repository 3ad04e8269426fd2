# Overview: Flask API routes for the commission ledger; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_role, rate_limited
from ..operations import Operation
from . import json_payload, run


commissions_bp = Blueprint("commissions", __name__, url_prefix="/api/commissions")


@commissions_bp.get("/")
@rate_limited
@require_auth
@require_role("admin")
def list_commissions_route():
    """Ledger entries, optionally filtered by operator_id and status."""
    return run(Operation.LIST_COMMISSIONS, request.args.to_dict())


@commissions_bp.get("/pending")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def list_pending_route():
    return run(Operation.LIST_PENDING_COMMISSIONS, request.args.to_dict())


@commissions_bp.post("/pay")
@rate_limited
@require_auth
@require_role("admin")
def pay_commissions_route():
    """
    Pay out every pending commission of one operator.

    Body: operator_id, notes (optional).
    """
    return run(Operation.PAY_COMMISSIONS, json_payload())
