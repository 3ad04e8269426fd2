# Overview: Flask API routes for wash transactions; parses input and returns JSON responses.

"""
Transaction Routes

SECURITY:
- Recording and viewing washes: admin, cashier.
- Editing administrative fields and cancelling: admin only.
"""

from flask import Blueprint, request

from ..decorators import require_auth, require_role, rate_limited
from ..operations import Operation
from . import json_payload, run


transactions_bp = Blueprint("transactions", __name__, url_prefix="/api/transactions")


@transactions_bp.post("/")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def record_wash_route():
    """
    Record a completed wash.

    Body: operator_id, original_price, license_plate | customer_id,
    customer_name (new plates), customer_phone, payment_method,
    is_loyalty_free, notes.
    """
    return run(Operation.RECORD_WASH, json_payload(), 201)


@transactions_bp.get("/")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def list_transactions_route():
    return run(Operation.LIST_TRANSACTIONS, request.args.to_dict())


@transactions_bp.get("/<int:transaction_id>")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def get_transaction_route(transaction_id: int):
    return run(Operation.GET_TRANSACTION, {"id": transaction_id})


@transactions_bp.route("/<int:transaction_id>", methods=["PUT", "PATCH"])
@rate_limited
@require_auth
@require_role("admin")
def update_transaction_route(transaction_id: int):
    payload = json_payload()
    if payload is not None:
        payload = {**payload, "id": transaction_id}
    return run(Operation.UPDATE_TRANSACTION, payload)


@transactions_bp.post("/<int:transaction_id>/cancel")
@rate_limited
@require_auth
@require_role("admin")
def cancel_transaction_route(transaction_id: int):
    payload = json_payload()
    if payload is not None:
        payload = {**payload, "id": transaction_id}
    return run(Operation.CANCEL_TRANSACTION, payload)
