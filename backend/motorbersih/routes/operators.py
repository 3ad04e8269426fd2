# Overview: Flask API routes for wash operators; parses input and returns JSON responses.

"""
Operator Routes

SECURITY:
- Listing and viewing: admin, cashier (the cashier picks the operator per wash).
- Create, update, deactivate: admin only.
"""

from flask import Blueprint, request

from ..decorators import require_auth, require_role, rate_limited
from ..operations import Operation
from . import json_payload, run


operators_bp = Blueprint("operators", __name__, url_prefix="/api/operators")


@operators_bp.get("/")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def list_operators_route():
    return run(Operation.LIST_OPERATORS, request.args.to_dict())


@operators_bp.get("/<int:operator_id>")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def get_operator_route(operator_id: int):
    return run(Operation.GET_OPERATOR, {"id": operator_id})


@operators_bp.post("/")
@rate_limited
@require_auth
@require_role("admin")
def create_operator_route():
    return run(Operation.CREATE_OPERATOR, json_payload(), 201)


@operators_bp.route("/<int:operator_id>", methods=["PUT", "PATCH"])
@rate_limited
@require_auth
@require_role("admin")
def update_operator_route(operator_id: int):
    payload = json_payload()
    if payload is not None:
        payload = {**payload, "id": operator_id}
    return run(Operation.UPDATE_OPERATOR, payload)


@operators_bp.delete("/<int:operator_id>")
@rate_limited
@require_auth
@require_role("admin")
def deactivate_operator_route(operator_id: int):
    """Operators with history are deactivated; others are deleted outright."""
    return run(Operation.DEACTIVATE_OPERATOR, {"id": operator_id})
