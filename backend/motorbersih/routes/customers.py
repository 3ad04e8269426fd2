# Overview: Flask API routes for the customer directory; parses input and returns JSON responses.

from flask import Blueprint, request

from ..decorators import require_auth, require_role, rate_limited
from ..operations import Operation
from . import json_payload, run


customers_bp = Blueprint("customers", __name__, url_prefix="/api/customers")


@customers_bp.get("/")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def list_customers_route():
    return run(Operation.LIST_CUSTOMERS, request.args.to_dict())


@customers_bp.get("/lookup")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def lookup_customer_route():
    """Find a customer by ?license_plate=; unknown plates return found=false."""
    return run(Operation.LOOKUP_CUSTOMER, request.args.to_dict())


@customers_bp.get("/<int:customer_id>")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def get_customer_route(customer_id: int):
    return run(Operation.GET_CUSTOMER, {"id": customer_id})


@customers_bp.post("/")
@rate_limited
@require_auth
@require_role("admin", "cashier")
def register_customer_route():
    return run(Operation.REGISTER_CUSTOMER, json_payload(), 201)


@customers_bp.route("/<int:customer_id>", methods=["PUT", "PATCH"])
@rate_limited
@require_auth
@require_role("admin", "cashier")
def update_customer_route(customer_id: int):
    payload = json_payload()
    if payload is not None:
        payload = {**payload, "id": customer_id}
    return run(Operation.UPDATE_CUSTOMER, payload)


@customers_bp.delete("/<int:customer_id>")
@rate_limited
@require_auth
@require_role("admin")
def delete_customer_route(customer_id: int):
    return run(Operation.DELETE_CUSTOMER, {"id": customer_id})
