# Overview: Operation dispatch table; every core operation returns a Result instead of raising.

"""
Operations

Transports (HTTP blueprints, CLI) never call services directly for writes:
they name an Operation and hand over a payload plus the authenticated caller.
execute() looks the handler up in OPERATION_HANDLERS and converts service
errors into a Result carrying an ErrorKind, which the transport maps to its
own status codes.
"""

from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from sqlalchemy.exc import SQLAlchemyError

from .extensions import db
from .services import (
    attendance_service,
    commission_service,
    customer_service,
    operator_service,
    transaction_service,
)
from .services.auth_service import Actor
from .services.transaction_service import WashRequest
from .time_utils import parse_iso_datetime
from .validation import (
    ErrorKind,
    ServiceError,
    ValidationError,
    optional_str,
    require_bool,
    require_int,
)


logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 100


class Operation(str, enum.Enum):
    RECORD_WASH = "record_wash"
    GET_TRANSACTION = "get_transaction"
    LIST_TRANSACTIONS = "list_transactions"
    UPDATE_TRANSACTION = "update_transaction"
    CANCEL_TRANSACTION = "cancel_transaction"

    LIST_PENDING_COMMISSIONS = "list_pending_commissions"
    LIST_COMMISSIONS = "list_commissions"
    PAY_COMMISSIONS = "pay_commissions"

    CHECK_IN = "check_in"
    CHECK_OUT = "check_out"
    ATTENDANCE_STATUS = "attendance_status"
    RECORD_ATTENDANCE = "record_attendance"
    LIST_ATTENDANCE = "list_attendance"

    REGISTER_CUSTOMER = "register_customer"
    GET_CUSTOMER = "get_customer"
    LOOKUP_CUSTOMER = "lookup_customer"
    LIST_CUSTOMERS = "list_customers"
    UPDATE_CUSTOMER = "update_customer"
    DELETE_CUSTOMER = "delete_customer"

    CREATE_OPERATOR = "create_operator"
    GET_OPERATOR = "get_operator"
    LIST_OPERATORS = "list_operators"
    UPDATE_OPERATOR = "update_operator"
    DEACTIVATE_OPERATOR = "deactivate_operator"


@dataclass(frozen=True)
class Result:
    ok: bool
    value: Any = None
    error_kind: ErrorKind | None = None
    message: str | None = None
    details: dict = field(default_factory=dict)

    @classmethod
    def success(cls, value: Any) -> "Result":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, message: str, details: dict | None = None) -> "Result":
        return cls(ok=False, error_kind=kind, message=message, details=details or {})


def _actor_id(actor: Actor | None) -> int | None:
    return actor.id if actor else None


def _pagination(payload: dict, default_limit: int) -> tuple[int, int, int]:
    page = require_int(payload, "page", required=False) or 1
    limit = require_int(payload, "limit", required=False) or default_limit
    if page < 1 or limit < 1:
        raise ValidationError("page and limit must be positive")
    limit = min(limit, MAX_PAGE_SIZE)
    return page, limit, (page - 1) * limit


def _page_info(page: int, limit: int, total: int) -> dict:
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": (total + limit - 1) // limit,
    }


def _changes(payload: dict, *reserved: str) -> dict:
    return {k: v for k, v in payload.items() if k not in reserved}


# -----------------------------------------------------------------------------
# Transactions
# -----------------------------------------------------------------------------

def _record_wash(payload: dict, actor: Actor | None):
    request = WashRequest.from_payload(payload)
    result = transaction_service.record_wash(request, actor_user_id=_actor_id(actor))
    return result.to_dict()


def _get_transaction(payload: dict, actor: Actor | None):
    return transaction_service.get_transaction(require_int(payload, "id")).to_dict()


def _list_transactions(payload: dict, actor: Actor | None):
    page, limit, offset = _pagination(payload, 20)
    rows, total = transaction_service.list_transactions(
        operator_id=require_int(payload, "operator_id", required=False),
        customer_id=require_int(payload, "customer_id", required=False),
        status=payload.get("status") or None,
        limit=limit,
        offset=offset,
    )
    return {"transactions": [t.to_dict() for t in rows], "pagination": _page_info(page, limit, total)}


def _update_transaction(payload: dict, actor: Actor | None):
    txn = transaction_service.update_transaction(
        require_int(payload, "id"),
        _changes(payload, "id"),
        actor_user_id=_actor_id(actor),
    )
    return txn.to_dict()


def _cancel_transaction(payload: dict, actor: Actor | None):
    txn = transaction_service.cancel_transaction(
        require_int(payload, "id"),
        actor_user_id=_actor_id(actor),
        reason=optional_str(payload, "reason", max_length=500),
    )
    return txn.to_dict()


# -----------------------------------------------------------------------------
# Commissions
# -----------------------------------------------------------------------------

def _list_pending_commissions(payload: dict, actor: Actor | None):
    operator_id = require_int(payload, "operator_id")
    records = commission_service.list_pending(operator_id)
    return {
        "operator_id": operator_id,
        "pending_total": sum(c.amount for c in records),
        "commissions": [c.to_dict() for c in records],
    }


def _list_commissions(payload: dict, actor: Actor | None):
    records = commission_service.list_commissions(
        operator_id=require_int(payload, "operator_id", required=False),
        status=payload.get("status") or None,
    )
    return {"commissions": [c.to_dict() for c in records]}


def _pay_commissions(payload: dict, actor: Actor | None):
    result = commission_service.payout(
        operator_id=require_int(payload, "operator_id"),
        paid_by_user_id=_actor_id(actor),
        note=optional_str(payload, "notes", max_length=500),
    )
    return result.to_dict()


# -----------------------------------------------------------------------------
# Attendance
# -----------------------------------------------------------------------------

def _attendance_operator_id(payload: dict, actor: Actor | None) -> int:
    operator_id = require_int(payload, "operator_id")
    if actor is not None and actor.role == "operator":
        attendance_service.require_own_operator(operator_id, actor.id)
    return operator_id


def _check_in(payload: dict, actor: Actor | None):
    record = attendance_service.check_in(
        operator_id=_attendance_operator_id(payload, actor),
        notes=optional_str(payload, "notes", max_length=500),
    )
    return record.to_dict()


def _check_out(payload: dict, actor: Actor | None):
    return attendance_service.check_out(operator_id=_attendance_operator_id(payload, actor)).to_dict()


def _attendance_status(payload: dict, actor: Actor | None):
    operator_id = _attendance_operator_id(payload, actor)
    return {"operator_id": operator_id, "state": attendance_service.status_for(operator_id)}


def _parse_optional_datetime(payload: dict, key: str):
    try:
        return parse_iso_datetime(payload.get(key))
    except (TypeError, ValueError):
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def _record_attendance(payload: dict, actor: Actor | None):
    if not payload.get("date"):
        raise ValidationError("date is required")
    record = attendance_service.record_manual(
        operator_id=require_int(payload, "operator_id"),
        work_date=payload.get("date"),
        status=str(payload.get("status") or ""),
        check_in_at=_parse_optional_datetime(payload, "check_in"),
        check_out_at=_parse_optional_datetime(payload, "check_out"),
        notes=optional_str(payload, "notes", max_length=500),
        actor_user_id=_actor_id(actor),
    )
    return record.to_dict()


def _list_attendance(payload: dict, actor: Actor | None):
    records = attendance_service.list_attendance(
        operator_id=require_int(payload, "operator_id", required=False),
        work_date=payload.get("date") or None,
        status=payload.get("status") or None,
    )
    return {"attendance": [r.to_dict() for r in records]}


# -----------------------------------------------------------------------------
# Customers
# -----------------------------------------------------------------------------

def _register_customer(payload: dict, actor: Actor | None):
    customer = customer_service.register_customer(
        license_plate=payload.get("license_plate"),
        name=payload.get("name"),
        phone=optional_str(payload, "phone", max_length=32),
        email=optional_str(payload, "email", max_length=255),
        motorcycle_type=payload.get("motorcycle_type"),
        is_member=require_bool(payload, "is_member", default=True),
        actor_user_id=_actor_id(actor),
    )
    return customer.to_dict()


def _get_customer(payload: dict, actor: Actor | None):
    return customer_service.resolve_by_id(require_int(payload, "id")).to_dict()


def _lookup_customer(payload: dict, actor: Actor | None):
    customer = customer_service.find_by_plate(payload.get("license_plate"))
    return {"found": customer is not None, "customer": customer.to_dict() if customer else None}


def _list_customers(payload: dict, actor: Actor | None):
    page, limit, offset = _pagination(payload, 50)
    is_member = None
    if payload.get("is_member") not in (None, ""):
        is_member = require_bool(payload, "is_member")
    rows, total = customer_service.list_customers(
        search=payload.get("search") or None,
        is_member=is_member,
        limit=limit,
        offset=offset,
    )
    return {"customers": [c.to_dict() for c in rows], "pagination": _page_info(page, limit, total)}


def _update_customer(payload: dict, actor: Actor | None):
    customer = customer_service.update_customer(
        require_int(payload, "id"),
        _changes(payload, "id"),
        actor_user_id=_actor_id(actor),
    )
    return customer.to_dict()


def _delete_customer(payload: dict, actor: Actor | None):
    customer_id = require_int(payload, "id")
    customer_service.delete_customer(customer_id, actor_user_id=_actor_id(actor))
    return {"id": customer_id, "deleted": True}


# -----------------------------------------------------------------------------
# Operators
# -----------------------------------------------------------------------------

def _create_operator(payload: dict, actor: Actor | None):
    operator = operator_service.create_operator(
        name=payload.get("name"),
        phone=optional_str(payload, "phone", max_length=32),
        commission_rate=payload.get("commission_rate"),
        user_id=require_int(payload, "user_id", required=False),
        bank_name=optional_str(payload, "bank_name", max_length=64),
        bank_account=optional_str(payload, "bank_account", max_length=64),
        actor_user_id=_actor_id(actor),
    )
    return operator.to_dict()


def _get_operator(payload: dict, actor: Actor | None):
    operator = operator_service.get_operator(require_int(payload, "id"))
    data = operator.to_dict()
    data["pending_commission"] = commission_service.pending_total(operator.id)
    return data


def _list_operators(payload: dict, actor: Actor | None):
    operators = operator_service.list_operators(payload.get("status") or None)
    return {"operators": [o.to_dict() for o in operators]}


def _update_operator(payload: dict, actor: Actor | None):
    operator = operator_service.update_operator(
        require_int(payload, "id"),
        _changes(payload, "id"),
        actor_user_id=_actor_id(actor),
    )
    return operator.to_dict()


def _deactivate_operator(payload: dict, actor: Actor | None):
    operator_id = require_int(payload, "id")
    outcome = operator_service.deactivate_operator(operator_id, actor_user_id=_actor_id(actor))
    return {"id": operator_id, "outcome": outcome}


OPERATION_HANDLERS: dict[Operation, Callable[[dict, Actor | None], Any]] = {
    Operation.RECORD_WASH: _record_wash,
    Operation.GET_TRANSACTION: _get_transaction,
    Operation.LIST_TRANSACTIONS: _list_transactions,
    Operation.UPDATE_TRANSACTION: _update_transaction,
    Operation.CANCEL_TRANSACTION: _cancel_transaction,
    Operation.LIST_PENDING_COMMISSIONS: _list_pending_commissions,
    Operation.LIST_COMMISSIONS: _list_commissions,
    Operation.PAY_COMMISSIONS: _pay_commissions,
    Operation.CHECK_IN: _check_in,
    Operation.CHECK_OUT: _check_out,
    Operation.ATTENDANCE_STATUS: _attendance_status,
    Operation.RECORD_ATTENDANCE: _record_attendance,
    Operation.LIST_ATTENDANCE: _list_attendance,
    Operation.REGISTER_CUSTOMER: _register_customer,
    Operation.GET_CUSTOMER: _get_customer,
    Operation.LOOKUP_CUSTOMER: _lookup_customer,
    Operation.LIST_CUSTOMERS: _list_customers,
    Operation.UPDATE_CUSTOMER: _update_customer,
    Operation.DELETE_CUSTOMER: _delete_customer,
    Operation.CREATE_OPERATOR: _create_operator,
    Operation.GET_OPERATOR: _get_operator,
    Operation.LIST_OPERATORS: _list_operators,
    Operation.UPDATE_OPERATOR: _update_operator,
    Operation.DEACTIVATE_OPERATOR: _deactivate_operator,
}


def execute(operation: Operation, payload: dict | None = None, actor: Actor | None = None) -> Result:
    """Run one operation; never raises for service or database errors."""
    handler = OPERATION_HANDLERS.get(operation)
    if handler is None:
        return Result.failure(ErrorKind.VALIDATION, f"Unknown operation: {operation}")

    if payload is None:
        payload = {}
    if not isinstance(payload, dict):
        return Result.failure(ErrorKind.VALIDATION, "Invalid JSON payload")

    try:
        return Result.success(handler(payload, actor))
    except ServiceError as exc:
        return Result.failure(exc.kind, str(exc), exc.details)
    except SQLAlchemyError:
        db.session.rollback()
        logger.exception("Operation %s failed with a database error", operation.value)
        return Result.failure(ErrorKind.STORAGE, "Database operation failed")
