# Overview: Service-layer operations for wash transactions; settlement of commission and loyalty.

"""
Transaction Recorder

WHY: A completed wash touches four entities that must never disagree: the
transaction, its commission ledger entry, the customer's loyalty/spend
statistics and the operator's accrued commission. All four are written in
one unit of work; any failure rolls every one of them back.

CONCURRENCY:
- Operator and customer rows are locked (SELECT ... FOR UPDATE; BEGIN
  IMMEDIATE on SQLite) before they are read.
- Counters are advanced with UPDATE ... SET x = x + n, never written back
  from application memory.
"""

from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from flask import current_app
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import CommissionRecord, Customer, Operator, WashTransaction
from ..validation import (
    ConflictError,
    NotFoundError,
    ValidationError,
    optional_str,
    require_amount,
    require_bool,
    require_int,
    require_payment_method,
)
from . import customer_service, loyalty_service
from .activity_service import append_activity_event
from .commission_service import compute_commission
from .concurrency import lock_for_update, unit_of_work
from motorbersih.time_utils import utcnow


logger = logging.getLogger(__name__)

COMPLETED = "completed"
CANCELLED = "cancelled"
ADMIN_FIELDS = {"payment_method", "notes"}


@dataclass(frozen=True)
class WashRequest:
    operator_id: int
    original_price: int
    payment_method: str
    is_free_wash: bool = False
    license_plate: str | None = None
    customer_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    notes: str | None = None

    @classmethod
    def from_payload(cls, payload: dict) -> "WashRequest":
        if not isinstance(payload, dict):
            raise ValidationError("Invalid JSON payload")

        customer_id = require_int(payload, "customer_id", required=False)
        license_plate = optional_str(payload, "license_plate", max_length=32)
        if customer_id is None and not license_plate:
            raise ValidationError("license_plate or customer_id is required")

        return cls(
            operator_id=require_int(payload, "operator_id"),
            original_price=require_amount(payload, "original_price"),
            payment_method=require_payment_method(payload.get("payment_method", "cash")),
            is_free_wash=require_bool(payload, "is_loyalty_free"),
            license_plate=license_plate,
            customer_id=customer_id,
            customer_name=optional_str(payload, "customer_name", max_length=128),
            customer_phone=optional_str(payload, "customer_phone", max_length=32),
            notes=optional_str(payload, "notes", max_length=1000),
        )


@dataclass(frozen=True)
class TransactionResult:
    transaction: WashTransaction
    commission_amount: int
    loyalty: loyalty_service.LoyaltyStatus

    def to_dict(self) -> dict:
        txn = self.transaction
        return {
            "id": txn.id,
            "transaction_code": txn.transaction_code,
            "customer_id": txn.customer_id,
            "operator_id": txn.operator_id,
            "price": txn.price,
            "original_price": txn.original_price,
            "commission_amount": self.commission_amount,
            "is_loyalty_free": txn.is_free_wash,
            "payment_method": txn.payment_method,
            "status": txn.status,
            "loyalty": self.loyalty.to_dict(),
        }


def generate_transaction_code(now: datetime) -> str:
    """TRX<YYYYmmddHHMMSS>-<100..999>"""
    return f"TRX{now:%Y%m%d%H%M%S}-{secrets.randbelow(900) + 100}"


def _resolve_customer(request: WashRequest) -> Customer:
    if request.customer_id is not None:
        customer = customer_service.resolve_by_id(request.customer_id)
    else:
        customer = customer_service.resolve(
            request.license_plate,
            request.customer_name,
            request.customer_phone,
        )
    # Re-read under lock so the loyalty counter is current
    return (
        lock_for_update(db.session.query(Customer).filter_by(id=customer.id))
        .populate_existing()
        .one()
    )


def record_wash(
    request: WashRequest,
    *,
    actor_user_id: int | None = None,
    now: datetime | None = None,
    code_factory: Callable[[datetime], str] | None = None,
) -> TransactionResult:
    """
    Record a completed wash and settle commission and loyalty atomically.

    Free washes are charged 0 but earn commission on the original price.
    """
    now = now or utcnow()
    code_factory = code_factory or generate_transaction_code
    threshold = int(current_app.config.get("LOYALTY_FREE_WASH_THRESHOLD", loyalty_service.DEFAULT_THRESHOLD))

    with unit_of_work():
        operator = (
            lock_for_update(db.session.query(Operator).filter_by(id=request.operator_id))
            .populate_existing()
            .first()
        )
        if not operator:
            raise NotFoundError("Operator not found")
        if not operator.is_active:
            raise ConflictError("Operator is inactive")

        customer = _resolve_customer(request)

        price = 0 if request.is_free_wash else request.original_price
        commission_amount = compute_commission(
            price, request.original_price, request.is_free_wash, operator.commission_rate
        )

        if request.is_free_wash and not customer.free_wash_available:
            logger.warning(
                "transaction.free_wash_without_eligibility customer_id=%s loyalty_count=%s",
                customer.id, customer.loyalty_count,
            )

        loyalty = loyalty_service.next_status(
            current_count=customer.loyalty_count,
            free_wash_available=customer.free_wash_available,
            is_free_wash=request.is_free_wash,
            threshold=threshold,
        )

        txn = WashTransaction(
            transaction_code=code_factory(now),
            customer_id=customer.id,
            operator_id=operator.id,
            price=price,
            original_price=request.original_price,
            is_free_wash=request.is_free_wash,
            commission_rate=operator.commission_rate,
            commission_amount=commission_amount,
            payment_method=request.payment_method,
            status=COMPLETED,
            notes=request.notes,
            created_by_user_id=actor_user_id,
            created_at=now,
        )
        db.session.add(txn)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError(
                "Transaction code collision; retry with a new code",
                details={"transaction_code": txn.transaction_code},
            ) from exc

        db.session.add(
            CommissionRecord(
                operator_id=operator.id,
                transaction_id=txn.id,
                amount=commission_amount,
                status="pending",
                created_at=now,
            )
        )
        db.session.flush()

        db.session.execute(
            update(Customer)
            .where(Customer.id == customer.id)
            .values(
                loyalty_count=Customer.loyalty_count + 1,
                total_washes=Customer.total_washes + 1,
                total_spent=Customer.total_spent + price,
                last_wash_at=now,
            ),
            execution_options={"synchronize_session": False},
        )
        if request.is_free_wash:
            loyalty_service.consume_free_wash(customer)
        elif loyalty.free_wash_earned:
            loyalty_service.grant_free_wash(customer)

        db.session.execute(
            update(Operator)
            .where(Operator.id == operator.id)
            .values(
                total_washes=Operator.total_washes + 1,
                total_commission=Operator.total_commission + commission_amount,
            ),
            execution_options={"synchronize_session": False},
        )

        append_activity_event(
            event_type="transaction.recorded",
            entity_type="transaction",
            entity_id=txn.id,
            actor_user_id=actor_user_id,
            operator_id=operator.id,
            transaction_id=txn.id,
            occurred_at=now,
            payload={
                "customer_id": customer.id,
                "price": price,
                "original_price": request.original_price,
                "commission_amount": commission_amount,
                "is_free_wash": request.is_free_wash,
            },
        )

    logger.info(
        "transaction.recorded code=%s customer_id=%s operator_id=%s price=%s commission=%s free=%s",
        txn.transaction_code, txn.customer_id, txn.operator_id, price, commission_amount, request.is_free_wash,
    )
    return TransactionResult(transaction=txn, commission_amount=commission_amount, loyalty=loyalty)


def get_transaction(transaction_id: int) -> WashTransaction:
    txn = db.session.get(WashTransaction, transaction_id)
    if not txn:
        raise NotFoundError("Transaction not found")
    return txn


def list_transactions(
    *,
    operator_id: int | None = None,
    customer_id: int | None = None,
    status: str | None = None,
    limit: int = 20,
    offset: int = 0,
) -> tuple[list[WashTransaction], int]:
    if status and status not in (COMPLETED, CANCELLED):
        raise ValidationError("status must be 'completed' or 'cancelled'")

    query = db.session.query(WashTransaction)
    if operator_id:
        query = query.filter_by(operator_id=operator_id)
    if customer_id:
        query = query.filter_by(customer_id=customer_id)
    if status:
        query = query.filter_by(status=status)

    total = query.count()
    rows = (
        query.order_by(WashTransaction.created_at.desc(), WashTransaction.id.desc())
        .offset(offset)
        .limit(limit)
        .all()
    )
    return rows, total


def update_transaction(transaction_id: int, changes: dict, *, actor_user_id: int | None = None) -> WashTransaction:
    """Only administrative fields (payment_method, notes) are editable."""
    for key in changes:
        if key not in ADMIN_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")
    if not changes:
        raise ValidationError("No fields to update")

    cleaned = {}
    if "payment_method" in changes:
        cleaned["payment_method"] = require_payment_method(changes["payment_method"])
    if "notes" in changes:
        cleaned["notes"] = optional_str(changes, "notes", max_length=1000)

    with unit_of_work():
        txn = lock_for_update(db.session.query(WashTransaction).filter_by(id=transaction_id)).first()
        if not txn:
            raise NotFoundError("Transaction not found")
        for key, value in cleaned.items():
            setattr(txn, key, value)
        db.session.flush()

        append_activity_event(
            event_type="transaction.updated",
            entity_type="transaction",
            entity_id=txn.id,
            actor_user_id=actor_user_id,
            operator_id=txn.operator_id,
            transaction_id=txn.id,
            payload=cleaned,
        )

    return txn


def cancel_transaction(
    transaction_id: int,
    *,
    actor_user_id: int | None = None,
    reason: str | None = None,
    now: datetime | None = None,
) -> WashTransaction:
    """
    completed -> cancelled.

    Accrued commission, ledger entry and customer statistics are left as
    recorded; corrections to them are an administrative matter.
    """
    now = now or utcnow()

    with unit_of_work():
        txn = lock_for_update(db.session.query(WashTransaction).filter_by(id=transaction_id)).first()
        if not txn:
            raise NotFoundError("Transaction not found")
        if txn.status == CANCELLED:
            raise ConflictError("Transaction already cancelled")

        txn.status = CANCELLED
        txn.cancelled_at = now
        txn.cancelled_by_user_id = actor_user_id
        txn.cancel_reason = reason or "User cancelled"
        db.session.flush()

        append_activity_event(
            event_type="transaction.cancelled",
            entity_type="transaction",
            entity_id=txn.id,
            actor_user_id=actor_user_id,
            operator_id=txn.operator_id,
            transaction_id=txn.id,
            occurred_at=now,
            note=txn.cancel_reason,
        )

    logger.info("transaction.cancelled id=%s by=%s", transaction_id, actor_user_id)
    return txn
