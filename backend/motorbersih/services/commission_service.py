# Overview: Service-layer operations for commissions; calculation and the pending/paid ledger.

"""
Commission Service

CALCULATION:
- Base price is the original price for loyalty free washes (the operator
  still did the work), otherwise the charged price.
- amount = base * rate / 100, rounded half-up to the smallest currency unit.

LEDGER:
- One CommissionRecord per transaction, created pending by the transaction
  recorder.
- Payout marks every pending record of an operator paid in one unit of work.
- Operator.total_commission accrues at recording time; payout never changes it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP

from sqlalchemy import func, update

from ..extensions import db
from ..models import CommissionRecord, Operator
from ..validation import ConflictError, NotFoundError, ValidationError
from .activity_service import append_activity_event
from .concurrency import lock_for_update, unit_of_work
from motorbersih.time_utils import utcnow, to_utc_z


logger = logging.getLogger(__name__)

PENDING = "pending"
PAID = "paid"


@dataclass(frozen=True)
class PayoutResult:
    operator_id: int
    total_amount: int
    commissions_paid: int
    paid_at: datetime
    commission_ids: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "operator_id": self.operator_id,
            "total_amount": self.total_amount,
            "commissions_paid": self.commissions_paid,
            "paid_at": to_utc_z(self.paid_at),
            "commission_ids": list(self.commission_ids),
        }


def compute_commission(price, original_price, is_free_wash: bool, commission_rate) -> int:
    """Commission in the smallest currency unit."""
    values = {
        "price": Decimal(str(price)),
        "original_price": Decimal(str(original_price)),
        "commission_rate": Decimal(str(commission_rate)),
    }
    for name, value in values.items():
        if value < 0:
            raise ValidationError(f"{name} cannot be negative")

    base = values["original_price"] if is_free_wash else values["price"]
    amount = base * values["commission_rate"] / Decimal(100)
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def _require_operator(operator_id: int) -> Operator:
    operator = db.session.get(Operator, operator_id)
    if not operator:
        raise NotFoundError("Operator not found")
    return operator


def list_pending(operator_id: int) -> list[CommissionRecord]:
    _require_operator(operator_id)
    return (
        db.session.query(CommissionRecord)
        .filter_by(operator_id=operator_id, status=PENDING)
        .order_by(CommissionRecord.id)
        .all()
    )


def list_commissions(
    *,
    operator_id: int | None = None,
    status: str | None = None,
    limit: int = 500,
) -> list[CommissionRecord]:
    if status and status not in (PENDING, PAID):
        raise ValidationError("status must be 'pending' or 'paid'")

    query = db.session.query(CommissionRecord)
    if operator_id:
        query = query.filter_by(operator_id=operator_id)
    if status:
        query = query.filter_by(status=status)
    return query.order_by(CommissionRecord.created_at.desc(), CommissionRecord.id.desc()).limit(limit).all()


def pending_total(operator_id: int) -> int:
    total = (
        db.session.query(func.coalesce(func.sum(CommissionRecord.amount), 0))
        .filter_by(operator_id=operator_id, status=PENDING)
        .scalar()
    )
    return int(total)


def payout(
    *,
    operator_id: int,
    paid_by_user_id: int | None,
    note: str | None = None,
    now: datetime | None = None,
) -> PayoutResult:
    """
    Mark all pending commissions of an operator as paid.

    All-or-nothing: either every pending record becomes paid with the same
    paid_at, or none does.
    """
    paid_at = now or utcnow()

    with unit_of_work():
        operator = lock_for_update(db.session.query(Operator).filter_by(id=operator_id)).first()
        if not operator:
            raise NotFoundError("Operator not found")

        pending = (
            lock_for_update(
                db.session.query(CommissionRecord).filter_by(operator_id=operator_id, status=PENDING)
            )
            .order_by(CommissionRecord.id)
            .all()
        )
        if not pending:
            raise ConflictError("No pending commissions for this operator")

        ids = [c.id for c in pending]
        total_amount = sum(c.amount for c in pending)

        result = db.session.execute(
            update(CommissionRecord)
            .where(CommissionRecord.id.in_(ids), CommissionRecord.status == PENDING)
            .values(
                status=PAID,
                paid_at=paid_at,
                paid_by_user_id=paid_by_user_id,
                notes=note or "Commission payment",
            ),
            execution_options={"synchronize_session": False},
        )
        if result.rowcount != len(ids):
            raise ConflictError("Commission ledger changed during payout; nothing was paid")

        append_activity_event(
            event_type="commission.paid",
            entity_type="operator",
            entity_id=operator_id,
            actor_user_id=paid_by_user_id,
            operator_id=operator_id,
            occurred_at=paid_at,
            note=note,
            payload={"total_amount": total_amount, "commission_ids": ids},
        )

    logger.info(
        "commission.paid operator_id=%s amount=%s count=%s paid_by=%s",
        operator_id, total_amount, len(ids), paid_by_user_id,
    )
    return PayoutResult(
        operator_id=operator_id,
        total_amount=total_amount,
        commissions_paid=len(ids),
        paid_at=paid_at,
        commission_ids=ids,
    )
