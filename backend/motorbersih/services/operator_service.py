# Overview: Service-layer operations for operators; encapsulates business logic and database work.

from __future__ import annotations

import logging

from flask import current_app
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import AttendanceRecord, Operator, WashTransaction
from ..validation import ConflictError, NotFoundError, ValidationError, require_rate
from .activity_service import append_activity_event
from .concurrency import unit_of_work


logger = logging.getLogger(__name__)

OPERATOR_STATUSES = ("active", "inactive")
UPDATABLE_FIELDS = {"name", "phone", "bank_name", "bank_account", "commission_rate", "status"}


def get_operator(operator_id: int) -> Operator:
    operator = db.session.get(Operator, operator_id)
    if not operator:
        raise NotFoundError("Operator not found")
    return operator


def list_operators(status: str | None = None) -> list[Operator]:
    query = db.session.query(Operator)
    if status:
        if status not in OPERATOR_STATUSES:
            raise ValidationError("status must be 'active' or 'inactive'")
        query = query.filter_by(status=status)
    return query.order_by(Operator.name, Operator.id).all()


def create_operator(
    *,
    name: str,
    phone: str | None = None,
    commission_rate=None,
    user_id: int | None = None,
    bank_name: str | None = None,
    bank_account: str | None = None,
    actor_user_id: int | None = None,
) -> Operator:
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")
    if commission_rate is None:
        commission_rate = current_app.config.get("DEFAULT_COMMISSION_RATE", "30.00")
    rate = require_rate(commission_rate)

    with unit_of_work():
        operator = Operator(
            user_id=user_id,
            name=name,
            phone=phone,
            bank_name=bank_name,
            bank_account=bank_account,
            commission_rate=rate,
            total_commission=0,
            total_washes=0,
            status="active",
        )
        db.session.add(operator)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError("user_id is already linked to another operator") from exc

        append_activity_event(
            event_type="operator.created",
            entity_type="operator",
            entity_id=operator.id,
            actor_user_id=actor_user_id,
            operator_id=operator.id,
            payload={"commission_rate": rate},
        )

    logger.info("operator.created id=%s rate=%s", operator.id, rate)
    return operator


def update_operator(operator_id: int, changes: dict, *, actor_user_id: int | None = None) -> Operator:
    """
    Update profile, commission rate or status.

    Rate changes apply to washes recorded afterwards; recorded transactions
    keep their rate snapshot.
    """
    for key in changes:
        if key not in UPDATABLE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")
    if not changes:
        raise ValidationError("No fields to update")

    cleaned = dict(changes)
    if "commission_rate" in cleaned:
        cleaned["commission_rate"] = require_rate(cleaned["commission_rate"])
    if "status" in cleaned and cleaned["status"] not in OPERATOR_STATUSES:
        raise ValidationError("status must be 'active' or 'inactive'")
    if "name" in cleaned and not str(cleaned["name"] or "").strip():
        raise ValidationError("name cannot be blank")

    with unit_of_work():
        operator = get_operator(operator_id)
        for key, value in cleaned.items():
            setattr(operator, key, value)
        db.session.flush()

        append_activity_event(
            event_type="operator.updated",
            entity_type="operator",
            entity_id=operator.id,
            actor_user_id=actor_user_id,
            operator_id=operator.id,
            payload={k: cleaned[k] for k in sorted(cleaned)},
        )

    return operator


def deactivate_operator(operator_id: int, *, actor_user_id: int | None = None) -> str:
    """
    Remove an operator.

    Operators with transactions or attendance are only set inactive (history
    keeps its references); others are deleted. Returns "deactivated" or "deleted".
    """
    with unit_of_work():
        operator = get_operator(operator_id)
        has_history = (
            db.session.query(WashTransaction.id).filter_by(operator_id=operator.id).first()
            or db.session.query(AttendanceRecord.id).filter_by(operator_id=operator.id).first()
        )

        if has_history:
            operator.status = "inactive"
            outcome = "deactivated"
        else:
            db.session.delete(operator)
            outcome = "deleted"

        append_activity_event(
            event_type=f"operator.{outcome}",
            entity_type="operator",
            entity_id=operator_id,
            actor_user_id=actor_user_id,
            operator_id=operator_id,
        )

    logger.info("operator.%s id=%s", outcome, operator_id)
    return outcome
