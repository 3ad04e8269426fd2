# Overview: Service-layer operations for customers; plate lookup, walk-in creation and registration.

"""
Customer Directory

PLATES: "b 1234 abc", " B1234ABC " and "b1234abc" are one customer. Plates
are normalized before every lookup and stored normalized under a unique
constraint.

FIND-OR-CREATE: Walk-in customers are inserted inside a savepoint. If a
concurrent request inserted the same plate first, the unique constraint
fires, the savepoint is rolled back and the winning row is re-fetched.
"""

from __future__ import annotations

import logging
import re

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import Customer, WashTransaction, MOTORCYCLE_TYPES
from ..validation import ConflictError, NotFoundError, ValidationError, optional_str, require_bool
from .activity_service import append_activity_event
from .concurrency import begin_write_transaction, unit_of_work


logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")

MAX_PLATE_LENGTH = 20
UPDATABLE_FIELDS = {"name", "phone", "email", "motorcycle_type", "is_member"}
FIELD_MAX_LENGTHS = {"name": 128, "phone": 32, "email": 255}


def normalize_plate(plate: str | None) -> str:
    """Uppercase and strip all whitespace; raises if nothing is left."""
    key = _WHITESPACE.sub("", "" if plate is None else str(plate)).upper()
    if not key:
        raise ValidationError("license_plate is required")
    if len(key) > MAX_PLATE_LENGTH:
        raise ValidationError(f"license_plate exceeds max length {MAX_PLATE_LENGTH}")
    return key


def find_by_plate(plate: str | None) -> Customer | None:
    key = normalize_plate(plate)
    return db.session.query(Customer).filter_by(license_plate=key).first()


def resolve_by_id(customer_id: int) -> Customer:
    customer = db.session.get(Customer, customer_id)
    if not customer:
        raise NotFoundError("Customer not found")
    return customer


def _insert_customer(customer: Customer) -> tuple[Customer, bool]:
    """
    Insert inside a savepoint; on a duplicate plate return the existing row.

    Returns (customer, created). Flushes only; the caller owns the transaction.
    """
    begin_write_transaction()
    try:
        with db.session.begin_nested():
            db.session.add(customer)
    except IntegrityError:
        existing = db.session.query(Customer).filter_by(license_plate=customer.license_plate).first()
        if existing is None:
            raise
        logger.info("customer.insert_race plate=%s winner_id=%s", customer.license_plate, existing.id)
        return existing, False
    return customer, True


def resolve(plate: str | None, fallback_name: str | None = None, fallback_phone: str | None = None) -> Customer:
    """
    Return the customer owning the plate, creating a walk-in if there is none.

    Existing customers are returned unchanged. Statistics are not touched here.
    """
    key = normalize_plate(plate)

    customer = db.session.query(Customer).filter_by(license_plate=key).first()
    if customer:
        return customer

    name = str(fallback_name or "").strip()
    if not name:
        raise ValidationError("customer_name is required for a new customer")

    customer, created = _insert_customer(
        Customer(
            license_plate=key,
            name=name[:128],
            phone=(fallback_phone or "").strip() or None,
            is_member=False,
            loyalty_count=0,
            free_wash_available=False,
            total_washes=0,
            total_spent=0,
        )
    )
    if created:
        logger.info("customer.created walk_in plate=%s id=%s", key, customer.id)
    return customer


def register_customer(
    *,
    license_plate: str,
    name: str,
    phone: str | None = None,
    email: str | None = None,
    motorcycle_type: str | None = None,
    is_member: bool = True,
    actor_user_id: int | None = None,
) -> Customer:
    """Explicit registration; a plate that is already known is a conflict."""
    key = normalize_plate(license_plate)
    name = str(name or "").strip()
    if not name:
        raise ValidationError("name is required")

    motorcycle_type = motorcycle_type or "motor_kecil"
    if motorcycle_type not in MOTORCYCLE_TYPES:
        raise ValidationError(
            f"Invalid motorcycle type. Must be: {', '.join(MOTORCYCLE_TYPES)}"
        )

    with unit_of_work():
        if db.session.query(Customer.id).filter_by(license_plate=key).first():
            raise ConflictError("License plate already registered")

        customer = Customer(
            license_plate=key,
            name=name[:128],
            phone=phone,
            email=email,
            motorcycle_type=motorcycle_type,
            is_member=bool(is_member),
            loyalty_count=0,
            free_wash_available=False,
            total_washes=0,
            total_spent=0,
        )
        db.session.add(customer)
        try:
            db.session.flush()
        except IntegrityError as exc:
            raise ConflictError("License plate already registered") from exc

        append_activity_event(
            event_type="customer.registered",
            entity_type="customer",
            entity_id=customer.id,
            actor_user_id=actor_user_id,
            note=key,
        )

    logger.info("customer.created member=%s plate=%s id=%s", customer.is_member, key, customer.id)
    return customer


def update_customer(customer_id: int, changes: dict, *, actor_user_id: int | None = None) -> Customer:
    for key in changes:
        if key not in UPDATABLE_FIELDS:
            raise ValidationError(f"Field not allowed: {key}")
    if not changes:
        raise ValidationError("No fields to update")

    if "motorcycle_type" in changes and changes["motorcycle_type"] not in MOTORCYCLE_TYPES:
        raise ValidationError(f"Invalid motorcycle type. Must be: {', '.join(MOTORCYCLE_TYPES)}")
    changes = dict(changes)
    for key, max_length in FIELD_MAX_LENGTHS.items():
        if key in changes:
            changes[key] = optional_str(changes, key, max_length=max_length)
    if "name" in changes and not changes["name"]:
        raise ValidationError("name cannot be blank")

    with unit_of_work():
        customer = resolve_by_id(customer_id)
        for key, value in changes.items():
            if key == "is_member":
                value = require_bool(changes, "is_member")
            elif isinstance(value, str):
                value = value.strip() or None
            setattr(customer, key, value)
        db.session.flush()

        append_activity_event(
            event_type="customer.updated",
            entity_type="customer",
            entity_id=customer.id,
            actor_user_id=actor_user_id,
            payload={"fields": sorted(changes)},
        )

    return customer


def delete_customer(customer_id: int, *, actor_user_id: int | None = None) -> None:
    with unit_of_work():
        customer = resolve_by_id(customer_id)

        owns_transactions = (
            db.session.query(WashTransaction.id).filter_by(customer_id=customer.id).first()
        )
        if owns_transactions:
            raise ConflictError("Cannot delete customer with existing transactions")

        append_activity_event(
            event_type="customer.deleted",
            entity_type="customer",
            entity_id=customer.id,
            actor_user_id=actor_user_id,
            note=customer.license_plate,
        )
        db.session.delete(customer)

    logger.info("customer.deleted id=%s", customer_id)


def list_customers(
    *,
    search: str | None = None,
    is_member: bool | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Customer], int]:
    query = db.session.query(Customer)
    if is_member is not None:
        query = query.filter(Customer.is_member.is_(is_member))
    if search:
        term = f"%{search.strip()}%"
        plate_term = f"%{_WHITESPACE.sub('', search).upper()}%"
        query = query.filter(
            or_(
                Customer.name.ilike(term),
                Customer.phone.ilike(term),
                Customer.license_plate.like(plate_term),
            )
        )

    total = query.count()
    rows = query.order_by(Customer.created_at.desc(), Customer.id.desc()).offset(offset).limit(limit).all()
    return rows, total
