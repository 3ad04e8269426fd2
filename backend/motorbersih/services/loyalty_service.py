"""
Loyalty Service

WHY: Every Nth completed wash (default 5) earns the customer a free wash.
The counter counts every completed wash, free ones included. Earning is only
checked on paid washes, so redeeming a free wash never re-grants one.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy import update

from ..extensions import db
from ..models import Customer
from ..validation import ValidationError


DEFAULT_THRESHOLD = 5


@dataclass(frozen=True)
class LoyaltyStatus:
    loyalty_count: int
    free_wash_available: bool
    free_wash_earned: bool

    def to_dict(self) -> dict:
        return {
            "loyalty_count": self.loyalty_count,
            "free_wash_available": self.free_wash_available,
            "free_wash_earned": self.free_wash_earned,
        }


def advance(current_count: int, threshold: int = DEFAULT_THRESHOLD) -> tuple[int, bool]:
    """Return (new_count, free_wash_eligible) after one more wash."""
    if threshold <= 0:
        raise ValidationError("Loyalty threshold must be positive")
    if current_count < 0:
        raise ValidationError("Loyalty count cannot be negative")
    new_count = current_count + 1
    return new_count, new_count % threshold == 0


def next_status(
    *,
    current_count: int,
    free_wash_available: bool,
    is_free_wash: bool,
    threshold: int = DEFAULT_THRESHOLD,
) -> LoyaltyStatus:
    """Loyalty state after recording one wash, without touching the database."""
    new_count, eligible = advance(current_count, threshold)
    if is_free_wash:
        return LoyaltyStatus(new_count, False, False)
    earned = eligible
    return LoyaltyStatus(new_count, free_wash_available or earned, earned)


def consume_free_wash(customer: Customer) -> None:
    """Clear the free-wash flag; only called when a free wash is recorded."""
    db.session.execute(
        update(Customer).where(Customer.id == customer.id).values(free_wash_available=False),
        execution_options={"synchronize_session": False},
    )


def grant_free_wash(customer: Customer) -> None:
    db.session.execute(
        update(Customer).where(Customer.id == customer.id).values(free_wash_available=True),
        execution_options={"synchronize_session": False},
    )
