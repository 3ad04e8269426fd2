from __future__ import annotations

from ..extensions import db
from motorbersih.time_utils import to_utc_z


MOTORCYCLE_TYPES = ("motor_kecil", "motor_sedang", "motor_besar")


class Customer(db.Model):
    """
    Customer identified by motorcycle license plate.

    PLATE: Stored normalized (uppercase, no whitespace) and unique, so
    "b 1234 abc" and "B1234ABC" are the same customer.

    MEMBERSHIP:
    - Walk-in customers (is_member=False) are created on their first wash
    - Members are registered explicitly

    Denormalized aggregates are maintained by the transaction recorder with
    atomic increments; they are never written from request payloads.

    Never hard-deleted once it owns transactions.
    """
    __tablename__ = "customers"
    __table_args__ = (
        db.UniqueConstraint("license_plate", name="uq_customers_license_plate"),
        db.Index("ix_customers_member", "is_member"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    license_plate = db.Column(db.String(20), nullable=False)

    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    email = db.Column(db.String(255), nullable=True)
    motorcycle_type = db.Column(db.String(16), nullable=False, default="motor_kecil")

    is_member = db.Column(db.Boolean, nullable=False, default=False)

    # Loyalty
    loyalty_count = db.Column(db.Integer, nullable=False, default=0)
    free_wash_available = db.Column(db.Boolean, nullable=False, default=False)

    # Denormalized aggregates (updated when washes are recorded)
    total_washes = db.Column(db.Integer, nullable=False, default=0)
    total_spent = db.Column(db.BigInteger, nullable=False, default=0)
    last_wash_at = db.Column(db.DateTime(timezone=True), nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "license_plate": self.license_plate,
            "name": self.name,
            "phone": self.phone,
            "email": self.email,
            "motorcycle_type": self.motorcycle_type,
            "is_member": self.is_member,
            "loyalty_count": self.loyalty_count,
            "free_wash_available": self.free_wash_available,
            "total_washes": self.total_washes,
            "total_spent": self.total_spent,
            "last_wash_at": to_utc_z(self.last_wash_at) if self.last_wash_at else None,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
