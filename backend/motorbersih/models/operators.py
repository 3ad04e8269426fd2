from __future__ import annotations

from ..extensions import db
from motorbersih.time_utils import to_utc_z


class Operator(db.Model):
    """
    Wash operator earning a percentage commission on every wash.

    ACCOUNTING:
    - total_commission accrues once, when a wash is recorded
    - Payout only moves commission records from pending to paid; it never
      touches total_commission
    - total_commission never decreases

    STATUS: active | inactive. Inactive operators cannot record washes.
    """
    __tablename__ = "operators"
    __table_args__ = (
        db.UniqueConstraint("user_id", name="uq_operators_user"),
        db.Index("ix_operators_status", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    # Login identity issued by the auth collaborator (optional)
    user_id = db.Column(db.Integer, nullable=True)

    name = db.Column(db.String(128), nullable=False)
    phone = db.Column(db.String(32), nullable=True)
    bank_name = db.Column(db.String(64), nullable=True)
    bank_account = db.Column(db.String(64), nullable=True)

    # Percent, e.g. 30.00
    commission_rate = db.Column(db.Numeric(5, 2), nullable=False)

    total_commission = db.Column(db.BigInteger, nullable=False, default=0)
    total_washes = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "name": self.name,
            "phone": self.phone,
            "bank_name": self.bank_name,
            "bank_account": self.bank_account,
            "commission_rate": str(self.commission_rate),
            "total_commission": self.total_commission,
            "total_washes": self.total_washes,
            "status": self.status,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
