from __future__ import annotations

from ..extensions import db
from motorbersih.time_utils import to_utc_z


class WashTransaction(db.Model):
    """
    A completed motorcycle wash.

    PRICING:
    - original_price: list price of the wash
    - price: amount charged (0 for a loyalty free wash)
    - commission_amount / commission_rate: snapshot at recording time

    LIFECYCLE: completed -> cancelled. Otherwise immutable except the
    administrative fields payment_method and notes.
    """
    __tablename__ = "transactions"
    __table_args__ = (
        db.UniqueConstraint("transaction_code", name="uq_transactions_code"),
        db.Index("ix_transactions_operator_created", "operator_id", "created_at"),
        db.Index("ix_transactions_customer_created", "customer_id", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    transaction_code = db.Column(db.String(32), nullable=False)

    customer_id = db.Column(db.Integer, db.ForeignKey("customers.id"), nullable=False, index=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=False, index=True)

    price = db.Column(db.Integer, nullable=False)
    original_price = db.Column(db.Integer, nullable=False)
    is_free_wash = db.Column(db.Boolean, nullable=False, default=False)

    commission_rate = db.Column(db.Numeric(5, 2), nullable=False)
    commission_amount = db.Column(db.Integer, nullable=False)

    # cash | transfer | qris | ewallet
    payment_method = db.Column(db.String(16), nullable=False)

    # completed | cancelled
    status = db.Column(db.String(16), nullable=False, default="completed", index=True)
    notes = db.Column(db.Text, nullable=True)

    created_by_user_id = db.Column(db.Integer, nullable=True)
    cancelled_by_user_id = db.Column(db.Integer, nullable=True)
    cancelled_at = db.Column(db.DateTime(timezone=True), nullable=True)
    cancel_reason = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    customer = db.relationship("Customer", backref=db.backref("transactions", lazy=True))
    operator = db.relationship("Operator", backref=db.backref("transactions", lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "transaction_code": self.transaction_code,
            "customer_id": self.customer_id,
            "operator_id": self.operator_id,
            "price": self.price,
            "original_price": self.original_price,
            "commission_rate": str(self.commission_rate),
            "commission_amount": self.commission_amount,
            "is_loyalty_free": self.is_free_wash,
            "payment_method": self.payment_method,
            "status": self.status,
            "notes": self.notes,
            "created_by_user_id": self.created_by_user_id,
            "cancelled_by_user_id": self.cancelled_by_user_id,
            "cancelled_at": to_utc_z(self.cancelled_at) if self.cancelled_at else None,
            "cancel_reason": self.cancel_reason,
            "created_at": to_utc_z(self.created_at),
        }


class CommissionRecord(db.Model):
    """
    Commission ledger entry, exactly one per transaction.

    LIFECYCLE: pending -> paid (batch payout only). Never paid -> pending.
    """
    __tablename__ = "commissions"
    __table_args__ = (
        db.UniqueConstraint("transaction_id", name="uq_commissions_transaction"),
        db.Index("ix_commissions_operator_status", "operator_id", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    operator_id = db.Column(db.Integer, db.ForeignKey("operators.id"), nullable=False, index=True)
    transaction_id = db.Column(db.Integer, db.ForeignKey("transactions.id"), nullable=False)

    amount = db.Column(db.Integer, nullable=False)

    # pending | paid
    status = db.Column(db.String(16), nullable=False, default="pending")
    paid_at = db.Column(db.DateTime(timezone=True), nullable=True)
    paid_by_user_id = db.Column(db.Integer, nullable=True)
    notes = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    operator = db.relationship("Operator", backref=db.backref("commissions", lazy=True))
    transaction = db.relationship("WashTransaction", backref=db.backref("commission", uselist=False, lazy=True))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "operator_id": self.operator_id,
            "transaction_id": self.transaction_id,
            "amount": self.amount,
            "status": self.status,
            "paid_at": to_utc_z(self.paid_at) if self.paid_at else None,
            "paid_by_user_id": self.paid_by_user_id,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }
