from __future__ import annotations

from ..extensions import db
from motorbersih.time_utils import to_utc_z


class ActivityEvent(db.Model):
    """
    Append-only audit log of domain events.

    Written in the same DB transaction as the change it records, so an event
    exists if and only if the change was committed.
    """
    __tablename__ = "activity_events"
    __table_args__ = (
        db.Index("ix_activity_entity", "entity_type", "entity_id"),
        db.Index("ix_activity_occurred", "occurred_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    event_type = db.Column(db.String(64), nullable=False, index=True)
    entity_type = db.Column(db.String(32), nullable=False)
    entity_id = db.Column(db.Integer, nullable=False)

    actor_user_id = db.Column(db.Integer, nullable=True)
    operator_id = db.Column(db.Integer, nullable=True, index=True)
    transaction_id = db.Column(db.Integer, nullable=True)

    occurred_at = db.Column(db.DateTime(timezone=True), nullable=False)
    note = db.Column(db.Text, nullable=True)
    payload = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "event_type": self.event_type,
            "entity_type": self.entity_type,
            "entity_id": self.entity_id,
            "actor_user_id": self.actor_user_id,
            "operator_id": self.operator_id,
            "transaction_id": self.transaction_id,
            "occurred_at": to_utc_z(self.occurred_at),
            "note": self.note,
            "payload": self.payload,
        }
