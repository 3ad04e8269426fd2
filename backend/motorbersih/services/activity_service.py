# Overview: Service-layer operations for the activity log; append-only audit events.

from __future__ import annotations

import json
from typing import Optional
from datetime import datetime

from ..extensions import db
from ..models import ActivityEvent
from motorbersih.time_utils import utcnow
"""
Activity Log Invariants

- Append-only audit log for domain events.
- No domain/business logic in the log itself.
- Events are written inside the same DB transaction as the change they record
  (flush, never commit).
- occurred_at is business time; created_at is system time (DB default).
"""


def append_activity_event(
    *,
    event_type: str,
    entity_type: str,
    entity_id: int,
    actor_user_id: int | None = None,
    operator_id: int | None = None,
    transaction_id: int | None = None,
    occurred_at: Optional[datetime] = None,
    note: Optional[str] = None,
    payload: Optional[dict] = None,
) -> ActivityEvent:
    ev = ActivityEvent(
        event_type=event_type,
        entity_type=entity_type,
        entity_id=entity_id,
        actor_user_id=actor_user_id,
        operator_id=operator_id,
        transaction_id=transaction_id,
        occurred_at=occurred_at or utcnow(),
        note=note,
        payload=json.dumps(payload, sort_keys=True, default=str) if payload else None,
    )
    db.session.add(ev)
    db.session.flush()  # ensures ev.id is assigned without committing
    return ev

