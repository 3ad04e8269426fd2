# Overview: Service-layer operations for caller identity; signed bearer tokens.

"""
Auth Service

WHY: The settlement core only needs an already-authenticated caller
(id, role). Identity is carried in a bearer token signed with SECRET_KEY;
there is one token scheme and no server-side session state.

ROLES:
- admin: everything, including commission payout and manual attendance
- cashier: record washes, manage customers
- operator: own attendance (Operator.user_id matches the token's uid)
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

ROLES = ("admin", "cashier", "operator")

_SALT = "motorbersih.auth"


@dataclass(frozen=True)
class Actor:
    id: int
    role: str


class AuthError(ValueError):
    """Raised for invalid token requests."""
    pass


def _serializer() -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(current_app.config["SECRET_KEY"], salt=_SALT)


def issue_token(user_id: int, role: str) -> str:
    if role not in ROLES:
        raise AuthError(f"role must be one of: {', '.join(ROLES)}")
    if not isinstance(user_id, int) or isinstance(user_id, bool) or user_id <= 0:
        raise AuthError("user_id must be a positive integer")
    return _serializer().dumps({"uid": user_id, "role": role})


def verify_token(token: str) -> Actor | None:
    """Return the caller for a valid, unexpired token, else None."""
    max_age = current_app.config.get("AUTH_TOKEN_MAX_AGE_SECONDS", 86400)
    try:
        data = _serializer().loads(token, max_age=max_age)
    except SignatureExpired:
        return None
    except BadSignature:
        return None

    if not isinstance(data, dict) or data.get("role") not in ROLES:
        return None
    user_id = data.get("uid")
    if not isinstance(user_id, int):
        return None
    return Actor(id=user_id, role=data["role"])
