# Overview: Request decorators for API routes; authentication, roles and rate limiting.

from __future__ import annotations

from functools import wraps
from flask import current_app, request, jsonify, g

from .services import auth_service


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1]


def require_auth(f):
    """
    Require a valid bearer token and establish the caller.

    Sets g.actor (auth_service.Actor: id, role).

    SECURITY: Returns 401 if:
    - No Authorization header
    - Invalid, tampered or expired token
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        actor = auth_service.verify_token(token)
        if not actor:
            return jsonify({"error": "Invalid or expired token"}), 401

        g.actor = actor
        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles: str):
    """
    Require the authenticated caller to hold one of the given roles.

    MUST be applied after @require_auth.
    """
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            actor = getattr(g, "actor", None)
            if actor is None:
                return jsonify({"error": "Authentication required"}), 401
            if actor.role not in roles:
                current_app.logger.warning(
                    "Permission denied: user=%s role=%s path=%s", actor.id, actor.role, request.path
                )
                return jsonify({"error": "Permission denied", "required_roles": list(roles)}), 403
            return f(*args, **kwargs)

        return decorated_function

    return decorator


def rate_limited(f):
    """
    Apply the app's injected rate limiter, keyed by caller id or client address.

    MUST be applied before @require_auth, so requests that fail authentication
    are counted against their address.

    Returns 429 with Retry-After when the window is exhausted.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        limiter = current_app.extensions.get("rate_limiter")
        if limiter is None:
            return f(*args, **kwargs)

        actor = getattr(g, "actor", None)
        if actor is None:
            token = _bearer_token()
            actor = auth_service.verify_token(token) if token else None
        key = f"user:{actor.id}" if actor else f"ip:{request.remote_addr}"
        decision = limiter.hit(key)
        if not decision.allowed:
            response = jsonify({"error": "Too many requests"})
            response.headers["Retry-After"] = str(decision.retry_after_seconds)
            return response, 429
        return f(*args, **kwargs)

    return decorated_function
