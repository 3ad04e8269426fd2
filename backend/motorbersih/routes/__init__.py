# Overview: Shared helpers for API blueprints; maps operation Results onto HTTP responses.

from __future__ import annotations

from flask import current_app, jsonify, request, g

from ..operations import Operation, Result, execute
from ..validation import ErrorKind


STATUS_BY_KIND = {
    ErrorKind.VALIDATION: 400,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.CONFLICT: 409,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.STORAGE: 500,
}


def result_response(result: Result, success_status: int = 200):
    if result.ok:
        return jsonify(result.value), success_status

    body = {"error": result.message, "kind": result.error_kind.value}
    if result.details:
        body["details"] = result.details
    return jsonify(body), STATUS_BY_KIND.get(result.error_kind, 500)


def json_payload() -> dict | None:
    """Request body as a dict; None when the body is not a JSON object."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


def run(operation: Operation, payload: dict | None, success_status: int = 200):
    if payload is None:
        return jsonify({"error": "Invalid JSON payload", "kind": ErrorKind.VALIDATION.value}), 400
    result = execute(operation, payload, getattr(g, "actor", None))
    if result.error_kind is ErrorKind.STORAGE:
        current_app.logger.error("Operation %s failed: %s %s", operation.value, request.method, request.path)
    return result_response(result, success_status)
