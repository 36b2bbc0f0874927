"""JSON response envelope shared by all routes."""

from __future__ import annotations

from flask import jsonify


def json_ok(message: str = 'OK', *, data=None, status: int = 200, **extra):
    payload = {
        'success': True,
        'message': message,
    }
    if data is not None:
        payload['data'] = data
    payload.update(extra)
    return jsonify(payload), status


def json_error(status: int, message: str, *, error: str | None = None):
    payload = {
        'success': False,
        'message': message,
    }
    if error:
        payload['error'] = error
    return jsonify(payload), status
