"""Request guards for authentication and role checks.

Callers authenticate with the session JWT issued by the hosted auth provider
(`Authorization: Bearer <jwt>`). The token is verified by asking the provider
for the token's account; admin rights come from the account's `admin` label.

Guards are plain functions returning a `GuardResult`. `guarded(...)` runs them
in order before the view and stops at the first failure, so a route declares
its whole check sequence in one place:

    @qr_codes_bp.get('/qr-codes')
    @guarded(authenticate_token, require_admin)
    def list_qr_codes(): ...
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import wraps
from typing import Callable, Optional

from appwrite.exception import AppwriteException
from flask import g, request

from extensions import get_services
from utils.responses import json_error


logger = logging.getLogger(__name__)

ADMIN_LABEL = 'admin'


@dataclass
class GuardResult:
    ok: bool
    status: int = 200
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> 'GuardResult':
        return cls(ok=True)

    @classmethod
    def failed(cls, status: int, message: str) -> 'GuardResult':
        return cls(ok=False, status=status, message=message)


def current_user() -> dict:
    return getattr(g, 'current_user', None) or {}


def is_admin(user: Optional[dict]) -> bool:
    labels = (user or {}).get('labels') or []
    return ADMIN_LABEL in labels


def _bearer_token() -> str:
    header = request.headers.get('Authorization') or ''
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer':
        return ''
    return token.strip()


def authenticate_token() -> GuardResult:
    token = _bearer_token()
    if not token:
        return GuardResult.failed(401, 'Authentication token is required.')

    try:
        user = get_services().account_for(token).get()
    except AppwriteException as e:
        logger.info('JWT verification failed: %s', e)
        return GuardResult.failed(401, 'Invalid or expired token.')

    g.current_user = user
    return GuardResult.passed()


def require_admin() -> GuardResult:
    if not is_admin(current_user()):
        return GuardResult.failed(403, 'Not authorized: Admin privileges required.')
    return GuardResult.passed()


def require_self_or_admin(param: str) -> Callable[[], GuardResult]:
    """Non-admins may only act on their own user id.

    Every place the id can arrive (path, query string, JSON body) is checked,
    and each one that is present must name the caller.
    """

    def guard() -> GuardResult:
        user = current_user()
        if is_admin(user):
            return GuardResult.passed()

        targets = []
        if param in (request.view_args or {}):
            targets.append(request.view_args[param])
        if param in request.args:
            targets.append(request.args.get(param))
        body = request.get_json(silent=True)
        if isinstance(body, dict) and param in body:
            targets.append(body[param])

        own_id = user.get('$id')
        if targets and own_id and all(t == own_id for t in targets):
            return GuardResult.passed()
        return GuardResult.failed(403, 'Forbidden: you can only access your own records.')

    return guard


def guarded(*guards: Callable[[], GuardResult]):
    def decorator(fn):
        @wraps(fn)
        def wrapper(*args, **kwargs):
            for guard in guards:
                result = guard()
                if not result.ok:
                    return json_error(result.status, result.message)
            return fn(*args, **kwargs)

        return wrapper

    return decorator


def admin_required(fn):
    return guarded(authenticate_token, require_admin)(fn)


def self_or_admin_required(param: str):
    return guarded(authenticate_token, require_self_or_admin(param))
