"""Admin routes - user management and transaction history."""

import logging
import re

from appwrite.exception import AppwriteException
from appwrite.id import ID
from flask import Blueprint, current_app, request

from baas import is_not_found
from extensions import get_services
from services.transactions import TransactionLister, parse_limit
from utils.rbac import admin_required, is_admin, self_or_admin_required
from utils.responses import json_error, json_ok


admin_bp = Blueprint('admin', __name__)

logger = logging.getLogger(__name__)


_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def _is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match((value or "").strip()))


def _baas_error(e: AppwriteException, message: str):
    if is_not_found(e):
        return json_error(404, 'User not found')
    return json_error(500, message, error=str(e))


def _protected_admin(user_id: str, action: str):
    """Load the target user; returns an error response when it is an admin."""
    user = get_services().users.get(user_id)
    if is_admin(user):
        return json_error(403, f'Cannot {action} admin users')
    return None


def _lister() -> TransactionLister:
    return TransactionLister.from_config(get_services().databases, current_app.config)


def _limit_arg() -> int:
    cfg = current_app.config
    return parse_limit(
        request.args.get('limit'),
        default=cfg['TRANSACTIONS_DEFAULT_LIMIT'],
        maximum=cfg['TRANSACTIONS_MAX_LIMIT'],
    )


@admin_bp.get('/users')
@admin_required
def list_users():
    try:
        result = get_services().users.list()
    except AppwriteException as e:
        logger.error('List users error: %s', e)
        return json_error(500, 'Failed to fetch users', error=str(e))

    users = [
        {
            '$id': user.get('$id'),
            'email': user.get('email'),
            'name': user.get('name'),
            'status': user.get('status'),
            'labels': user.get('labels') or [],
        }
        for user in result.get('users', [])
    ]
    return json_ok(data=users)


@admin_bp.post('/create-user')
@admin_required
def create_user():
    data = request.get_json(silent=True) or {}
    name = (data.get('name') or '').strip()
    email = (data.get('email') or '').strip()
    password = data.get('password') or ''

    if not name or not email or not password:
        return json_error(400, 'Name, Email and password are required')
    if not _is_valid_email(email):
        return json_error(400, 'Invalid email address')

    try:
        user = get_services().users.create(ID.unique(), email=email, password=password, name=name)
    except AppwriteException as e:
        logger.error('Create user error: %s', e)
        if e.code == 409:
            return json_error(409, str(e))
        return json_error(500, str(e) or 'User creation failed')

    return json_ok(
        'User created successfully',
        data={'$id': user.get('$id'), 'email': user.get('email'), 'name': user.get('name')},
        status=201,
    )


@admin_bp.put('/edit-user/<user_id>')
@admin_required
def edit_user(user_id):
    data = request.get_json(silent=True) or {}
    name = data.get('name')
    email = data.get('email')
    labels = data.get('labels')

    if not name and not email and labels is None:
        return json_error(400, 'At least one field (name or email or labels) is required')
    if labels is not None and not (isinstance(labels, list) and all(isinstance(l, str) for l in labels)):
        return json_error(400, 'Labels must be an array')
    if email and not _is_valid_email(email):
        return json_error(400, 'Invalid email address')

    users = get_services().users
    try:
        denied = _protected_admin(user_id, 'edit')
        if denied:
            return denied

        if name:
            users.update_name(user_id, name)
        if email:
            users.update_email(user_id, email)
        if labels is not None:
            users.update_labels(user_id, labels)
    except AppwriteException as e:
        logger.error('Edit user %s error: %s', user_id, e)
        return _baas_error(e, 'Failed to update user')

    return json_ok('User updated successfully')


@admin_bp.post('/reset-password/<user_id>')
@admin_required
def reset_password(user_id):
    data = request.get_json(silent=True) or {}
    password = data.get('password') or ''

    if len(password) < 6:
        return json_error(400, 'Password must be at least 6 characters')

    try:
        denied = _protected_admin(user_id, 'reset password for')
        if denied:
            return denied
        get_services().users.update_password(user_id, password)
    except AppwriteException as e:
        logger.error('Reset password for %s error: %s', user_id, e)
        return _baas_error(e, 'Failed to reset password')

    return json_ok('Password reset successfully')


@admin_bp.post('/update-user-status')
@admin_required
def update_user_status():
    data = request.get_json(silent=True) or {}
    user_id = data.get('userId')
    status = data.get('status')

    if not user_id or not isinstance(status, bool):
        return json_error(400, 'Missing or invalid fields')

    try:
        denied = _protected_admin(user_id, 'change status of')
        if denied:
            return denied
        result = get_services().users.update_status(user_id, status)
    except AppwriteException as e:
        logger.error('Status update for %s failed: %s', user_id, e)
        return _baas_error(e, 'Failed to update status')

    return json_ok('User status updated', data={'status': result.get('status', status)})


@admin_bp.delete('/delete-user/<user_id>')
@admin_required
def delete_user(user_id):
    try:
        denied = _protected_admin(user_id, 'delete')
        if denied:
            return denied
        get_services().users.delete(user_id)
    except AppwriteException as e:
        logger.error('Delete user %s error: %s', user_id, e)
        return _baas_error(e, 'Failed to delete user')

    return json_ok('User deleted successfully')


@admin_bp.get('/transactions')
@admin_required
def list_transactions():
    user_id = request.args.get('userId') or None
    qr_id = request.args.get('qrId') or None
    cursor = request.args.get('cursor') or None
    logger.debug('Fetching transactions with userId=%s qrId=%s cursor=%s', user_id, qr_id, cursor)

    try:
        page = _lister().for_admin(user_id=user_id, qr_id=qr_id, limit=_limit_arg(), cursor=cursor)
    except AppwriteException as e:
        logger.error('Error fetching transactions: %s', e)
        return json_error(500, 'Failed to fetch transactions', error=str(e))

    return json_ok(data=page.to_dict())


@admin_bp.get('/user/transactions')
@self_or_admin_required('userId')
def list_user_transactions():
    user_id = request.args.get('userId') or None
    if not user_id:
        return json_error(400, 'userId is required')

    qr_id = request.args.get('qrId') or None
    cursor = request.args.get('cursor') or None

    try:
        page = _lister().for_user(user_id, qr_id=qr_id, limit=_limit_arg(), cursor=cursor)
    except AppwriteException as e:
        logger.error('Error fetching transactions for user %s: %s', user_id, e)
        return json_error(500, 'Failed to fetch user transactions', error=str(e))

    return json_ok(data=page.to_dict())
