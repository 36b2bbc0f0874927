"""Withdrawal routes - payout request + approval workflow.

Workflow:
- User: creates a withdrawal request (pending) by UPI or bank transfer.
- Admin: approves (with the settlement UTR number) or rejects (with a reason).
"""

from __future__ import annotations

import logging

from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query
from flask import Blueprint, current_app, request

from extensions import get_services
from models.withdrawal import (
    MODE_BANK,
    MODE_UPI,
    MODES,
    STATUSES,
    InvalidTransition,
    approval_fields,
    new_withdrawal_fields,
    rejection_fields,
    strip_system_fields,
)
from utils.rbac import admin_required, self_or_admin_required
from utils.responses import json_error, json_ok


withdrawals_bp = Blueprint('withdrawals', __name__)

logger = logging.getLogger(__name__)


def _collection():
    cfg = current_app.config
    return cfg['APPWRITE_DATABASE_ID'], cfg['APPWRITE_WITHDRAWAL_REQUEST_COLLECTION_ID']


def _positive_int(value) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if isinstance(value, int) and value > 0:
        return value
    return None


def _list_withdrawals(filters: list[str]):
    database_id, collection_id = _collection()
    queries = [
        *filters,
        Query.order_desc('$createdAt'),
        Query.limit(current_app.config['WITHDRAWALS_LIST_LIMIT']),
    ]
    try:
        result = get_services().databases.list_documents(database_id, collection_id, queries)
    except AppwriteException as e:
        logger.error('Error fetching withdrawals: %s', e)
        return json_error(500, 'Failed to fetch withdrawal requests', error=str(e))

    withdrawals = [strip_system_fields(doc) for doc in result.get('documents', [])]
    return json_ok(data={'count': result.get('total', len(withdrawals)), 'withdrawals': withdrawals})


def _status_filter():
    status = request.args.get('status') or None
    if status and status not in STATUSES:
        return None, json_error(400, f"Invalid status. Must be one of: {', '.join(STATUSES)}.")
    return ([Query.equal('status', status)] if status else []), None


def _transition(withdrawal_id: str, build_fields, success_message: str):
    database_id, collection_id = _collection()
    databases = get_services().databases
    try:
        result = databases.list_documents(
            database_id,
            collection_id,
            [Query.equal('id', withdrawal_id), Query.limit(1)],
        )
        documents = result.get('documents') or []
        if not documents:
            return json_error(404, 'Withdrawal request not found')

        doc = documents[0]
        try:
            fields = build_fields(doc.get('status'))
        except InvalidTransition as e:
            return json_error(409, str(e), error='invalid_transition')

        databases.update_document(database_id, collection_id, doc['$id'], fields)
    except AppwriteException as e:
        logger.error('Withdrawal %s update failed: %s', withdrawal_id, e)
        return json_error(500, 'Failed to update withdrawal request', error=str(e))

    logger.info('Withdrawal %s -> %s', withdrawal_id, fields['status'])
    return json_ok(success_message)


@withdrawals_bp.post('/withdraw')
@self_or_admin_required('userId')
def create_withdrawal():
    data = request.get_json(silent=True) or {}
    mode = data.get('mode')
    user_id = data.get('userId')
    holder_name = (data.get('holderName') or '').strip()

    if mode not in MODES:
        return json_error(400, 'Invalid mode. Must be upi or bank.')
    if not user_id or not holder_name:
        return json_error(400, 'userId and name are required')

    amount = _positive_int(data.get('amount'))
    if amount is None:
        return json_error(400, 'Amount must be a positive whole number')

    if mode == MODE_UPI and not data.get('upiId'):
        return json_error(400, 'UPI ID is required for UPI withdrawal')
    if mode == MODE_BANK and not (data.get('bankName') and data.get('accountNumber') and data.get('ifscCode')):
        return json_error(400, 'Bank details are incomplete')

    fields = new_withdrawal_fields(
        user_id=user_id,
        holder_name=holder_name,
        amount=amount,
        mode=mode,
        upi_id=data.get('upiId'),
        bank_name=data.get('bankName'),
        account_number=data.get('accountNumber'),
        ifsc_code=data.get('ifscCode'),
    )

    database_id, collection_id = _collection()
    try:
        doc = get_services().databases.create_document(database_id, collection_id, ID.unique(), fields)
    except AppwriteException as e:
        logger.error('Error saving withdraw request: %s', e)
        return json_error(500, 'Failed to save withdrawal request', error=str(e))

    logger.info('Withdrawal request %s created for user %s', fields['id'], user_id)
    return json_ok('Withdrawal request submitted', data=strip_system_fields(doc), status=201)


@withdrawals_bp.get('/withdrawals')
@admin_required
def list_withdrawals():
    filters, err = _status_filter()
    if err:
        return err
    return _list_withdrawals(filters)


@withdrawals_bp.get('/user_withdrawals')
@self_or_admin_required('userId')
def list_user_withdrawals():
    filters, err = _status_filter()
    if err:
        return err

    user_id = request.args.get('userId') or None
    if user_id:
        filters.append(Query.equal('userId', user_id))
    return _list_withdrawals(filters)


@withdrawals_bp.post('/withdrawals/approve')
@admin_required
def approve_withdrawal():
    data = request.get_json(silent=True) or {}
    withdrawal_id = data.get('id')
    utr_number = (data.get('utrNumber') or '').strip()

    if not withdrawal_id or len(utr_number) < 5:
        return json_error(400, 'Invalid ID or UTR number too short')

    return _transition(
        withdrawal_id,
        lambda status: approval_fields(status, utr_number),
        'Withdrawal approved',
    )


@withdrawals_bp.post('/withdrawals/reject')
@admin_required
def reject_withdrawal():
    data = request.get_json(silent=True) or {}
    withdrawal_id = data.get('id')
    reason = (data.get('reason') or '').strip()

    if not withdrawal_id or len(reason) < 4:
        return json_error(400, 'Invalid ID or reason too short')

    return _transition(
        withdrawal_id,
        lambda status: rejection_fields(status, reason),
        'Withdrawal rejected',
    )
