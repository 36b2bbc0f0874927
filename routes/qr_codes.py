"""QR code routes - QR code records management (admin only)."""

import logging
from datetime import datetime, timezone

from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query
from flask import Blueprint, current_app, request

from extensions import get_services
from models.qr_code import QrCode
from utils.rbac import admin_required, self_or_admin_required
from utils.responses import json_error, json_ok


qr_codes_bp = Blueprint('qr_codes', __name__)

logger = logging.getLogger(__name__)


def _collection():
    cfg = current_app.config
    return cfg['APPWRITE_DATABASE_ID'], cfg['APPWRITE_QRCODE_COLLECTION_ID']


def _find_by_qr_id(qr_id: str):
    database_id, collection_id = _collection()
    result = get_services().databases.list_documents(
        database_id,
        collection_id,
        [Query.equal('qrId', qr_id), Query.limit(1)],
    )
    documents = result.get('documents') or []
    return documents[0] if documents else None


@qr_codes_bp.get('/qr-codes')
@admin_required
def list_qr_codes():
    """All QR codes, most recent first"""
    database_id, collection_id = _collection()
    try:
        result = get_services().databases.list_documents(
            database_id,
            collection_id,
            [
                Query.order_desc('createdAt'),
                Query.limit(current_app.config['QR_CODES_LIST_LIMIT']),
            ],
        )
    except AppwriteException as e:
        logger.error('Error fetching QR codes: %s', e)
        return json_error(500, 'Failed to fetch QR codes.', error=str(e))

    qr_codes = [QrCode.from_document(doc).to_dict() for doc in result.get('documents', [])]
    return json_ok(data=qr_codes)


@qr_codes_bp.post('/create-qr-entry')
@admin_required
def create_qr_entry():
    data = request.get_json(silent=True) or {}
    qr_id = data.get('qrId')
    file_id = data.get('fileId')
    image_url = data.get('imageUrl')

    if not qr_id or not file_id or not image_url:
        return json_error(400, 'Missing required fields: qrId, fileId, or imageUrl.')

    qr_code = QrCode(
        qr_id=qr_id,
        file_id=file_id,
        image_url=image_url,
        created_at=data.get('createdAt') or datetime.now(timezone.utc).isoformat(),
    )

    database_id, collection_id = _collection()
    try:
        # qrId is the key the payment gateway reports back; it must stay unique.
        if _find_by_qr_id(qr_id):
            return json_error(409, f'QR Code {qr_id} already exists.')

        doc = get_services().databases.create_document(
            database_id,
            collection_id,
            ID.unique(),
            qr_code.to_fields(),
        )
    except AppwriteException as e:
        logger.error('Error creating QR code entry: %s', e)
        return json_error(500, 'Failed to create QR code entry.', error=str(e))

    return json_ok(
        'QR Code entry created successfully.',
        data=QrCode.from_document(doc).to_dict(),
        status=201,
    )


@qr_codes_bp.delete('/delete-qr/<qr_id>')
@admin_required
def delete_qr(qr_id):
    """Delete the QR record and its image file"""
    database_id, collection_id = _collection()
    services = get_services()
    try:
        doc = _find_by_qr_id(qr_id)
        if not doc:
            return json_error(404, 'QR Code not found.')

        services.storage.delete_file(current_app.config['APPWRITE_BUCKET_ID'], doc.get('fileId'))
        services.databases.delete_document(database_id, collection_id, doc['$id'])
    except AppwriteException as e:
        logger.error('Error deleting QR code %s: %s', qr_id, e)
        return json_error(500, 'Failed to delete QR code.', error=str(e))

    return json_ok('QR Code and file deleted successfully.')


@qr_codes_bp.put('/toggle-qr-status/<qr_id>')
@admin_required
def toggle_qr_status(qr_id):
    data = request.get_json(silent=True) or {}
    is_active = data.get('isActive')

    if not isinstance(is_active, bool):
        return json_error(400, "Invalid value for 'isActive'.")

    database_id, collection_id = _collection()
    try:
        doc = _find_by_qr_id(qr_id)
        if not doc:
            return json_error(404, 'QR Code not found.')

        get_services().databases.update_document(database_id, collection_id, doc['$id'], {'isActive': is_active})
    except AppwriteException as e:
        logger.error('Error toggling QR code status for %s: %s', qr_id, e)
        return json_error(500, 'Failed to update QR code status.', error=str(e))

    return json_ok('QR Code status updated successfully.')


@qr_codes_bp.put('/assign-qr/<qr_id>')
@admin_required
def assign_qr(qr_id):
    """Assign a user to a QR code, or unlink it with null / empty string"""
    data = request.get_json(silent=True) or {}
    assigned_user_id = data.get('assignedUserId')

    if assigned_user_id is not None and not isinstance(assigned_user_id, str):
        return json_error(400, "Invalid value for 'assignedUserId'.")

    database_id, collection_id = _collection()
    try:
        doc = _find_by_qr_id(qr_id)
        if not doc:
            return json_error(404, 'QR Code not found.')

        get_services().databases.update_document(
            database_id,
            collection_id,
            doc['$id'],
            {'assignedUserId': assigned_user_id or None},
        )
    except AppwriteException as e:
        logger.error('Error updating user assignment for QR code %s: %s', qr_id, e)
        return json_error(500, 'Failed to update user assignment.', error=str(e))

    return json_ok('User assignment updated successfully.')


@qr_codes_bp.get('/qr-codes/user/<user_id>')
@self_or_admin_required('user_id')
def list_user_qr_codes(user_id):
    database_id, collection_id = _collection()
    try:
        result = get_services().databases.list_documents(
            database_id,
            collection_id,
            [Query.equal('assignedUserId', user_id)],
        )
    except AppwriteException as e:
        logger.error('Error fetching QR codes for user %s: %s', user_id, e)
        return json_error(500, 'Failed to fetch user QR codes.', error=str(e))

    qr_codes = [
        QrCode.from_document(doc).to_dict(include_totals=False)
        for doc in result.get('documents', [])
    ]
    return json_ok(data=qr_codes)
