"""Razorpay webhook endpoint."""

import logging

from flask import Blueprint, current_app, jsonify, request

from extensions import get_services
from services.webhook_ingestion import WebhookIngestion, WebhookSettings


webhook_bp = Blueprint('webhook', __name__)

logger = logging.getLogger(__name__)


@webhook_bp.post('/webhook')
def razorpay_webhook():
    # NOTE: This endpoint must be publicly reachable via HTTPS for Razorpay to deliver events.
    logger.info('Webhook event received')

    # Signature is computed over the wire bytes, never over re-serialized JSON.
    raw_body = request.get_data(cache=False) or b''
    signature = request.headers.get('x-razorpay-signature')

    ingestion = WebhookIngestion(get_services().databases, WebhookSettings.from_config(current_app.config))
    result = ingestion.handle(raw_body, signature)

    payload = {
        'success': result.ok,
        'message': result.message,
        'state': result.state.value,
    }
    if result.document_id:
        payload['data'] = {'id': result.document_id}
    return jsonify(payload), result.status_code


@webhook_bp.get('/webhook')
def razorpay_webhook_info():
    # Manual reachability check from a browser.
    return jsonify({
        'success': True,
        'message': 'Razorpay webhook endpoint is reachable. Send a POST request to deliver events.',
        'data': {'method': 'POST', 'path': '/webhook'},
    }), 200
