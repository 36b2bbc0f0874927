"""Razorpay QR webhook ingestion.

Pipeline for one delivery:
  received -> signature_checked -> classified -> recorded -> reconciled

Early exits: rejected_signature, rejected_event_type, rejected_missing_fields
(all 400) and failed_persist (500, so the gateway re-delivers).

Recording is mandatory; reconciling the QR's running totals is best-effort
and never changes the outcome once the event has been recorded.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional

from appwrite.exception import AppwriteException
from appwrite.id import ID
from appwrite.query import Query

from models.webhook_event import WebhookEvent


logger = logging.getLogger(__name__)

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


class IngestionState(str, Enum):
    RECEIVED = 'received'
    SIGNATURE_CHECKED = 'signature_checked'
    CLASSIFIED = 'classified'
    RECORDED = 'recorded'
    RECONCILED = 'reconciled'
    REJECTED_SIGNATURE = 'rejected_signature'
    REJECTED_EVENT_TYPE = 'rejected_event_type'
    REJECTED_MISSING_FIELDS = 'rejected_missing_fields'
    FAILED_PERSIST = 'failed_persist'


@dataclass(frozen=True)
class WebhookSettings:
    secret: str
    accepted_event: str
    database_id: str
    webhook_collection_id: str
    qrcode_collection_id: str

    @classmethod
    def from_config(cls, config) -> 'WebhookSettings':
        return cls(
            secret=config.get('RAZORPAY_WEBHOOK_SECRET') or '',
            accepted_event=config.get('RAZORPAY_ACCEPTED_EVENT') or 'qr_code.credited',
            database_id=config.get('APPWRITE_DATABASE_ID') or '',
            webhook_collection_id=config.get('APPWRITE_WEBHOOK_DATA_COLLECTION_ID') or '',
            qrcode_collection_id=config.get('APPWRITE_QRCODE_COLLECTION_ID') or '',
        )


@dataclass
class IngestionResult:
    state: IngestionState
    status_code: int
    message: str
    document_id: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.state == IngestionState.RECONCILED


@dataclass(frozen=True)
class ClassifiedEvent:
    event: WebhookEvent
    payments_count: Optional[int] = None
    payments_amount: Optional[int] = None

    @property
    def has_totals(self) -> bool:
        return self.payments_count is not None and self.payments_amount is not None


def _dig(obj: Any, *keys: str) -> Any:
    for key in keys:
        if not isinstance(obj, dict):
            return None
        obj = obj.get(key)
    return obj


def _as_int(value: Any) -> Optional[int]:
    """Integer minor-unit amounts only; floats and booleans are not coerced."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        v = value.strip()
        if v.lstrip('-').isdigit():
            return int(v)
    return None


def _as_str(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list)):
        return None
    s = str(value).strip()
    return s or None


def epoch_seconds_to_iso(value: Any) -> Optional[str]:
    seconds = _as_int(value)
    if seconds is None:
        return None
    try:
        dt = _EPOCH + timedelta(seconds=seconds)
    except (OverflowError, ValueError):
        # Outside the datetime range (years 1-9999).
        return None
    return dt.isoformat(timespec='milliseconds').replace('+00:00', 'Z')


class SignatureVerifier:
    def __init__(self, secret: str):
        self.secret = secret

    def expected_signature(self, raw_body: bytes) -> str:
        return hmac.new(self.secret.encode('utf-8'), raw_body or b'', hashlib.sha256).hexdigest()

    def verify(self, raw_body: bytes, signature: Optional[str]) -> tuple[bool, Optional[str]]:
        """Check the header signature against the untouched request bytes."""
        if not self.secret:
            logger.error('Webhook secret is not configured; refusing to verify signatures')
            return False, 'invalid_signature'
        if not signature:
            return False, 'missing_signature'
        if not hmac.compare_digest(self.expected_signature(raw_body), signature.strip()):
            return False, 'invalid_signature'
        return True, None


class EventClassifier:
    def __init__(self, accepted_event: str):
        self.accepted_event = accepted_event

    def classify(self, raw_body: bytes) -> tuple[Optional[ClassifiedEvent], Optional[str]]:
        try:
            payload_text = raw_body.decode('utf-8')
            payload = json.loads(payload_text or '{}')
        except (UnicodeDecodeError, json.JSONDecodeError):
            return None, 'unsupported_event_type'

        event_type = payload.get('event') if isinstance(payload, dict) else None
        if event_type != self.accepted_event:
            return None, 'unsupported_event_type'

        qr_entity = _dig(payload, 'payload', 'qr_code', 'entity')
        payment_entity = _dig(payload, 'payload', 'payment', 'entity')

        qr_code_id = _as_str(_dig(qr_entity, 'id'))
        if not qr_code_id:
            return None, 'missing_qr_code_id'

        payment_id = _as_str(_dig(payment_entity, 'id'))
        if not payment_id:
            return None, 'missing_payment_id'

        event = WebhookEvent(
            payload=payload_text,
            qr_code_id=qr_code_id,
            payment_id=payment_id,
            rrn_number=_as_str(_dig(payment_entity, 'acquirer_data', 'rrn')),
            amount=_as_int(_dig(payment_entity, 'amount')),
            vpa=_as_str(_dig(payment_entity, 'vpa')),
            created_at=epoch_seconds_to_iso(_dig(payment_entity, 'created_at')),
        )
        return ClassifiedEvent(
            event=event,
            payments_count=_as_int(_dig(qr_entity, 'payments_count_received')),
            payments_amount=_as_int(_dig(qr_entity, 'payments_amount_received')),
        ), None


class TransactionRecorder:
    def __init__(self, databases, settings: WebhookSettings):
        self.databases = databases
        self.settings = settings

    def record(self, event: WebhookEvent) -> str:
        """Persist the event; raises AppwriteException when the store rejects it."""
        doc = self.databases.create_document(
            self.settings.database_id,
            self.settings.webhook_collection_id,
            ID.unique(),
            event.to_fields(),
        )
        return doc.get('$id')


class QrTotalsReconciler:
    def __init__(self, databases, settings: WebhookSettings):
        self.databases = databases
        self.settings = settings

    def reconcile(self, qr_id: str, payments_count: int, payments_amount: int) -> bool:
        """Overwrite the QR's running totals with the gateway's cumulative values.

        Returns False when the QR is unknown or the update failed.
        """
        try:
            result = self.databases.list_documents(
                self.settings.database_id,
                self.settings.qrcode_collection_id,
                [Query.equal('qrId', qr_id), Query.limit(1)],
            )
            documents = result.get('documents') or []
            if not documents:
                logger.warning('QR code with qrId %s not found; totals not updated', qr_id)
                return False

            self.databases.update_document(
                self.settings.database_id,
                self.settings.qrcode_collection_id,
                documents[0]['$id'],
                {
                    'totalTransactions': payments_count,
                    'totalPayInAmount': payments_amount,
                },
            )
        except (AppwriteException, OSError) as e:
            logger.warning('Failed to update QR totals for qrId %s: %s', qr_id, e)
            return False

        logger.info('QR totals updated for qrId %s', qr_id)
        return True


_REJECTIONS = {
    'missing_signature': (IngestionState.REJECTED_SIGNATURE, 'Missing Razorpay signature'),
    'invalid_signature': (IngestionState.REJECTED_SIGNATURE, 'Invalid signature'),
    'unsupported_event_type': (IngestionState.REJECTED_EVENT_TYPE, 'Unsupported event type'),
    'missing_qr_code_id': (IngestionState.REJECTED_MISSING_FIELDS, 'QR Code ID not found'),
    'missing_payment_id': (IngestionState.REJECTED_MISSING_FIELDS, 'Payment ID not found'),
}


class WebhookIngestion:
    def __init__(self, databases, settings: WebhookSettings):
        self.verifier = SignatureVerifier(settings.secret)
        self.classifier = EventClassifier(settings.accepted_event)
        self.recorder = TransactionRecorder(databases, settings)
        self.reconciler = QrTotalsReconciler(databases, settings)

    @staticmethod
    def _reject(reason: str) -> IngestionResult:
        state, message = _REJECTIONS[reason]
        return IngestionResult(state=state, status_code=400, message=message)

    def handle(self, raw_body: bytes, signature: Optional[str]) -> IngestionResult:
        state = IngestionState.RECEIVED

        ok, err = self.verifier.verify(raw_body, signature)
        if not ok:
            if err == 'missing_signature':
                logger.warning('Webhook rejected: signature header absent')
            else:
                logger.warning('Webhook rejected: signature mismatch')
            return self._reject(err)
        state = IngestionState.SIGNATURE_CHECKED

        classified, err = self.classifier.classify(raw_body)
        if classified is None:
            logger.warning('Webhook rejected (%s) in state %s; payload keys: %s',
                           err, state.value, _payload_shape(raw_body))
            return self._reject(err)
        state = IngestionState.CLASSIFIED
        event = classified.event

        try:
            document_id = self.recorder.record(event)
        except (AppwriteException, OSError) as e:
            logger.error('Failed to save webhook for payment %s: %s', event.payment_id, e)
            return IngestionResult(
                state=IngestionState.FAILED_PERSIST,
                status_code=500,
                message='Error saving webhook',
            )
        state = IngestionState.RECORDED
        logger.info('Webhook data saved: %s (payment %s, qr %s)', document_id, event.payment_id, event.qr_code_id)

        if classified.has_totals:
            self.reconciler.reconcile(event.qr_code_id, classified.payments_count, classified.payments_amount)

        return IngestionResult(
            state=IngestionState.RECONCILED,
            status_code=200,
            message='Webhook received and saved',
            document_id=document_id,
        )


def _payload_shape(raw_body: bytes) -> list[str]:
    try:
        payload = json.loads(raw_body.decode('utf-8') or '{}')
    except (UnicodeDecodeError, json.JSONDecodeError):
        return ['<unparsable>']
    if not isinstance(payload, dict):
        return [type(payload).__name__]
    return sorted(payload.keys())
