"""
Webhook event model - one immutable record per accepted gateway delivery
"""
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class WebhookEvent:
    payload: str
    qr_code_id: str
    payment_id: str
    rrn_number: Optional[str] = None
    amount: Optional[int] = None
    vpa: Optional[str] = None
    created_at: Optional[str] = None

    def to_fields(self) -> dict:
        return {
            'payload': self.payload,
            'qrCodeId': self.qr_code_id,
            'paymentId': self.payment_id,
            'rrnNumber': self.rrn_number,
            'amount': self.amount,
            'vpa': self.vpa,
            'created_at': self.created_at,
        }

    def __repr__(self):
        return f'<WebhookEvent {self.payment_id} qr={self.qr_code_id}>'
