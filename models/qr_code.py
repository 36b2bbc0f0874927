"""
QR code record model
"""
from dataclasses import dataclass
from typing import Optional


@dataclass
class QrCode:
    """A collection QR code.

    `qr_id` is the gateway-assigned business identifier; `document_id` is the
    storage key and is never exposed to the payment gateway.
    """
    qr_id: str
    file_id: str
    image_url: str
    assigned_user_id: Optional[str] = None
    is_active: bool = True
    total_transactions: int = 0
    total_pay_in_amount: int = 0
    created_at: Optional[str] = None
    document_id: Optional[str] = None

    @classmethod
    def from_document(cls, doc: dict) -> 'QrCode':
        return cls(
            qr_id=doc.get('qrId'),
            file_id=doc.get('fileId'),
            image_url=doc.get('imageUrl'),
            assigned_user_id=doc.get('assignedUserId') or None,
            is_active=bool(doc.get('isActive', True)),
            total_transactions=doc.get('totalTransactions') or 0,
            total_pay_in_amount=doc.get('totalPayInAmount') or 0,
            created_at=doc.get('createdAt'),
            document_id=doc.get('$id'),
        )

    def to_fields(self) -> dict:
        """Fields written when the record is first created."""
        return {
            'qrId': self.qr_id,
            'fileId': self.file_id,
            'imageUrl': self.image_url,
            'assignedUserId': self.assigned_user_id,
            'isActive': self.is_active,
            'createdAt': self.created_at,
        }

    def to_dict(self, include_totals: bool = True) -> dict:
        data = {
            'qrId': self.qr_id,
            'fileId': self.file_id,
            'imageUrl': self.image_url,
            'assignedUserId': self.assigned_user_id,
            'createdAt': self.created_at,
            'isActive': self.is_active,
        }
        if include_totals:
            data['totalTransactions'] = self.total_transactions
            data['totalPayInAmount'] = self.total_pay_in_amount
        return data

    def __repr__(self):
        return f'<QrCode {self.qr_id}>'
