"""Transaction (webhook event) listing with QR ownership filtering.

Two steps: resolve which QR codes the caller may see, then query the webhook
collection for those QR ids, newest first, with cursor pagination.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional

from appwrite.query import Query


logger = logging.getLogger(__name__)


@dataclass
class TransactionPage:
    transactions: list = field(default_factory=list)
    next_cursor: Optional[str] = None

    def to_dict(self) -> dict:
        return {'transactions': self.transactions, 'nextCursor': self.next_cursor}


def parse_limit(raw, *, default: int = 25, maximum: int = 50) -> int:
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value <= 0:
        return default
    return min(value, maximum)


class TransactionLister:
    def __init__(self, databases, *, database_id: str, qrcode_collection_id: str, webhook_collection_id: str):
        self.databases = databases
        self.database_id = database_id
        self.qrcode_collection_id = qrcode_collection_id
        self.webhook_collection_id = webhook_collection_id

    @classmethod
    def from_config(cls, databases, config) -> 'TransactionLister':
        return cls(
            databases,
            database_id=config['APPWRITE_DATABASE_ID'],
            qrcode_collection_id=config['APPWRITE_QRCODE_COLLECTION_ID'],
            webhook_collection_id=config['APPWRITE_WEBHOOK_DATA_COLLECTION_ID'],
        )

    def qr_ids_for_user(self, user_id: str) -> list[str]:
        result = self.databases.list_documents(
            self.database_id,
            self.qrcode_collection_id,
            [Query.equal('assignedUserId', user_id)],
        )
        return [doc.get('qrId') for doc in result.get('documents', []) if doc.get('qrId')]

    def _fetch(self, filters: list[str], limit: int, cursor: Optional[str]) -> TransactionPage:
        queries = [*filters, Query.order_desc('created_at'), Query.limit(limit)]
        if cursor:
            queries.append(Query.cursor_after(cursor))

        result = self.databases.list_documents(self.database_id, self.webhook_collection_id, queries)
        docs = result.get('documents', [])
        next_cursor = docs[-1].get('$id') if len(docs) == limit else None
        return TransactionPage(transactions=docs, next_cursor=next_cursor)

    def for_admin(
        self,
        *,
        user_id: Optional[str] = None,
        qr_id: Optional[str] = None,
        limit: int = 25,
        cursor: Optional[str] = None,
    ) -> TransactionPage:
        filters: list[str] = []

        if user_id and qr_id:
            if qr_id not in self.qr_ids_for_user(user_id):
                logger.info('QR ID %s does not belong to user %s', qr_id, user_id)
                return TransactionPage()
            filters.append(Query.equal('qrCodeId', qr_id))
        elif qr_id:
            filters.append(Query.equal('qrCodeId', qr_id))
        elif user_id:
            owned = self.qr_ids_for_user(user_id)
            if not owned:
                return TransactionPage()
            filters.append(Query.equal('qrCodeId', owned))

        return self._fetch(filters, limit, cursor)

    def for_user(
        self,
        user_id: str,
        *,
        qr_id: Optional[str] = None,
        limit: int = 25,
        cursor: Optional[str] = None,
    ) -> TransactionPage:
        owned = self.qr_ids_for_user(user_id)

        if qr_id:
            if qr_id not in owned:
                logger.warning('QR ID %s does not belong to user %s', qr_id, user_id)
                return TransactionPage()
            filters = [Query.equal('qrCodeId', qr_id)]
        else:
            if not owned:
                return TransactionPage()
            filters = [Query.equal('qrCodeId', owned)]

        return self._fetch(filters, limit, cursor)
