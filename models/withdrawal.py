"""Withdrawal request model.

Users request a payout of their collected balance; an admin approves it
(recording the settlement UTR number) or rejects it with a reason.

Status flow:
- pending -> approved: sets utrNumber, clears rejectionReason
- pending -> rejected: sets rejectionReason, clears utrNumber
Approved and rejected requests are final.
"""

from __future__ import annotations

import random
import time
from datetime import datetime, timedelta, timezone


STATUS_PENDING = 'pending'
STATUS_APPROVED = 'approved'
STATUS_REJECTED = 'rejected'
STATUSES = (STATUS_PENDING, STATUS_APPROVED, STATUS_REJECTED)

MODE_UPI = 'upi'
MODE_BANK = 'bank'
MODES = (MODE_UPI, MODE_BANK)

IST = timezone(timedelta(hours=5, minutes=30))

_SYSTEM_FIELDS = ('$id', '$collectionId', '$databaseId', '$createdAt', '$updatedAt', '$permissions', '$sequence')


class InvalidTransition(Exception):
    def __init__(self, current: str | None, target: str):
        super().__init__(f"Cannot move withdrawal from '{current}' to '{target}'")
        self.current = current
        self.target = target


def generate_withdrawal_id() -> str:
    """wdh_<epoch ms><3 random digits>"""
    return f"wdh_{int(time.time() * 1000)}{random.randint(100, 999)}"


def strip_system_fields(doc: dict) -> dict:
    return {k: v for k, v in doc.items() if k not in _SYSTEM_FIELDS}


def new_withdrawal_fields(
    *,
    user_id: str,
    holder_name: str,
    amount: int,
    mode: str,
    upi_id: str | None = None,
    bank_name: str | None = None,
    account_number: str | None = None,
    ifsc_code: str | None = None,
    now: datetime | None = None,
) -> dict:
    created = now or datetime.now(IST)
    return {
        'id': generate_withdrawal_id(),
        'userId': user_id,
        'holderName': holder_name,
        'amount': amount,
        'mode': mode,
        'upiId': upi_id or None,
        'bankName': bank_name or None,
        'accountNumber': account_number or None,
        'ifscCode': ifsc_code or None,
        'status': STATUS_PENDING,
        'createdAt': created.isoformat(),
    }


def approval_fields(current_status: str | None, utr_number: str) -> dict:
    if current_status != STATUS_PENDING:
        raise InvalidTransition(current_status, STATUS_APPROVED)
    return {
        'status': STATUS_APPROVED,
        'utrNumber': utr_number,
        'rejectionReason': None,
    }


def rejection_fields(current_status: str | None, reason: str) -> dict:
    if current_status != STATUS_PENDING:
        raise InvalidTransition(current_status, STATUS_REJECTED)
    return {
        'status': STATUS_REJECTED,
        'rejectionReason': reason,
        'utrNumber': None,
    }
