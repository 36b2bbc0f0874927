"""
Document models package
"""
from .qr_code import QrCode
from .webhook_event import WebhookEvent
from .withdrawal import InvalidTransition

__all__ = [
    'QrCode',
    'WebhookEvent',
    'InvalidTransition',
]
