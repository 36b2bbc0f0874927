"""
Appwrite backend services container
"""
from .services import BaasServices, build_client, is_not_found

__all__ = [
    'BaasServices',
    'build_client',
    'is_not_found',
]
