"""Appwrite services (databases, storage, users, account) built from app config.

Server-side calls authenticate with the project API key. Account lookups run
on a separate client scoped to the caller's JWT, so the backend verifies a
session token by asking Appwrite who owns it.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Optional

from appwrite.client import Client
from appwrite.exception import AppwriteException
from appwrite.services.account import Account
from appwrite.services.databases import Databases
from appwrite.services.storage import Storage
from appwrite.services.users import Users


def build_client(config, *, jwt: Optional[str] = None) -> Client:
    client = Client()
    client.set_endpoint(config.get('APPWRITE_ENDPOINT') or 'https://cloud.appwrite.io/v1')
    client.set_project(config.get('APPWRITE_PROJECT_ID') or '')
    if jwt:
        client.set_jwt(jwt)
    elif config.get('APPWRITE_API_KEY'):
        client.set_key(config['APPWRITE_API_KEY'])
    return client


def is_not_found(error: AppwriteException) -> bool:
    return getattr(error, 'code', None) == 404


@dataclass
class BaasServices:
    """Everything the routes need from the hosted backend, built once per app."""

    databases: Any
    storage: Any
    users: Any
    account_for: Callable[[str], Any]

    @classmethod
    def from_config(cls, config) -> 'BaasServices':
        client = build_client(config)
        return cls(
            databases=Databases(client),
            storage=Storage(client),
            users=Users(client),
            account_for=lambda jwt: Account(build_client(config, jwt=jwt)),
        )
