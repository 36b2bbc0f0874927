"""
Shared pytest fixtures.

The hosted backend is replaced by in-memory fakes with the same method
surface as the Appwrite SDK `Databases`, `Storage`, `Users` and `Account`
services. `FakeDatabases` evaluates the serialized queries the app sends (equal,
orderDesc/orderAsc, limit, cursorAfter), so routes are exercised end to end.
"""

import copy
import hashlib
import hmac
import json
from datetime import datetime, timedelta, timezone

import pytest
from appwrite.exception import AppwriteException

from app import create_app
from baas import BaasServices
from config.settings import TestingConfig


DB = TestingConfig.APPWRITE_DATABASE_ID
QR_COLLECTION = TestingConfig.APPWRITE_QRCODE_COLLECTION_ID
WEBHOOK_COLLECTION = TestingConfig.APPWRITE_WEBHOOK_DATA_COLLECTION_ID
WITHDRAWAL_COLLECTION = TestingConfig.APPWRITE_WITHDRAWAL_REQUEST_COLLECTION_ID
BUCKET = TestingConfig.APPWRITE_BUCKET_ID
WEBHOOK_SECRET = TestingConfig.RAZORPAY_WEBHOOK_SECRET

ADMIN_TOKEN = 'admin-jwt'
USER_TOKEN = 'user-jwt'


class FakeDatabases:
    def __init__(self):
        self.collections = {}
        self.calls = []
        self.fail_on = {}
        self._clock = datetime(2025, 1, 1, tzinfo=timezone.utc)
        self._seq = 0

    def _docs(self, database_id, collection_id):
        return self.collections.setdefault((database_id, collection_id), [])

    def _maybe_fail(self, method, collection_id):
        err = self.fail_on.get((method, collection_id)) or self.fail_on.get(method)
        if err:
            raise err

    def docs(self, collection_id):
        return [copy.deepcopy(d) for d in self._docs(DB, collection_id)]

    def seed(self, collection_id, data, document_id=None):
        return self.create_document(DB, collection_id, document_id or f'doc{self._seq + 1}', data, record=False)

    def create_document(self, database_id, collection_id, document_id, data, permissions=None, record=True):
        if record:
            self.calls.append(('create_document', collection_id, document_id, copy.deepcopy(data)))
        self._maybe_fail('create_document', collection_id)
        self._seq += 1
        stamp = (self._clock + timedelta(seconds=self._seq)).isoformat()
        doc = {
            '$id': document_id,
            '$collectionId': collection_id,
            '$databaseId': database_id,
            '$createdAt': stamp,
            '$updatedAt': stamp,
            '$permissions': [],
        }
        doc.update(copy.deepcopy(data))
        self._docs(database_id, collection_id).append(doc)
        return copy.deepcopy(doc)

    def list_documents(self, database_id, collection_id, queries=None):
        self.calls.append(('list_documents', collection_id, list(queries or [])))
        self._maybe_fail('list_documents', collection_id)
        docs = list(self._docs(database_id, collection_id))
        limit = None
        cursor = None
        for raw in queries or []:
            q = json.loads(raw)
            method = q['method']
            if method == 'equal':
                attr, values = q['attribute'], q['values']
                docs = [d for d in docs if d.get(attr) in values]
            elif method in ('orderDesc', 'orderAsc'):
                attr = q['attribute']
                docs = sorted(
                    docs,
                    key=lambda d: (d.get(attr) is not None, d.get(attr) if d.get(attr) is not None else ''),
                    reverse=(method == 'orderDesc'),
                )
            elif method == 'limit':
                limit = q['values'][0]
            elif method == 'cursorAfter':
                cursor = q['values'][0]

        total = len(docs)
        if cursor is not None:
            ids = [d['$id'] for d in docs]
            if cursor not in ids:
                raise AppwriteException('Document with the requested ID could not be found.', 404)
            docs = docs[ids.index(cursor) + 1:]
        if limit is not None:
            docs = docs[:limit]
        return {'total': total, 'documents': [copy.deepcopy(d) for d in docs]}

    def _find(self, database_id, collection_id, document_id):
        for doc in self._docs(database_id, collection_id):
            if doc['$id'] == document_id:
                return doc
        raise AppwriteException('Document with the requested ID could not be found.', 404)

    def get_document(self, database_id, collection_id, document_id):
        return copy.deepcopy(self._find(database_id, collection_id, document_id))

    def update_document(self, database_id, collection_id, document_id, data=None, permissions=None):
        self.calls.append(('update_document', collection_id, document_id, copy.deepcopy(data)))
        self._maybe_fail('update_document', collection_id)
        doc = self._find(database_id, collection_id, document_id)
        doc.update(copy.deepcopy(data or {}))
        return copy.deepcopy(doc)

    def delete_document(self, database_id, collection_id, document_id):
        self.calls.append(('delete_document', collection_id, document_id))
        self._maybe_fail('delete_document', collection_id)
        doc = self._find(database_id, collection_id, document_id)
        self._docs(database_id, collection_id).remove(doc)


class FakeStorage:
    def __init__(self):
        self.deleted = []

    def delete_file(self, bucket_id, file_id):
        self.deleted.append((bucket_id, file_id))


class FakeUsers:
    def __init__(self):
        self.users = {}

    def add(self, user_id, *, email, name, labels=None, status=True):
        self.users[user_id] = {
            '$id': user_id,
            'email': email,
            'name': name,
            'labels': list(labels or []),
            'status': status,
            'password': None,
        }
        return self.users[user_id]

    def _get(self, user_id):
        if user_id not in self.users:
            raise AppwriteException('User with the requested ID could not be found.', 404)
        return self.users[user_id]

    def list(self, queries=None, search=None):
        return {'total': len(self.users), 'users': [copy.deepcopy(u) for u in self.users.values()]}

    def create(self, user_id, email=None, phone=None, password=None, name=None):
        if any(u['email'] == email for u in self.users.values()):
            raise AppwriteException('A user with the same id, email, or phone already exists.', 409)
        user = self.add(user_id, email=email, name=name)
        user['password'] = password
        return copy.deepcopy(user)

    def get(self, user_id):
        return copy.deepcopy(self._get(user_id))

    def update_name(self, user_id, name):
        self._get(user_id)['name'] = name
        return self.get(user_id)

    def update_email(self, user_id, email):
        self._get(user_id)['email'] = email
        return self.get(user_id)

    def update_labels(self, user_id, labels):
        self._get(user_id)['labels'] = list(labels)
        return self.get(user_id)

    def update_password(self, user_id, password):
        self._get(user_id)['password'] = password
        return self.get(user_id)

    def update_status(self, user_id, status):
        self._get(user_id)['status'] = status
        return self.get(user_id)

    def delete(self, user_id):
        self._get(user_id)
        del self.users[user_id]


class FakeAccount:
    def __init__(self, user):
        self.user = user

    def get(self):
        if self.user is None:
            raise AppwriteException('User (role: guests) missing scope (account)', 401)
        return copy.deepcopy(self.user)


@pytest.fixture
def databases():
    return FakeDatabases()


@pytest.fixture
def storage():
    return FakeStorage()


@pytest.fixture
def users():
    fake = FakeUsers()
    fake.add('admin-1', email='admin@example.com', name='Admin', labels=['admin'])
    fake.add('user-1', email='user1@example.com', name='User One')
    fake.add('user-2', email='user2@example.com', name='User Two')
    return fake


@pytest.fixture
def services(databases, storage, users):
    tokens = {ADMIN_TOKEN: 'admin-1', USER_TOKEN: 'user-1'}

    def account_for(jwt):
        user_id = tokens.get(jwt)
        return FakeAccount(users.users.get(user_id) if user_id else None)

    return BaasServices(databases=databases, storage=storage, users=users, account_for=account_for)


@pytest.fixture
def app(services):
    return create_app(TestingConfig, services=services)


@pytest.fixture
def client(app):
    """Create a test client for the Flask application"""
    with app.test_client() as client:
        yield client


@pytest.fixture
def admin_headers():
    return {'Authorization': f'Bearer {ADMIN_TOKEN}'}


@pytest.fixture
def user_headers():
    return {'Authorization': f'Bearer {USER_TOKEN}'}


def sign(body: bytes, secret: str = WEBHOOK_SECRET) -> str:
    return hmac.new(secret.encode('utf-8'), body, hashlib.sha256).hexdigest()
