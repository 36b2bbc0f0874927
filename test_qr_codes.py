"""
QR code route tests
"""

import json

import pytest

from conftest import BUCKET, QR_COLLECTION


@pytest.fixture
def seeded(databases):
    databases.seed(QR_COLLECTION, {
        'qrId': 'Q1', 'fileId': 'f1', 'imageUrl': 'u1', 'assignedUserId': 'user-1',
        'isActive': True, 'createdAt': '2025-01-01T00:00:00+00:00',
        'totalTransactions': 3, 'totalPayInAmount': 900,
    }, document_id='d1')
    databases.seed(QR_COLLECTION, {
        'qrId': 'Q2', 'fileId': 'f2', 'imageUrl': 'u2', 'assignedUserId': None,
        'isActive': False, 'createdAt': '2025-02-01T00:00:00+00:00',
    }, document_id='d2')


class TestListQrCodes:
    def test_newest_first_with_default_totals(self, client, admin_headers, seeded):
        response = client.get('/api/qr-codes', headers=admin_headers)

        assert response.status_code == 200
        data = json.loads(response.data)['data']
        assert [q['qrId'] for q in data] == ['Q2', 'Q1']
        assert data[0]['totalTransactions'] == 0
        assert data[0]['totalPayInAmount'] == 0
        assert data[1]['totalPayInAmount'] == 900

    def test_user_qr_codes(self, client, user_headers, seeded):
        response = client.get('/api/qr-codes/user/user-1', headers=user_headers)

        data = json.loads(response.data)['data']
        assert [q['qrId'] for q in data] == ['Q1']
        assert 'totalTransactions' not in data[0]


class TestCreateQrEntry:
    def test_create(self, client, admin_headers, databases):
        response = client.post('/api/create-qr-entry', headers=admin_headers, json={
            'qrId': 'qr_new', 'fileId': 'file', 'imageUrl': 'https://img', 'createdAt': '2025-03-01T00:00:00Z',
        })

        assert response.status_code == 201
        doc = databases.docs(QR_COLLECTION)[0]
        assert doc['qrId'] == 'qr_new'
        assert doc['isActive'] is True
        assert doc['assignedUserId'] is None
        assert doc['createdAt'] == '2025-03-01T00:00:00Z'

    def test_missing_fields(self, client, admin_headers, databases):
        response = client.post('/api/create-qr-entry', headers=admin_headers, json={'qrId': 'x'})

        assert response.status_code == 400
        assert databases.docs(QR_COLLECTION) == []

    def test_duplicate_qr_id(self, client, admin_headers, seeded, databases):
        response = client.post('/api/create-qr-entry', headers=admin_headers, json={
            'qrId': 'Q1', 'fileId': 'other', 'imageUrl': 'other',
        })

        assert response.status_code == 409
        assert len(databases.docs(QR_COLLECTION)) == 2


class TestUpdateQrCode:
    def test_toggle_status(self, client, admin_headers, seeded, databases):
        response = client.put('/api/toggle-qr-status/Q1', headers=admin_headers, json={'isActive': False})

        assert response.status_code == 200
        assert databases.docs(QR_COLLECTION)[0]['isActive'] is False

    def test_toggle_requires_boolean(self, client, admin_headers, seeded):
        response = client.put('/api/toggle-qr-status/Q1', headers=admin_headers, json={'isActive': 'no'})
        assert response.status_code == 400

    def test_toggle_unknown(self, client, admin_headers, seeded):
        response = client.put('/api/toggle-qr-status/Q9', headers=admin_headers, json={'isActive': True})
        assert response.status_code == 404

    def test_assign_and_unlink(self, client, admin_headers, seeded, databases):
        client.put('/api/assign-qr/Q2', headers=admin_headers, json={'assignedUserId': 'user-2'})
        assert databases.docs(QR_COLLECTION)[1]['assignedUserId'] == 'user-2'

        client.put('/api/assign-qr/Q2', headers=admin_headers, json={'assignedUserId': ''})
        assert databases.docs(QR_COLLECTION)[1]['assignedUserId'] is None

    def test_assign_does_not_touch_totals(self, client, admin_headers, seeded, databases):
        client.put('/api/assign-qr/Q1', headers=admin_headers, json={'assignedUserId': 'user-2'})

        doc = databases.docs(QR_COLLECTION)[0]
        assert doc['totalTransactions'] == 3
        assert doc['totalPayInAmount'] == 900


class TestDeleteQrCode:
    def test_delete_removes_file_and_document(self, client, admin_headers, seeded, databases, storage):
        response = client.delete('/api/delete-qr/Q1', headers=admin_headers)

        assert response.status_code == 200
        assert storage.deleted == [(BUCKET, 'f1')]
        assert [d['qrId'] for d in databases.docs(QR_COLLECTION)] == ['Q2']

    def test_delete_unknown(self, client, admin_headers, seeded, storage):
        response = client.delete('/api/delete-qr/nope', headers=admin_headers)

        assert response.status_code == 404
        assert storage.deleted == []
