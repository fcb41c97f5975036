from unittest.mock import patch

import pytest
from django.core.files.uploadedfile import SimpleUploadedFile
from django.db import DatabaseError
from rest_framework.test import APIClient

from apps.audit.models import AccessLog
from apps.documents.models import Document
from apps.emergency_access.models import EmergencyAccessRequest

pytestmark = pytest.mark.django_db


def _client_for(user):
    client = APIClient()
    client.force_authenticate(user=user)
    return client


def _submit_request(client, owner, contact, email='sarah@example.com', **extra):
    payload = {
        'ownerId': owner.id,
        'contactId': contact.id,
        'requesterName': 'Sarah Hale',
        'requesterEmail': email,
        'reason': 'Mom is in the ICU',
        'emergencyType': 'medical',
    }
    payload.update(extra)
    return client.post('/api/emergency-requests/', payload, format='json')


def _decide(client, emergency_request_id, **payload):
    return client.post(f'/api/emergency-requests/{emergency_request_id}/decision', payload, format='json')


def test_health_and_root(api_client):
    assert api_client.get('/api/health/').data['status'] == 'healthy'
    assert 'POST /api/emergency-requests/' in api_client.get('/api/').data['endpoints']


def test_register_then_login(api_client):
    response = api_client.post('/api/auth/register/', {
        'email': 'New.User@Example.com', 'password': 'nestpass123',
        'first_name': 'New', 'last_name': 'User',
    }, format='json')
    assert response.status_code == 201
    assert response.data['user']['email'] == 'new.user@example.com'

    response = api_client.post('/api/auth/login/', {
        'email': 'new.user@example.com', 'password': 'nestpass123'
    }, format='json')
    assert response.status_code == 200
    assert 'access' in response.data and 'refresh' in response.data


def test_login_is_throttled_after_repeated_failures(api_client, owner, settings):
    for _ in range(settings.LOGIN_MAX_ATTEMPTS):
        response = api_client.post('/api/auth/login/', {'email': owner.email, 'password': 'wrong-1'}, format='json')
        assert response.status_code == 401

    response = api_client.post('/api/auth/login/', {'email': owner.email, 'password': 'nest-pass-1'}, format='json')
    assert response.status_code == 429
    assert response.data['code'] == 'rate_limited'


def test_emergency_request_is_submitted_without_an_account(api_client, owner, emergency_contact):
    response = _submit_request(api_client, owner, emergency_contact)

    assert response.status_code == 201
    assert response.data['status'] == 'pending'
    emergency_request = EmergencyAccessRequest.objects.get(id=response.data['id'])
    assert response.data['accessToken'] == emergency_request.access_token


def test_emergency_request_submission_is_rate_limited(api_client, owner, emergency_contact):
    assert _submit_request(api_client, owner, emergency_contact).status_code == 201

    response = _submit_request(api_client, owner, emergency_contact)
    assert response.status_code == 429
    assert EmergencyAccessRequest.objects.count() == 1


def test_emergency_request_for_unknown_contact(api_client, owner):
    response = api_client.post('/api/emergency-requests/', {
        'ownerId': owner.id, 'contactId': 9999, 'requesterName': 'X',
        'requesterEmail': 'x@example.com', 'reason': 'Help',
    }, format='json')
    assert response.status_code == 400
    assert response.data['code'] == 'unknown_contact'


def test_emergency_request_ttl_over_maximum(api_client, owner, emergency_contact, settings):
    response = _submit_request(api_client, owner, emergency_contact,
                               ttlHours=settings.EMERGENCY_ACCESS_MAX_TTL_HOURS + 1)
    assert response.status_code == 400
    assert response.data['code'] == 'invalid_ttl'


def test_full_emergency_flow_over_http(api_client, owner, stranger, emergency_contact, document):
    created = _submit_request(api_client, owner, emergency_contact).data
    owner_client = _client_for(owner)

    assert _decide(_client_for(stranger), created['id'], decision='approve',
                   grantedDocumentIds=[document.id]).status_code == 403

    empty = _decide(owner_client, created['id'], decision='approve', grantedDocumentIds=[])
    assert empty.status_code == 400
    assert empty.data['code'] == 'empty_grant'

    approved = _decide(owner_client, created['id'], decision='approve', grantedDocumentIds=[document.id])
    assert approved.status_code == 200
    assert approved.data['status'] == 'approved'
    assert approved.data['effective_status'] == 'approved'
    assert [g['document_id'] for g in approved.data['granted_documents']] == [document.id]

    again = _decide(owner_client, created['id'], decision='deny')
    assert again.status_code == 409
    assert again.data['code'] == 'not_pending'

    response = api_client.get(
        f'/api/documents/{document.id}/',
        {'emergencyRequestId': created['id'], 'token': created['accessToken']},
    )
    assert response.status_code == 200
    assert response.data['access_context'] == 'emergency'
    assert 'user_notes' not in response.data

    logs = _client_for(owner).get('/api/access-logs/', {'action': 'emergency_accessed'})
    assert len(logs.data) == 1
    assert logs.data[0]['accessed_by_email'] == 'sarah@example.com'


def test_document_read_denials(api_client, stranger, document):
    response = _client_for(stranger).get(f'/api/documents/{document.id}/')
    assert response.status_code == 403
    assert response.data['code'] == 'not_owner'

    assert api_client.get('/api/documents/987654/').status_code == 404
    assert api_client.get(f'/api/documents/{document.id}/', {'action': 'print'}).status_code == 400


def test_owner_download_returns_presigned_url(owner_client, document):
    with patch('apps.documents.views.generate_presigned_url_for_key',
               return_value='https://s3.example.com/signed') as presign:
        response = owner_client.get(f'/api/documents/{document.id}/', {'action': 'download'})

    assert response.status_code == 200
    assert response.data['download_url'] == 'https://s3.example.com/signed'
    assert response.data['user_notes'] == 'Copy kept in the desk drawer'
    presign.assert_called_once_with(document.s3_key)


def test_upload_document(owner_client, owner, category):
    upload = SimpleUploadedFile('directive.pdf', b'%PDF-1.4 test', content_type='application/pdf')
    with patch('apps.documents.views.upload_document', return_value='users/1/documents/abc_directive.pdf'):
        response = owner_client.post('/api/documents/', {
            'file': upload, 'title': 'My Directive', 'document_type': 'healthcare_directive',
            'category_id': category.id,
        }, format='multipart')

    assert response.status_code == 201
    doc = Document.objects.get(id=response.data['id'])
    assert doc.owner_id == owner.id
    assert doc.category_id == category.id
    assert doc.file_type == 'pdf'
    assert AccessLog.objects.filter(action='uploaded', document=doc).count() == 1


def test_upload_rejects_unknown_file_type(owner_client):
    upload = SimpleUploadedFile('script.exe', b'MZ', content_type='application/octet-stream')
    response = owner_client.post('/api/documents/', {'file': upload}, format='multipart')
    assert response.status_code == 400
    assert response.data['code'] == 'invalid_file_type'


def test_upload_failure_returns_bad_gateway(owner_client):
    upload = SimpleUploadedFile('will.pdf', b'%PDF', content_type='application/pdf')
    with patch('apps.documents.views.upload_document', return_value=None):
        response = owner_client.post('/api/documents/', {'file': upload}, format='multipart')
    assert response.status_code == 502
    assert not Document.objects.exists()


def test_soft_delete_hides_document(owner_client, document):
    assert owner_client.delete(f'/api/documents/{document.id}/').status_code == 204
    assert owner_client.get(f'/api/documents/{document.id}/').status_code == 404
    assert owner_client.get('/api/documents/').data == []


def test_contact_and_share_endpoints(owner_client, owner, daughter_user, document):
    contact = owner_client.post('/api/contacts/', {
        'contact_name': 'Sarah Hale', 'contact_email': 'Sarah@Example.com',
        'relationship': 'daughter', 'emergency_contact': True,
    }, format='json')
    assert contact.status_code == 201
    assert contact.data['contact_email'] == 'sarah@example.com'

    share = owner_client.post(f"/api/contacts/{contact.data['id']}/shares/",
                              {'document_id': document.id, 'access_type': 'download'}, format='json')
    assert share.status_code == 201

    shared = _client_for(daughter_user).get('/api/shares/with-me/')
    assert [s['document_id'] for s in shared.data] == [document.id]

    read = _client_for(daughter_user).get(f'/api/documents/{document.id}/')
    assert read.status_code == 200
    assert read.data['access_context'] == 'shared'


def test_emergency_request_list_is_scoped_to_owner(api_client, owner, stranger, admin_user, emergency_contact):
    _submit_request(api_client, owner, emergency_contact)

    assert len(_client_for(owner).get('/api/emergency-requests/').data) == 1
    assert _client_for(stranger).get('/api/emergency-requests/').data == []
    assert len(_client_for(admin_user).get('/api/emergency-requests/', {'status': 'pending'}).data) == 1


def test_access_logs_require_authentication(api_client):
    assert api_client.get('/api/access-logs/').status_code == 401


def test_unknown_read_action_is_logged(api_client, document):
    response = api_client.get(f'/api/documents/{document.id}/', {'action': 'delete'})

    assert response.status_code == 400
    assert response.data['code'] == 'invalid_action'
    log = AccessLog.objects.get(document=document)
    assert (log.outcome, log.reason_code) == ('denied', 'invalid_action')


def test_non_numeric_filters_are_rejected(owner_client):
    logs = owner_client.get('/api/access-logs/', {'document': 'abc'})
    assert logs.status_code == 400
    assert logs.data['code'] == 'validation_error'

    documents = owner_client.get('/api/documents/', {'category': 'abc'})
    assert documents.status_code == 400
    assert documents.data['code'] == 'validation_error'


def test_numeric_filters_still_apply(owner_client, document, will, category):
    owner_client.get(f'/api/documents/{document.id}/')

    logs = owner_client.get('/api/access-logs/', {'document': document.id})
    assert [row['document_id'] for row in logs.data] == [document.id]

    documents = owner_client.get('/api/documents/', {'category': category.id})
    assert [row['id'] for row in documents.data] == [document.id]


def test_rejected_emergency_request_does_not_start_cooldown(api_client, owner, emergency_contact):
    rejected = _submit_request(api_client, owner, emergency_contact, contactId=9999)
    assert rejected.status_code == 400

    retried = _submit_request(api_client, owner, emergency_contact)
    assert retried.status_code == 201


def test_failed_metadata_save_removes_uploaded_object(owner_client):
    upload = SimpleUploadedFile('will.pdf', b'%PDF-1.4', content_type='application/pdf')
    s3_key = 'users/1/documents/abc_will.pdf'

    with patch('apps.documents.views.upload_document', return_value=s3_key), \
            patch('apps.documents.views.delete_document_object') as delete_object, \
            patch.object(AccessLog.objects, 'create', side_effect=DatabaseError('log table unavailable')):
        response = owner_client.post('/api/documents/', {'file': upload}, format='multipart')

    assert response.status_code == 503
    assert response.data['code'] == 'storage_unavailable'
    delete_object.assert_called_once_with(s3_key)
    assert not Document.objects.exists()


def test_failed_document_insert_removes_uploaded_object(owner_client):
    upload = SimpleUploadedFile('will.pdf', b'%PDF-1.4', content_type='application/pdf')
    s3_key = 'users/1/documents/abc_will.pdf'

    with patch('apps.documents.views.upload_document', return_value=s3_key), \
            patch('apps.documents.views.delete_document_object') as delete_object, \
            patch.object(Document.objects, 'create', side_effect=DatabaseError('documents table locked')):
        response = owner_client.post('/api/documents/', {'file': upload}, format='multipart')

    assert response.status_code == 503
    delete_object.assert_called_once_with(s3_key)
