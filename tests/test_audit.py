from unittest.mock import patch

import pytest
from django.db import DatabaseError

from apps.audit import services as audit
from apps.audit.models import AccessLog
from apps.audit.services import ActorDescriptor, describe_actor
from apps.core.exceptions import StorageError

pytestmark = pytest.mark.django_db


def test_record_defaults_owner_to_document_owner(owner, stranger, document):
    log = audit.record('viewed', stranger, document=document, outcome='denied', reason_code='not_owner')

    assert log.owner_id == owner.id
    assert log.accessed_by_user_id == stranger.id
    assert log.accessed_by_email == 'stranger@example.com'
    assert log.accessed_by_name == 'Sam Stone'


def test_record_reads_client_details_from_request(owner, document, rf):
    request = rf.get('/', HTTP_X_FORWARDED_FOR='203.0.113.7, 10.0.0.1', HTTP_USER_AGENT='pytest-agent')

    log = audit.record('viewed', owner, document=document, request=request)

    assert log.ip_address == '203.0.113.7'
    assert log.user_agent == 'pytest-agent'


def test_log_rows_cannot_be_updated_or_deleted(owner, document):
    log = audit.record('viewed', owner, document=document)

    log.action = 'downloaded'
    with pytest.raises(RuntimeError):
        log.save()
    with pytest.raises(RuntimeError):
        log.delete()
    assert AccessLog.objects.get(id=log.id).action == 'viewed'


def test_storage_failure_is_raised_not_swallowed(owner, document):
    with patch.object(AccessLog.objects, 'create', side_effect=DatabaseError('disk full')):
        with pytest.raises(StorageError):
            audit.record('viewed', owner, document=document)


def test_log_survives_document_and_user_deletion(owner, stranger, document):
    audit.record('viewed', stranger, document=document, outcome='denied', reason_code='not_owner')

    document.delete()
    stranger.delete()

    log = AccessLog.objects.get()
    assert log.document_id is None
    assert log.accessed_by_user_id is None
    assert log.accessed_by_email == 'stranger@example.com'
    assert log.owner_id == owner.id


def test_describe_actor():
    assert describe_actor(None) == (None, '', '')
    assert describe_actor(ActorDescriptor('Sarah', 'sarah@example.com')) == (None, 'sarah@example.com', 'Sarah')
