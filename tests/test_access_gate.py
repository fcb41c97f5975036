from datetime import timedelta
from unittest.mock import patch

import pytest
from django.contrib.auth.models import AnonymousUser
from django.db import DatabaseError
from django.utils import timezone

from apps.audit.models import AccessLog
from apps.audit.services import ActorDescriptor
from apps.contacts import directory
from apps.contacts.models import TrustedContact
from apps.core.exceptions import ValidationError
from apps.documents import access_gate
from apps.emergency_access import workflow
from apps.emergency_access.models import EmergencyAccessDocument

from .conftest import make_document

pytestmark = pytest.mark.django_db


@pytest.fixture
def approved_request(owner, emergency_contact, document):
    now = timezone.now()
    emergency_request = workflow.create_request(
        owner.id, emergency_contact.id, 'Sarah Hale', 'sarah@example.com',
        'Mom was admitted to St. Mary', 'medical', ttl=timedelta(hours=24), now=now,
    )
    workflow.decide(emergency_request.id, owner, 'approve', [document.id], now=now)
    emergency_request.refresh_from_db()
    return emergency_request


def test_owner_is_granted_in_normal_context(owner, document):
    decision = access_gate.authorize(owner, document.id)

    assert decision.granted is True
    assert decision.context == access_gate.CONTEXT_NORMAL
    log = AccessLog.objects.get(document=document)
    assert (log.action, log.outcome, log.accessed_by_user_id) == ('viewed', 'granted', owner.id)


def test_owner_download_is_logged_as_downloaded(owner, document):
    access_gate.authorize(owner, document.id, 'download')
    assert AccessLog.objects.get(document=document).action == 'downloaded'


def test_stranger_is_denied_and_denial_is_logged(stranger, document):
    decision = access_gate.authorize(stranger, document.id)

    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NOT_OWNER
    log = AccessLog.objects.get(document=document)
    assert log.outcome == 'denied'
    assert log.reason_code == 'not_owner'
    assert log.owner_id == document.owner_id


def test_unknown_document_is_denied_and_logged(owner):
    decision = access_gate.authorize(owner, 424242)

    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NOT_FOUND
    log = AccessLog.objects.get()
    assert log.document_id is None
    assert log.metadata['document_id'] == '424242'


def test_inactive_document_is_denied_even_to_owner(owner, document):
    document.is_active = False
    document.save()

    decision = access_gate.authorize(owner, document.id)
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_DOCUMENT_INACTIVE


def test_invalid_action_is_rejected_and_logged(owner, document):
    with pytest.raises(ValidationError) as exc:
        access_gate.authorize(owner, document.id, 'delete')
    assert exc.value.code == 'invalid_action'

    log = AccessLog.objects.get()
    assert log.outcome == 'denied'
    assert log.reason_code == 'invalid_action'
    assert log.document_id == document.id
    assert log.metadata['requested_action'] == 'delete'


def test_invalid_action_on_unknown_document_is_logged(owner):
    with pytest.raises(ValidationError):
        access_gate.authorize(owner, 424242, 'print')
    assert AccessLog.objects.filter(outcome='denied', reason_code='invalid_action').count() == 1


def test_standing_share_grants_in_shared_context(owner, daughter_user, emergency_contact, document):
    directory.create_share(owner, emergency_contact.id, document.id, 'view')

    decision = access_gate.authorize(daughter_user, document.id)

    assert decision.granted is True
    assert decision.context == access_gate.CONTEXT_SHARED
    assert decision.trusted_contact == emergency_contact
    log = AccessLog.objects.get(action='viewed')
    assert log.access_context == 'shared'
    assert log.trusted_contact_id == emergency_contact.id


def test_view_share_does_not_cover_download(owner, daughter_user, emergency_contact, document):
    directory.create_share(owner, emergency_contact.id, document.id, 'view')

    decision = access_gate.authorize(daughter_user, document.id, 'download')
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_SHARE


def test_download_share_covers_view(owner, daughter_user, emergency_contact, document):
    directory.create_share(owner, emergency_contact.id, document.id, 'download')

    assert access_gate.authorize(daughter_user, document.id, 'view').granted is True
    assert access_gate.authorize(daughter_user, document.id, 'download').granted is True


def test_can_access_all_grants_every_document(owner, daughter_user, document, will):
    TrustedContact.objects.create(
        owner=owner, contact_name='Sarah', contact_email='SARAH@example.com', can_access_all=True
    )

    assert access_gate.authorize(daughter_user, document.id).granted is True
    assert access_gate.authorize(daughter_user, will.id, 'download').granted is True


def test_contact_without_share_is_denied_with_no_share(daughter_user, emergency_contact, document):
    decision = access_gate.authorize(daughter_user, document.id)
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_SHARE


def test_emergency_grant_with_token_then_expiry(approved_request, document):
    anonymous = AnonymousUser()
    during = approved_request.approved_at + timedelta(hours=1)

    decision = access_gate.authorize(
        anonymous, document.id, emergency_request_id=approved_request.id,
        access_token=approved_request.access_token, now=during,
    )
    assert decision.granted is True
    assert decision.context == access_gate.CONTEXT_EMERGENCY

    log = AccessLog.objects.get(action='emergency_accessed')
    assert log.outcome == 'granted'
    assert log.accessed_by_email == 'sarah@example.com'
    assert log.accessed_by_name == 'Sarah Hale'
    assert log.emergency_request_id == approved_request.id

    after = approved_request.approved_at + timedelta(hours=25)
    decision = access_gate.authorize(
        anonymous, document.id, emergency_request_id=approved_request.id,
        access_token=approved_request.access_token, now=after,
    )
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_EXPIRED


def test_emergency_access_stamps_first_access_only_once(approved_request, document):
    first = approved_request.approved_at + timedelta(minutes=10)
    second = first + timedelta(hours=2)

    for now in (first, second):
        access_gate.authorize(
            None, document.id, emergency_request_id=approved_request.id,
            access_token=approved_request.access_token, now=now,
        )

    grant = EmergencyAccessDocument.objects.get(emergency_request=approved_request)
    assert grant.accessed_at == first


def test_every_call_writes_one_log_row(approved_request, document):
    calls = 4
    for _ in range(calls):
        access_gate.authorize(
            None, document.id, emergency_request_id=approved_request.id,
            access_token=approved_request.access_token,
        )
    assert AccessLog.objects.filter(action='emergency_accessed').count() == calls


def test_emergency_grant_for_logged_in_requester(approved_request, daughter_user, document):
    decision = access_gate.authorize(daughter_user, document.id, emergency_request_id=approved_request.id)

    assert decision.granted is True
    assert decision.context == access_gate.CONTEXT_EMERGENCY
    assert AccessLog.objects.get(action='emergency_accessed').accessed_by_user_id == daughter_user.id


def test_emergency_path_rejects_wrong_token_and_strangers(approved_request, stranger, document):
    wrong_token = access_gate.authorize(
        None, document.id, emergency_request_id=approved_request.id, access_token='not-the-token'
    )
    assert wrong_token.granted is False
    assert wrong_token.reason == access_gate.REASON_NO_GRANT

    other_user = access_gate.authorize(stranger, document.id, emergency_request_id=approved_request.id)
    assert other_user.granted is False
    assert other_user.reason == access_gate.REASON_NO_GRANT


def test_emergency_grant_does_not_cover_other_documents(approved_request, will):
    decision = access_gate.authorize(
        None, will.id, emergency_request_id=approved_request.id, access_token=approved_request.access_token
    )
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_GRANT


def test_view_grant_does_not_cover_download(approved_request, document):
    decision = access_gate.authorize(
        None, document.id, 'download', emergency_request_id=approved_request.id,
        access_token=approved_request.access_token,
    )
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_GRANT


def test_emergency_request_for_other_owner_is_not_honoured(approved_request, stranger):
    foreign = make_document(stranger, title='Not Hers')
    decision = access_gate.authorize(
        None, foreign.id, emergency_request_id=approved_request.id, access_token=approved_request.access_token
    )
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_GRANT


def test_pending_request_grants_nothing(owner, emergency_contact, document):
    emergency_request = workflow.create_request(
        owner.id, emergency_contact.id, 'Sarah Hale', 'sarah@example.com', 'Urgent', 'medical'
    )
    decision = access_gate.authorize(
        None, document.id, emergency_request_id=emergency_request.id, access_token=emergency_request.access_token
    )
    assert decision.granted is False
    assert decision.reason == access_gate.REASON_NO_GRANT


def test_audit_failure_fails_closed(approved_request, owner, document):
    with patch.object(AccessLog.objects, 'create', side_effect=DatabaseError('log table unavailable')):
        owner_decision = access_gate.authorize(owner, document.id)
        emergency_decision = access_gate.authorize(
            None, document.id, emergency_request_id=approved_request.id,
            access_token=approved_request.access_token,
        )

    assert owner_decision.granted is False
    assert owner_decision.reason == access_gate.REASON_AUDIT_UNAVAILABLE
    assert emergency_decision.granted is False
    assert emergency_decision.reason == access_gate.REASON_AUDIT_UNAVAILABLE

    # The first-access stamp rolls back with the failed log write
    grant = EmergencyAccessDocument.objects.get(emergency_request=approved_request)
    assert grant.accessed_at is None


def test_actor_descriptor_is_logged_by_email(owner, document):
    decision = access_gate.authorize(ActorDescriptor(name='Visitor', email='visitor@example.com'), document.id)

    assert decision.granted is False
    log = AccessLog.objects.get()
    assert log.accessed_by_user_id is None
    assert log.accessed_by_email == 'visitor@example.com'
