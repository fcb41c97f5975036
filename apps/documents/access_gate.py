"""
Access gate: every read of a document's metadata or content goes through
``authorize``.

Resolution order: owner, standing share, active emergency grant, denial.
Each call writes exactly one access log row (granted or denied) before it
returns. If that row cannot be written the answer is a denial.
"""
import logging
import secrets
from collections import namedtuple

from django.db import transaction, DatabaseError
from django.utils import timezone

from apps.audit import services as audit
from apps.audit.services import ActorDescriptor, describe_actor
from apps.contacts import directory
from apps.core.access import ACCESS_ACTIONS, ACCESS_DOWNLOAD, access_type_covers
from apps.core.exceptions import NotFoundError, StorageError, ValidationError
from apps.emergency_access import workflow
from apps.emergency_access.models import EmergencyAccessRequest

from .store import get_document

logger = logging.getLogger(__name__)

CONTEXT_NORMAL = 'normal'
CONTEXT_SHARED = 'shared'
CONTEXT_EMERGENCY = 'emergency'

REASON_NOT_FOUND = 'not_found'
REASON_DOCUMENT_INACTIVE = 'document_inactive'
REASON_NOT_OWNER = 'not_owner'
REASON_NO_SHARE = 'no_share'
REASON_NO_GRANT = 'no_grant'
REASON_EXPIRED = 'expired'
REASON_AUDIT_UNAVAILABLE = 'audit_unavailable'
REASON_INVALID_ACTION = 'invalid_action'

AccessDecision = namedtuple('AccessDecision', [
    'granted', 'context', 'reason', 'document',
    'trusted_contact', 'emergency_request', 'grant', 'actor',
])


def _decision(granted, context, reason=None, document=None, trusted_contact=None,
              emergency_request=None, grant=None, actor=None):
    return AccessDecision(granted, context, reason, document, trusted_contact,
                          emergency_request, grant, actor)


def _audit_action(context, action):
    if context == CONTEXT_EMERGENCY:
        return 'emergency_accessed'
    return 'downloaded' if action == ACCESS_DOWNLOAD else 'viewed'


def _is_requester(emergency_request, user, email, access_token):
    """The actor presenting ``emergency_request`` is the person it was issued to."""
    if access_token:
        return secrets.compare_digest(str(access_token), emergency_request.access_token)
    if user is None or not email:
        return False
    email = email.lower()
    return email in (
        emergency_request.requested_by_email.lower(),
        emergency_request.trusted_contact.contact_email.lower(),
    )


def _resolve(actor, document_id, action, emergency_request_id, access_token, now):
    context = CONTEXT_EMERGENCY if emergency_request_id else CONTEXT_NORMAL

    try:
        document = get_document(document_id)
    except NotFoundError:
        return _decision(False, context, REASON_NOT_FOUND, actor=actor)

    if not document.is_active:
        return _decision(False, context, REASON_DOCUMENT_INACTIVE, document, actor=actor)

    user, email, _ = describe_actor(actor)

    # 1. Owner
    if user is not None and document.owner_id == user.id:
        return _decision(True, CONTEXT_NORMAL, document=document, actor=actor)

    # 2. Standing share, for logged-in users whose email is one of the owner's contacts
    contacts = list(directory.contacts_for_actor(document.owner_id, email)) if user is not None else []
    for contact in contacts:
        if contact.can_access_all:
            return _decision(True, CONTEXT_SHARED, document=document, trusted_contact=contact, actor=actor)
        share = directory.find_share(document.owner_id, contact.id, document.id)
        if share is not None and access_type_covers(share.access_type, action):
            return _decision(True, CONTEXT_SHARED, document=document, trusted_contact=contact, actor=actor)

    # 3. Emergency grant
    if emergency_request_id:
        try:
            emergency_request = (
                EmergencyAccessRequest.objects.select_related('trusted_contact')
                .filter(id=emergency_request_id).first()
            )
        except (ValueError, TypeError):
            emergency_request = None

        if (emergency_request is None
                or emergency_request.owner_id != document.owner_id
                or not _is_requester(emergency_request, user, email, access_token)):
            return _decision(False, CONTEXT_EMERGENCY, REASON_NO_GRANT, document, actor=actor)

        if user is None:
            actor = ActorDescriptor(name=emergency_request.requested_by_name,
                                    email=emergency_request.requested_by_email)

        check = workflow.check_access(emergency_request.id, document.id, now)
        if not check.granted:
            reason = REASON_EXPIRED if check.reason == workflow.REASON_EXPIRED else REASON_NO_GRANT
            return _decision(False, CONTEXT_EMERGENCY, reason, document, emergency_request.trusted_contact,
                             emergency_request, actor=actor)
        if not access_type_covers(check.grant.granted_access_type, action):
            return _decision(False, CONTEXT_EMERGENCY, REASON_NO_GRANT, document, emergency_request.trusted_contact,
                             emergency_request, actor=actor)

        return _decision(True, CONTEXT_EMERGENCY, document=document,
                         trusted_contact=emergency_request.trusted_contact,
                         emergency_request=emergency_request, grant=check.grant, actor=actor)

    # 4. Denied
    reason = REASON_NO_SHARE if contacts else REASON_NOT_OWNER
    return _decision(False, context, reason, document, contacts[0] if contacts else None, actor=actor)


def _invalid_action(actor, document_id, emergency_request_id):
    context = CONTEXT_EMERGENCY if emergency_request_id else CONTEXT_NORMAL
    try:
        document = get_document(document_id)
    except NotFoundError:
        document = None
    return _decision(False, context, REASON_INVALID_ACTION, document, actor=actor)


def authorize(actor, document_id, action='view', emergency_request_id=None, access_token=None,
              request=None, now=None):
    """
    Decide whether ``actor`` may ``action`` ('view' or 'download') a document,
    and log the decision.

    Args:
        actor: Authenticated User, ActorDescriptor, or AnonymousUser
        document_id: Document to access
        action: 'view' or 'download'
        emergency_request_id: Emergency request the actor is exercising, if any
        access_token: Emergency request token, for requesters without an account
        request: HTTP request, for IP and user agent in the log
        now: Evaluation time (defaults to the current time)

    Returns:
        AccessDecision

    Raises:
        ValidationError: unknown action (the attempt is still logged as denied)
    """
    now = now or timezone.now()
    decision = None
    try:
        with transaction.atomic():
            if action in ACCESS_ACTIONS:
                decision = _resolve(actor, document_id, action, emergency_request_id, access_token, now)
            else:
                decision = _invalid_action(actor, document_id, emergency_request_id)
            if decision.granted and decision.grant is not None:
                workflow.record_first_access(decision.grant, now)

            audit.record(
                _audit_action(decision.context, action), decision.actor,
                document=decision.document,
                context=decision.context,
                emergency_request=decision.emergency_request,
                trusted_contact=decision.trusted_contact,
                outcome='granted' if decision.granted else 'denied',
                reason_code=decision.reason or '',
                metadata={'requested_action': action, 'document_id': str(document_id)},
                request=request,
            )
    except (StorageError, DatabaseError):
        logger.error("Access to document %s denied: decision could not be recorded", document_id)
        return _decision(
            False,
            decision.context if decision else CONTEXT_NORMAL,
            REASON_AUDIT_UNAVAILABLE,
            decision.document if decision else None,
            actor=actor,
        )

    if decision.reason == REASON_INVALID_ACTION:
        raise ValidationError(f"Action must be one of {', '.join(ACCESS_ACTIONS)}.", code='invalid_action')
    if not decision.granted:
        logger.warning("Access to document %s denied (%s, context=%s)",
                       document_id, decision.reason, decision.context)
    return decision
