"""
Emergency access workflow.

create_request -> decide (approve / deny) -> check_access on every read.

Expiry is computed, never scheduled: ``check_access`` compares ``expires_at``
with the clock on each call, so a grant stops working the instant it expires
whether or not ``expire_stale_requests`` has run.
"""
import logging
from collections import namedtuple
from datetime import timedelta

from django.conf import settings
from django.db import transaction, DatabaseError
from django.utils import timezone

from apps.audit import services as audit
from apps.audit.services import ActorDescriptor
from apps.contacts import directory
from apps.contacts.models import TrustedContact
from apps.core.access import ACCESS_ACTIONS
from apps.core.exceptions import AuthorizationError, NotFoundError, StateError, ValidationError
from apps.documents.store import active_documents_for

from .models import EmergencyAccessRequest, EmergencyAccessDocument

logger = logging.getLogger(__name__)

DECISION_APPROVE = 'approve'
DECISION_DENY = 'deny'
DECISIONS = (DECISION_APPROVE, DECISION_DENY)

REASON_NOT_APPROVED = 'not_approved'
REASON_EXPIRED = 'expired'
REASON_NOT_IN_GRANT = 'not_in_grant'

EMERGENCY_TYPES = tuple(choice for choice, _ in EmergencyAccessRequest.EMERGENCY_TYPE_CHOICES)

# Result of check_access. ``grant`` is the EmergencyAccessDocument when granted.
AccessCheck = namedtuple('AccessCheck', ['granted', 'reason', 'grant'])


def default_ttl():
    return timedelta(hours=settings.EMERGENCY_ACCESS_DEFAULT_TTL_HOURS)


def create_request(owner_id, contact_id, requester_name, requester_email, reason,
                   emergency_type='general', ttl=None, actor=None, request=None, now=None):
    """
    Open a pending emergency request against ``owner_id``'s documents.

    Anyone may submit on behalf of any of the owner's trusted contacts; a
    contact not marked as an emergency contact gets a pending request that can
    only ever be denied.

    Raises:
        ValidationError: unknown contact for this owner, bad ttl or bad input
    """
    now = now or timezone.now()
    ttl = default_ttl() if ttl is None else ttl
    max_ttl = timedelta(hours=settings.EMERGENCY_ACCESS_MAX_TTL_HOURS)

    if ttl <= timedelta(0):
        raise ValidationError("Expiry period must be positive.", code='invalid_ttl')
    if ttl > max_ttl:
        raise ValidationError(
            f"Expiry period cannot exceed {settings.EMERGENCY_ACCESS_MAX_TTL_HOURS} hours.",
            code='invalid_ttl'
        )
    if emergency_type not in EMERGENCY_TYPES:
        raise ValidationError(f"Unknown emergency type '{emergency_type}'.", code='invalid_emergency_type')
    if not (reason or '').strip():
        raise ValidationError("A reason is required.", code='missing_reason')
    if not (requester_name or '').strip() or not (requester_email or '').strip():
        raise ValidationError("Requester name and email are required.", code='missing_requester')

    try:
        contact = TrustedContact.objects.select_related('owner').get(id=contact_id, owner_id=owner_id)
    except (TrustedContact.DoesNotExist, ValueError, TypeError):
        raise ValidationError("Contact is not a trusted contact of this user.", code='unknown_contact')

    if not contact.emergency_contact:
        logger.warning("Emergency request for user %s submitted via non-emergency contact %s",
                       owner_id, contact.id)

    requester = ActorDescriptor(name=requester_name.strip(), email=requester_email.strip().lower())

    with transaction.atomic():
        emergency_request = EmergencyAccessRequest.objects.create(
            owner=contact.owner,
            trusted_contact=contact,
            requested_by_name=requester.name,
            requested_by_email=requester.email,
            request_reason=reason.strip(),
            emergency_type=emergency_type,
            requested_at=now,
            expires_at=now + ttl,
            access_token=EmergencyAccessRequest.generate_token(),
        )
        audit.record(
            'emergency_requested', actor or requester,
            context='emergency',
            owner=contact.owner,
            trusted_contact=contact,
            emergency_request=emergency_request,
            metadata={
                'emergency_type': emergency_type,
                'expires_at': emergency_request.expires_at.isoformat(),
                'emergency_contact': contact.emergency_contact,
            },
            request=request,
        )

    logger.info("Emergency request %s created for user %s by %s (expires %s)",
                emergency_request.id, owner_id, requester.email, emergency_request.expires_at)
    return emergency_request


def decide(request_id, decider, decision, granted_document_ids=None, denial_reason=None,
           granted_access_type='view', admin_notes=None, request=None, now=None):
    """
    Approve or deny a pending request. Only the owner, or an admin, may decide.

    On approval the status change and every EmergencyAccessDocument row commit
    together. Concurrent decisions on one request are serialised by a row lock
    plus a conditional update on status=pending; the loser gets StateError.

    Raises:
        ValidationError: bad decision, empty/foreign/inactive documents, ineligible contact
        AuthorizationError: decider is neither the owner nor an admin
        StateError: request is no longer pending, or has passed expires_at
        NotFoundError: unknown request id
    """
    now = now or timezone.now()
    if decision not in DECISIONS:
        raise ValidationError(f"Decision must be one of {', '.join(DECISIONS)}.", code='invalid_decision')

    with transaction.atomic():
        try:
            emergency_request = (
                EmergencyAccessRequest.objects.select_for_update()
                .select_related('trusted_contact')
                .get(id=request_id)
            )
        except (EmergencyAccessRequest.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Emergency request not found.")

        is_owner = emergency_request.owner_id == decider.id
        is_admin = getattr(decider, 'is_admin', False)
        if not is_owner and not is_admin:
            raise AuthorizationError("Only the document owner or an administrator can decide this request.")

        if emergency_request.status != EmergencyAccessRequest.STATUS_PENDING:
            raise StateError(f"Request is already {emergency_request.status}.", code='not_pending')
        if emergency_request.is_expired(now):
            raise StateError("Request expired before a decision was made.", code='request_expired')

        admin_override = is_admin and not is_owner
        changes = {
            'decided_at': now,
            'decided_by': decider,
            'updated_at': now,
        }
        if admin_override:
            changes['admin_approved_by'] = decider
            changes['admin_notes'] = admin_notes or ''

        document_ids = []
        if decision == DECISION_APPROVE:
            document_ids = list(dict.fromkeys(granted_document_ids or []))
            if not document_ids:
                raise ValidationError("At least one document must be granted.", code='empty_grant')
            if not directory.is_emergency_eligible(emergency_request.owner_id, emergency_request.trusted_contact_id):
                raise ValidationError("This contact is not an emergency contact.", code='contact_not_eligible')
            if granted_access_type not in ACCESS_ACTIONS:
                raise ValidationError(f"Invalid access type '{granted_access_type}'.", code='invalid_access_type')

            documents = list(active_documents_for(emergency_request.owner_id, document_ids))
            if len(documents) != len(document_ids):
                found = {doc.id for doc in documents}
                raise ValidationError(
                    "Granted documents must be active documents of the owner.",
                    code='invalid_document',
                    details={'invalid_document_ids': [i for i in document_ids if i not in found]},
                )

            changes.update(status=EmergencyAccessRequest.STATUS_APPROVED, approved_at=now)
        else:
            changes.update(status=EmergencyAccessRequest.STATUS_DENIED, denial_reason=denial_reason or '')

        updated = EmergencyAccessRequest.objects.filter(
            id=emergency_request.id, status=EmergencyAccessRequest.STATUS_PENDING
        ).update(**changes)
        if updated != 1:
            raise StateError("Request was decided concurrently.", code='not_pending')

        if decision == DECISION_APPROVE:
            EmergencyAccessDocument.objects.bulk_create([
                EmergencyAccessDocument(
                    emergency_request=emergency_request,
                    document=document,
                    granted_access_type=granted_access_type,
                )
                for document in documents
            ])

        emergency_request.refresh_from_db()
        audit.record(
            'emergency_decided', decider,
            context='emergency',
            owner=emergency_request.owner,
            trusted_contact=emergency_request.trusted_contact,
            emergency_request=emergency_request,
            metadata={
                'decision': decision,
                'document_ids': document_ids,
                'granted_access_type': granted_access_type if document_ids else None,
                'admin_override': admin_override,
            },
            request=request,
        )

    logger.info("Emergency request %s %s by user %s%s", emergency_request.id, emergency_request.status,
                decider.id, " (admin override)" if admin_override else "")
    return emergency_request


def check_access(request_id, document_id, now=None):
    """
    Does emergency request ``request_id`` grant ``document_id`` at ``now``?

    Pure read, re-evaluated on every access attempt. Never raises: unknown ids
    and storage failures are answered with a denial.
    """
    now = now or timezone.now()
    try:
        emergency_request = EmergencyAccessRequest.objects.get(id=request_id)
        if (emergency_request.status == EmergencyAccessRequest.STATUS_DENIED
                or emergency_request.approved_at is None):
            return AccessCheck(False, REASON_NOT_APPROVED, None)
        if (emergency_request.status == EmergencyAccessRequest.STATUS_EXPIRED
                or emergency_request.is_expired(now)):
            return AccessCheck(False, REASON_EXPIRED, None)
        if emergency_request.status != EmergencyAccessRequest.STATUS_APPROVED:
            return AccessCheck(False, REASON_NOT_APPROVED, None)

        grant = EmergencyAccessDocument.objects.filter(
            emergency_request_id=emergency_request.id, document_id=document_id
        ).first()
    except (EmergencyAccessRequest.DoesNotExist, ValueError, TypeError):
        return AccessCheck(False, REASON_NOT_APPROVED, None)
    except DatabaseError:
        logger.exception("Emergency access check failed for request %s", request_id)
        return AccessCheck(False, REASON_NOT_APPROVED, None)

    if grant is None:
        return AccessCheck(False, REASON_NOT_IN_GRANT, None)
    return AccessCheck(True, None, grant)


def record_first_access(grant, now=None):
    """Stamp ``accessed_at`` the first time a grant is used. Later calls change nothing."""
    now = now or timezone.now()
    updated = EmergencyAccessDocument.objects.filter(
        id=grant.id, accessed_at__isnull=True
    ).update(accessed_at=now)
    if updated:
        grant.accessed_at = now
    return bool(updated)


def expire_stale_requests(now=None):
    """
    Reporting sweep: persist ``expired`` on pending/approved requests past
    expires_at. Access never depends on this having run.
    """
    now = now or timezone.now()
    count = EmergencyAccessRequest.objects.filter(
        status__in=[EmergencyAccessRequest.STATUS_PENDING, EmergencyAccessRequest.STATUS_APPROVED],
        expires_at__lte=now,
    ).update(status=EmergencyAccessRequest.STATUS_EXPIRED, updated_at=now)
    if count:
        logger.info("Marked %s emergency requests as expired", count)
    return count
