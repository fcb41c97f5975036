"""
Contact directory: who a user trusts, and what they have shared with them.

The access gate and the emergency workflow only ever ask this module two
questions (``is_emergency_eligible`` and ``find_share``) plus which contact
identities an actor's email maps to.
"""
import logging

from django.db import transaction

from apps.audit import services as audit
from apps.core.access import ACCESS_ACTIONS
from apps.core.exceptions import NotFoundError, ValidationError
from apps.documents.models import Document

from .models import TrustedContact, DocumentShare

logger = logging.getLogger(__name__)


def get_contact(owner_id, contact_id):
    try:
        return TrustedContact.objects.get(id=contact_id, owner_id=owner_id)
    except (TrustedContact.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Trusted contact not found.")


def is_emergency_eligible(owner_id, contact_id):
    return TrustedContact.objects.filter(
        id=contact_id, owner_id=owner_id, emergency_contact=True
    ).exists()


def find_share(owner_id, contact_id, document_id):
    return DocumentShare.objects.filter(
        owner_id=owner_id, trusted_contact_id=contact_id, document_id=document_id
    ).first()


def contacts_for_actor(owner_id, email):
    """Trusted contacts of ``owner_id`` whose email matches the actor's, case-insensitive."""
    if not email:
        return TrustedContact.objects.none()
    return TrustedContact.objects.filter(owner_id=owner_id, contact_email__iexact=email.strip())


def delete_contact(owner_id, contact_id):
    """
    Delete a trusted contact. Its shares and emergency requests go with it;
    access log rows keep their history with the contact reference nulled.
    """
    contact = get_contact(owner_id, contact_id)
    with transaction.atomic():
        contact.delete()
    logger.info("Trusted contact %s of user %s deleted", contact_id, owner_id)


def create_share(owner, contact_id, document_id, access_type='view', share_message='', request=None):
    """
    Share one of ``owner``'s active documents with one of their trusted contacts.
    Re-sharing an already shared document updates its access type and message.
    """
    if access_type not in ACCESS_ACTIONS:
        raise ValidationError(f"Invalid access type '{access_type}'.", code='invalid_access_type')

    contact = get_contact(owner.id, contact_id)
    try:
        document = Document.objects.get(id=document_id, owner=owner, is_active=True)
    except (Document.DoesNotExist, ValueError, TypeError):
        raise ValidationError("Document does not belong to you or is no longer active.", code='invalid_document')

    with transaction.atomic():
        share, created = DocumentShare.objects.update_or_create(
            document=document,
            trusted_contact=contact,
            defaults={
                'owner': owner,
                'access_type': access_type,
                'share_message': share_message or '',
                'shared_by': owner,
            }
        )
        audit.record(
            'shared', owner,
            document=document,
            context='normal',
            trusted_contact=contact,
            metadata={'access_type': access_type, 'share_id': share.id, 'created': created},
            request=request,
        )

    logger.info("Document %s shared with contact %s (%s)", document.id, contact.id, access_type)
    return share, created


def revoke_share(owner_id, share_id):
    deleted, _ = DocumentShare.objects.filter(id=share_id, owner_id=owner_id).delete()
    if not deleted:
        raise NotFoundError("Share not found.")
    logger.info("Share %s revoked by user %s", share_id, owner_id)
