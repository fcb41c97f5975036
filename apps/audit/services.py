"""
Audit log writer.

``record`` is the only way rows get into ``AccessLog``. It never swallows a
storage failure: callers on the document access path rely on the StorageError
to fail closed.
"""
import logging
from collections import namedtuple

from django.db import DatabaseError

from apps.core.exceptions import StorageError

from .models import AccessLog

logger = logging.getLogger(__name__)

# An actor without an account, e.g. an emergency requester identified by token.
ActorDescriptor = namedtuple('ActorDescriptor', ['name', 'email'])


def describe_actor(actor):
    """Return (user, email, name) for a User, an ActorDescriptor, or None."""
    if actor is None:
        return None, '', ''
    if isinstance(actor, ActorDescriptor):
        return None, actor.email or '', actor.name or ''
    if getattr(actor, 'is_authenticated', False):
        return actor, actor.email or '', actor.full_name
    return None, '', ''


def client_details(request):
    """IP address and user agent of an HTTP request, for the log row."""
    if request is None:
        return None, ''
    meta = request.META
    forwarded = meta.get('HTTP_X_FORWARDED_FOR', '')
    ip_address = forwarded.split(',')[0].strip() if forwarded else meta.get('REMOTE_ADDR')
    return ip_address or None, meta.get('HTTP_USER_AGENT', '')


def record(action, actor, document=None, context='normal', emergency_request=None, metadata=None,
           owner=None, trusted_contact=None, outcome='granted', reason_code='', request=None):
    """
    Append one access log row.

    Args:
        action: One of AccessLog.ACTION_CHOICES
        actor: User, ActorDescriptor, or None for system actions
        document: Document the action concerns, if any
        context: 'normal', 'emergency' or 'shared'
        emergency_request: Originating EmergencyAccessRequest, if any
        metadata: Extra JSON-serialisable details
        owner: Document owner; defaults to the document's owner
        trusted_contact: TrustedContact the actor was resolved to, if any
        outcome: 'granted' or 'denied'
        reason_code: Machine-readable denial reason
        request: HTTP request the action came from, for IP and user agent

    Returns:
        AccessLog: the stored row

    Raises:
        StorageError: if the row could not be written
    """
    user, email, name = describe_actor(actor)
    ip_address, user_agent = client_details(request)
    if owner is None and document is not None:
        owner = document.owner

    try:
        return AccessLog.objects.create(
            owner=owner,
            accessed_by_user=user,
            accessed_by_email=email,
            accessed_by_name=name,
            document=document,
            trusted_contact=trusted_contact,
            emergency_request=emergency_request,
            action=action,
            access_context=context,
            outcome=outcome,
            reason_code=reason_code,
            ip_address=ip_address,
            user_agent=user_agent,
            metadata=metadata or {},
        )
    except DatabaseError as e:
        logger.exception("Audit write failed for action=%s document=%s", action, getattr(document, 'id', None))
        raise StorageError("Audit log is unavailable.") from e
