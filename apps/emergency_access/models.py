"""
Emergency access requests and the documents granted by them.

A request's persisted ``status`` only ever moves pending -> approved or
pending -> denied (plus the reporting sweep to expired). Whether an approved
request still grants anything is decided at read time against ``expires_at``;
see ``effective_status``.
"""
import secrets

from django.conf import settings
from django.db import models
from django.utils import timezone


class EmergencyAccessRequest(models.Model):
    STATUS_PENDING = 'pending'
    STATUS_APPROVED = 'approved'
    STATUS_DENIED = 'denied'
    STATUS_EXPIRED = 'expired'

    STATUS_CHOICES = (
        (STATUS_PENDING, 'Pending'),
        (STATUS_APPROVED, 'Approved'),
        (STATUS_DENIED, 'Denied'),
        (STATUS_EXPIRED, 'Expired'),
    )

    EMERGENCY_TYPE_CHOICES = (
        ('medical', 'Medical'),
        ('financial', 'Financial'),
        ('general', 'General'),
    )

    # Document owner
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='emergency_requests'
    )
    trusted_contact = models.ForeignKey(
        'contacts.TrustedContact',
        on_delete=models.CASCADE,
        related_name='emergency_requests'
    )

    # Requester may not have an account yet
    requested_by_name = models.CharField(max_length=255)
    requested_by_email = models.EmailField()
    request_reason = models.TextField()
    emergency_type = models.CharField(max_length=100, choices=EMERGENCY_TYPE_CHOICES, default='general')
    requested_at = models.DateTimeField(default=timezone.now)

    status = models.CharField(max_length=50, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    approved_at = models.DateTimeField(null=True, blank=True)
    expires_at = models.DateTimeField(db_index=True)
    denial_reason = models.TextField(null=True, blank=True)
    decided_at = models.DateTimeField(null=True, blank=True)
    decided_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='decided_emergency_requests'
    )

    # Admin override
    admin_approved_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='admin_decided_emergency_requests'
    )
    admin_notes = models.TextField(null=True, blank=True)

    # Handed to the requester on creation; proves identity when they have no account
    access_token = models.CharField(max_length=64, unique=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-requested_at']
        indexes = [
            models.Index(fields=['owner', 'status'], name='emergency_owner_status_idx'),
        ]

    def __str__(self):
        return f"Emergency request {self.id} by {self.requested_by_email} ({self.status})"

    @staticmethod
    def generate_token():
        return secrets.token_urlsafe(32)

    def is_expired(self, now=None):
        return (now or timezone.now()) >= self.expires_at

    def effective_status(self, now=None):
        """Persisted status, except that pending or approved past expires_at reads as expired."""
        if self.status in (self.STATUS_PENDING, self.STATUS_APPROVED) and self.is_expired(now):
            return self.STATUS_EXPIRED
        return self.status


class EmergencyAccessDocument(models.Model):
    """One document included in an approved emergency request."""
    ACCESS_TYPE_CHOICES = (
        ('view', 'View'),
        ('download', 'Download'),
    )

    emergency_request = models.ForeignKey(
        EmergencyAccessRequest, on_delete=models.CASCADE, related_name='granted_documents'
    )
    document = models.ForeignKey(
        'documents.Document', on_delete=models.CASCADE, related_name='emergency_grants'
    )
    granted_access_type = models.CharField(max_length=50, choices=ACCESS_TYPE_CHOICES, default='view')
    # First time the grant was exercised; never overwritten
    accessed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        unique_together = ['emergency_request', 'document']

    def __str__(self):
        return f"Grant: request {self.emergency_request_id} -> document {self.document_id}"
