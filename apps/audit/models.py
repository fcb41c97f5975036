"""
Append-only access log.

Rows reference users, documents, contacts and emergency requests with nullable
foreign keys set to NULL on delete: removing any of those must never remove the
record of what happened to it.
"""
from django.conf import settings
from django.db import models


class AccessLog(models.Model):
    ACTION_CHOICES = (
        ('viewed', 'Viewed'),
        ('downloaded', 'Downloaded'),
        ('shared', 'Shared'),
        ('emergency_accessed', 'Emergency Accessed'),
        ('uploaded', 'Uploaded'),
        ('emergency_requested', 'Emergency Requested'),
        ('emergency_decided', 'Emergency Decided'),
    )

    CONTEXT_CHOICES = (
        ('normal', 'Normal'),
        ('emergency', 'Emergency'),
        ('shared', 'Shared'),
    )

    OUTCOME_CHOICES = (
        ('granted', 'Granted'),
        ('denied', 'Denied'),
    )

    # Document owner (nullable: owner may be deleted, or unknown for a bad document id)
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='owned_access_logs'
    )

    # Who acted: a registered user, or a bare name/email for emergency requesters
    accessed_by_user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='access_logs'
    )
    accessed_by_email = models.EmailField(blank=True, default='')
    accessed_by_name = models.CharField(max_length=255, blank=True, default='')

    document = models.ForeignKey(
        'documents.Document', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='access_logs'
    )
    trusted_contact = models.ForeignKey(
        'contacts.TrustedContact', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='access_logs'
    )
    emergency_request = models.ForeignKey(
        'emergency_access.EmergencyAccessRequest', on_delete=models.SET_NULL, null=True, blank=True,
        related_name='access_logs'
    )

    action = models.CharField(max_length=100, choices=ACTION_CHOICES)
    access_context = models.CharField(max_length=100, choices=CONTEXT_CHOICES, default='normal')
    outcome = models.CharField(max_length=20, choices=OUTCOME_CHOICES, default='granted')
    reason_code = models.CharField(max_length=50, blank=True, default='')

    ip_address = models.GenericIPAddressField(null=True, blank=True)
    user_agent = models.TextField(blank=True, default='')
    metadata = models.JSONField(default=dict, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['owner', 'created_at'], name='accesslog_owner_created_idx'),
            models.Index(fields=['document', 'created_at'], name='accesslog_doc_created_idx'),
        ]

    def __str__(self):
        actor = self.accessed_by_email or self.accessed_by_user_id
        return f"{self.action} ({self.outcome}) by {actor} on {self.document_id}"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise RuntimeError("Access log rows are append-only.")
        super().save(*args, **kwargs)

    def delete(self, *args, **kwargs):
        raise RuntimeError("Access log rows are append-only.")
