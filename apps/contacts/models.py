"""
Trusted contacts and the standing document shares granted to them.
"""
from django.conf import settings
from django.db import models


class TrustedContact(models.Model):
    """A person a user trusts with standing or emergency access to their documents."""
    RELATIONSHIP_CHOICES = (
        ('daughter', 'Daughter'),
        ('son', 'Son'),
        ('spouse', 'Spouse'),
        ('sibling', 'Sibling'),
        ('executor', 'Executor'),
        ('friend', 'Friend'),
        ('other', 'Other'),
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='trusted_contacts'
    )

    contact_name = models.CharField(max_length=255)
    contact_email = models.EmailField(db_index=True)
    contact_phone = models.CharField(max_length=20, blank=True, default='')
    relationship = models.CharField(max_length=100, choices=RELATIONSHIP_CHOICES, blank=True, default='')

    # Standing blanket permission over every active document of the owner
    can_access_all = models.BooleanField(default=False)
    # Eligible to be granted emergency access
    emergency_contact = models.BooleanField(default=False)

    notes = models.TextField(blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['contact_name']

    def __str__(self):
        return f"{self.contact_name} ({self.relationship or 'contact'}) of {self.owner_id}"


class DocumentShare(models.Model):
    """Explicit standing grant of one document to one trusted contact."""
    ACCESS_TYPE_CHOICES = (
        ('view', 'View'),
        ('download', 'Download'),
    )

    document = models.ForeignKey('documents.Document', on_delete=models.CASCADE, related_name='shares')
    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE,
        related_name='document_shares'
    )
    trusted_contact = models.ForeignKey(TrustedContact, on_delete=models.CASCADE, related_name='shares')
    access_type = models.CharField(max_length=50, choices=ACCESS_TYPE_CHOICES, default='view')
    share_message = models.TextField(blank=True, default='')
    shared_at = models.DateTimeField(auto_now_add=True)
    shared_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True,
        related_name='granted_shares'
    )

    class Meta:
        unique_together = ['document', 'trusted_contact']
        ordering = ['-shared_at']

    def __str__(self):
        return f"Share: {self.document_id} -> {self.trusted_contact_id} ({self.access_type})"
