"""
Document metadata. File bytes live in S3; only the locator is stored here.
"""
from django.conf import settings
from django.db import models


class DocumentCategory(models.Model):
    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True, default='')
    display_order = models.IntegerField(default=0)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['display_order', 'name']
        verbose_name_plural = 'document categories'

    def __str__(self):
        return self.name


class Document(models.Model):
    """User-uploaded planning document (directive, will, POA, insurance...)."""
    DOCUMENT_TYPE_CHOICES = (
        ('healthcare_directive', 'Healthcare Directive'),
        ('will', 'Will'),
        ('financial_poa', 'Financial Power of Attorney'),
        ('insurance', 'Insurance'),
        ('other', 'Other'),
    )

    owner = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='documents'
    )
    category = models.ForeignKey(
        DocumentCategory, on_delete=models.SET_NULL, null=True, blank=True,
        related_name='documents'
    )

    title = models.CharField(max_length=255)
    description = models.TextField(blank=True, default='')
    document_type = models.CharField(max_length=100, choices=DOCUMENT_TYPE_CHOICES, default='other')

    s3_key = models.CharField(max_length=500)
    file_name = models.CharField(max_length=255)
    file_size = models.BigIntegerField(default=0)
    file_type = models.CharField(max_length=50)

    user_notes = models.TextField(blank=True, default='')
    is_active = models.BooleanField(default=True, db_index=True)

    uploaded_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['-uploaded_at']
        indexes = [
            models.Index(fields=['owner', 'is_active'], name='document_owner_active_idx'),
            models.Index(fields=['document_type'], name='document_type_idx'),
        ]

    def __str__(self):
        return f"{self.title} ({self.owner_id})"
