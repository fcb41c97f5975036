from rest_framework import serializers

from .models import AccessLog


class AccessLogSerializer(serializers.ModelSerializer):
    document_title = serializers.CharField(source='document.title', read_only=True, default=None)

    class Meta:
        model = AccessLog
        fields = [
            'id', 'owner_id', 'accessed_by_user_id', 'accessed_by_email', 'accessed_by_name',
            'document_id', 'document_title', 'trusted_contact_id', 'emergency_request_id',
            'action', 'access_context', 'outcome', 'reason_code',
            'ip_address', 'metadata', 'created_at',
        ]
        read_only_fields = fields
