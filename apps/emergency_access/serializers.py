from rest_framework import serializers

from apps.core.access import ACCESS_ACTIONS

from .models import EmergencyAccessRequest, EmergencyAccessDocument
from .workflow import DECISIONS, EMERGENCY_TYPES


class CreateEmergencyRequestSerializer(serializers.Serializer):
    ownerId = serializers.IntegerField(source='owner_id')
    contactId = serializers.IntegerField(source='contact_id')
    requesterName = serializers.CharField(max_length=255, source='requester_name')
    requesterEmail = serializers.EmailField(source='requester_email')
    reason = serializers.CharField()
    emergencyType = serializers.ChoiceField(choices=EMERGENCY_TYPES, default='general', source='emergency_type')
    ttlHours = serializers.IntegerField(required=False, min_value=1, source='ttl_hours')


class DecisionSerializer(serializers.Serializer):
    decision = serializers.ChoiceField(choices=DECISIONS)
    grantedDocumentIds = serializers.ListField(
        child=serializers.IntegerField(), required=False, default=list, source='granted_document_ids'
    )
    grantedAccessType = serializers.ChoiceField(
        choices=ACCESS_ACTIONS, default='view', source='granted_access_type'
    )
    denialReason = serializers.CharField(required=False, allow_blank=True, source='denial_reason')
    adminNotes = serializers.CharField(required=False, allow_blank=True, source='admin_notes')


class EmergencyAccessDocumentSerializer(serializers.ModelSerializer):
    document_title = serializers.CharField(source='document.title', read_only=True)

    class Meta:
        model = EmergencyAccessDocument
        fields = ['document_id', 'document_title', 'granted_access_type', 'accessed_at']


class EmergencyAccessRequestSerializer(serializers.ModelSerializer):
    effective_status = serializers.SerializerMethodField()
    contact_name = serializers.CharField(source='trusted_contact.contact_name', read_only=True)
    granted_documents = EmergencyAccessDocumentSerializer(many=True, read_only=True)

    class Meta:
        model = EmergencyAccessRequest
        fields = [
            'id', 'owner_id', 'trusted_contact_id', 'contact_name',
            'requested_by_name', 'requested_by_email', 'request_reason', 'emergency_type',
            'status', 'effective_status', 'requested_at', 'approved_at', 'expires_at',
            'denial_reason', 'decided_at', 'decided_by_id', 'admin_approved_by_id', 'admin_notes',
            'granted_documents',
        ]

    def get_effective_status(self, obj):
        return obj.effective_status()
