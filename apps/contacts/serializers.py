from rest_framework import serializers

from apps.core.access import ACCESS_ACTIONS

from .models import TrustedContact, DocumentShare


class TrustedContactSerializer(serializers.ModelSerializer):
    share_count = serializers.SerializerMethodField()

    class Meta:
        model = TrustedContact
        fields = [
            'id', 'contact_name', 'contact_email', 'contact_phone', 'relationship',
            'can_access_all', 'emergency_contact', 'notes',
            'share_count', 'created_at', 'updated_at',
        ]
        read_only_fields = ['id', 'share_count', 'created_at', 'updated_at']

    def get_share_count(self, obj):
        return obj.shares.count()

    def validate_contact_email(self, value):
        return value.lower()


class DocumentShareSerializer(serializers.ModelSerializer):
    document_title = serializers.CharField(source='document.title', read_only=True)
    contact_name = serializers.CharField(source='trusted_contact.contact_name', read_only=True)

    class Meta:
        model = DocumentShare
        fields = [
            'id', 'document_id', 'document_title', 'trusted_contact_id', 'contact_name',
            'access_type', 'share_message', 'shared_at',
        ]


class CreateShareSerializer(serializers.Serializer):
    document_id = serializers.IntegerField()
    access_type = serializers.ChoiceField(choices=ACCESS_ACTIONS, default='view')
    share_message = serializers.CharField(required=False, allow_blank=True, default='')
