from rest_framework import serializers

from .models import Document, DocumentCategory


class DocumentCategorySerializer(serializers.ModelSerializer):
    class Meta:
        model = DocumentCategory
        fields = ['id', 'name', 'description', 'display_order']


class DocumentSerializer(serializers.ModelSerializer):
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = Document
        fields = [
            'id', 'owner_id', 'category_id', 'category_name', 'title', 'description',
            'document_type', 'file_name', 'file_size', 'file_type', 'user_notes',
            'is_active', 'uploaded_at', 'updated_at',
        ]


class SharedDocumentSerializer(serializers.ModelSerializer):
    """What a non-owner sees: no personal notes."""
    category_name = serializers.CharField(source='category.name', read_only=True, default=None)

    class Meta:
        model = Document
        fields = [
            'id', 'category_name', 'title', 'description', 'document_type',
            'file_name', 'file_size', 'file_type', 'uploaded_at',
        ]


class DocumentUploadSerializer(serializers.Serializer):
    file = serializers.FileField()
    title = serializers.CharField(max_length=255, required=False, allow_blank=True)
    description = serializers.CharField(required=False, allow_blank=True, default='')
    document_type = serializers.ChoiceField(
        choices=[choice for choice, _ in Document.DOCUMENT_TYPE_CHOICES], default='other'
    )
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=DocumentCategory.objects.all(), required=False, allow_null=True, source='category'
    )
    user_notes = serializers.CharField(required=False, allow_blank=True, default='')


class DocumentMetadataSerializer(serializers.ModelSerializer):
    category_id = serializers.PrimaryKeyRelatedField(
        queryset=DocumentCategory.objects.all(), required=False, allow_null=True, source='category'
    )

    class Meta:
        model = Document
        fields = ['title', 'description', 'document_type', 'category_id', 'user_notes']
