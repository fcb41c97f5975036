"""
Document API views.
Reads of a single document go through the access gate; everything else is
owner-only.
"""
import logging
import os
import uuid

from django.db import transaction, DatabaseError
from rest_framework import views, status, permissions
from rest_framework.parsers import MultiPartParser, FormParser, JSONParser
from rest_framework.response import Response

from apps.audit import services as audit
from apps.core.exceptions import AerialNestError, StorageError, error_response

from . import access_gate
from .models import Document, DocumentCategory
from .serializers import (
    DocumentCategorySerializer, DocumentSerializer, SharedDocumentSerializer,
    DocumentUploadSerializer, DocumentMetadataSerializer,
)
from .storage import upload_document, generate_presigned_url_for_key, delete_document_object

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = {'.pdf', '.doc', '.docx', '.txt', '.jpg', '.jpeg', '.png', '.heic'}

NOT_FOUND_REASONS = {access_gate.REASON_NOT_FOUND, access_gate.REASON_DOCUMENT_INACTIVE}


class CategoryListView(views.APIView):
    """GET /api/categories/ — Ordered document categories."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        categories = DocumentCategory.objects.all()
        return Response(DocumentCategorySerializer(categories, many=True).data)


class DocumentListCreateView(views.APIView):
    """
    GET /api/documents/ — List the caller's active documents
    POST /api/documents/ — Upload a document to S3 and store its metadata
    """
    parser_classes = [MultiPartParser, FormParser]

    def get(self, request):
        documents = Document.objects.filter(owner=request.user, is_active=True).select_related('category')
        category_id = request.query_params.get('category')
        if category_id:
            if not category_id.isdigit():
                return Response({"error": "category must be a numeric id.", "code": "validation_error"},
                                status=status.HTTP_400_BAD_REQUEST)
            documents = documents.filter(category_id=category_id)
        return Response(DocumentSerializer(documents, many=True).data)

    def post(self, request):
        serializer = DocumentUploadSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        file = data['file']
        ext = os.path.splitext(file.name)[1].lower()
        if ext not in ALLOWED_EXTENSIONS:
            return Response({"error": f"File type {ext} not allowed.", "code": "invalid_file_type"},
                            status=status.HTTP_400_BAD_REQUEST)

        user = request.user
        s3_key = upload_document(user.id, file, f"{uuid.uuid4()}_{file.name}", content_type=file.content_type)
        if not s3_key:
            return Response({"error": "Document upload failed.", "code": "upload_failed"},
                            status=status.HTTP_502_BAD_GATEWAY)

        try:
            with transaction.atomic():
                doc = Document.objects.create(
                    owner=user,
                    category=data.get('category'),
                    title=data.get('title') or file.name,
                    description=data.get('description', ''),
                    document_type=data['document_type'],
                    s3_key=s3_key,
                    file_name=file.name,
                    file_size=file.size,
                    file_type=ext.lstrip('.'),
                    user_notes=data.get('user_notes', ''),
                )
                audit.record('uploaded', user, document=doc, context='normal', request=request)
        except DatabaseError:
            logger.exception("Saving document metadata failed for %s", s3_key)
            delete_document_object(s3_key)
            return error_response(StorageError("Document could not be saved."))
        except AerialNestError as e:
            delete_document_object(s3_key)
            return error_response(e)

        logger.info("Document %s uploaded by user %s (%s bytes)", doc.id, user.id, doc.file_size)
        return Response(DocumentSerializer(doc).data, status=status.HTTP_201_CREATED)


class DocumentDetailView(views.APIView):
    """
    GET /api/documents/{id}/?action=view|download&emergencyRequestId=&token= — Gated read
    PATCH /api/documents/{id}/ — Edit metadata (owner)
    DELETE /api/documents/{id}/ — Soft delete (owner)
    """
    parser_classes = [JSONParser, FormParser, MultiPartParser]

    def get_permissions(self):
        if self.request.method == 'GET':
            # Emergency requesters may not have an account; the gate decides.
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get(self, request, pk):
        action = request.query_params.get('action', 'view')
        try:
            decision = access_gate.authorize(
                request.user, pk, action,
                emergency_request_id=request.query_params.get('emergencyRequestId') or None,
                access_token=request.query_params.get('token') or None,
                request=request,
            )
        except AerialNestError as e:
            return error_response(e)

        if not decision.granted:
            if decision.reason in NOT_FOUND_REASONS:
                return Response({"error": "Document not found.", "code": "not_found"},
                                status=status.HTTP_404_NOT_FOUND)
            if decision.reason == access_gate.REASON_AUDIT_UNAVAILABLE:
                return Response({"error": "Access denied.", "code": "access_denied"},
                                status=status.HTTP_403_FORBIDDEN)
            return Response({"error": "Access denied.", "code": decision.reason},
                            status=status.HTTP_403_FORBIDDEN)

        doc = decision.document
        if decision.context == access_gate.CONTEXT_NORMAL:
            data = DocumentSerializer(doc).data
        else:
            data = SharedDocumentSerializer(doc).data
        data['access_context'] = decision.context
        if action == 'download':
            data['download_url'] = generate_presigned_url_for_key(doc.s3_key)
        return Response(data)

    def _get_owned(self, request, pk):
        return Document.objects.get(id=pk, owner=request.user, is_active=True)

    def patch(self, request, pk):
        try:
            doc = self._get_owned(request, pk)
        except Document.DoesNotExist:
            return Response({"error": "Document not found.", "code": "not_found"},
                            status=status.HTTP_404_NOT_FOUND)

        serializer = DocumentMetadataSerializer(doc, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(DocumentSerializer(doc).data)

    def delete(self, request, pk):
        try:
            doc = self._get_owned(request, pk)
        except Document.DoesNotExist:
            return Response({"error": "Document not found.", "code": "not_found"},
                            status=status.HTTP_404_NOT_FOUND)

        doc.is_active = False
        doc.save(update_fields=['is_active', 'updated_at'])
        logger.info("Document %s deactivated by user %s", doc.id, request.user.id)
        return Response(status=status.HTTP_204_NO_CONTENT)
