"""
Trusted contact and document share API views.
All endpoints are scoped to the authenticated owner.
"""
import logging

from rest_framework import views, status
from rest_framework.response import Response

from apps.core.exceptions import AerialNestError, error_response

from . import directory
from .models import TrustedContact, DocumentShare
from .serializers import TrustedContactSerializer, DocumentShareSerializer, CreateShareSerializer

logger = logging.getLogger(__name__)


class ContactListCreateView(views.APIView):
    """
    GET /api/contacts/ — List trusted contacts
    POST /api/contacts/ — Add a trusted contact
    """

    def get(self, request):
        contacts = TrustedContact.objects.filter(owner=request.user)
        return Response(TrustedContactSerializer(contacts, many=True).data)

    def post(self, request):
        serializer = TrustedContactSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        contact = serializer.save(owner=request.user)
        logger.info("Trusted contact %s added by user %s (emergency=%s)",
                    contact.id, request.user.id, contact.emergency_contact)
        return Response(TrustedContactSerializer(contact).data, status=status.HTTP_201_CREATED)


class ContactDetailView(views.APIView):
    """
    GET /api/contacts/{id}/
    PATCH /api/contacts/{id}/
    DELETE /api/contacts/{id}/ — Cascades shares and emergency requests
    """

    def get(self, request, pk):
        try:
            contact = directory.get_contact(request.user.id, pk)
        except AerialNestError as e:
            return error_response(e)
        return Response(TrustedContactSerializer(contact).data)

    def patch(self, request, pk):
        try:
            contact = directory.get_contact(request.user.id, pk)
        except AerialNestError as e:
            return error_response(e)

        serializer = TrustedContactSerializer(contact, data=request.data, partial=True)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)
        serializer.save()
        return Response(serializer.data)

    def delete(self, request, pk):
        try:
            directory.delete_contact(request.user.id, pk)
        except AerialNestError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class ContactShareListCreateView(views.APIView):
    """
    GET /api/contacts/{id}/shares/ — Documents shared with this contact
    POST /api/contacts/{id}/shares/ — Share a document with this contact
    """

    def get(self, request, pk):
        try:
            contact = directory.get_contact(request.user.id, pk)
        except AerialNestError as e:
            return error_response(e)
        shares = contact.shares.select_related('document', 'trusted_contact')
        return Response(DocumentShareSerializer(shares, many=True).data)

    def post(self, request, pk):
        serializer = CreateShareSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            share, created = directory.create_share(
                request.user, pk, data['document_id'],
                access_type=data['access_type'],
                share_message=data.get('share_message', ''),
                request=request,
            )
        except AerialNestError as e:
            return error_response(e)

        return Response(
            DocumentShareSerializer(share).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )


class ShareDetailView(views.APIView):
    """DELETE /api/shares/{id}/ — Revoke a standing share."""

    def delete(self, request, pk):
        try:
            directory.revoke_share(request.user.id, pk)
        except AerialNestError as e:
            return error_response(e)
        return Response(status=status.HTTP_204_NO_CONTENT)


class SharedWithMeView(views.APIView):
    """GET /api/shares/with-me/ — Documents other users have shared with the caller's email."""

    def get(self, request):
        shares = DocumentShare.objects.filter(
            trusted_contact__contact_email__iexact=request.user.email,
            document__is_active=True,
        ).select_related('document', 'trusted_contact')
        return Response(DocumentShareSerializer(shares, many=True).data)
