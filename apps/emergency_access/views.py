"""
Emergency access API views.
All endpoints under /api/emergency-requests/
"""
import logging
from datetime import timedelta

from django.conf import settings
from rest_framework import views, status, permissions
from rest_framework.response import Response

from apps.authentication.rate_limiting import check_submission_rate_limit, clear_submission_rate_limit
from apps.core.exceptions import AerialNestError, error_response

from . import workflow
from .models import EmergencyAccessRequest
from .serializers import (
    CreateEmergencyRequestSerializer, DecisionSerializer, EmergencyAccessRequestSerializer,
)

logger = logging.getLogger(__name__)


def _visible_requests(user):
    requests = EmergencyAccessRequest.objects.select_related('trusted_contact').prefetch_related(
        'granted_documents__document'
    )
    if user.is_admin:
        return requests
    return requests.filter(owner=user)


class EmergencyRequestListCreateView(views.APIView):
    """
    GET /api/emergency-requests/ — Requests against the caller's documents (all, for admins)
    POST /api/emergency-requests/ — Submit a request; no account required
    """

    def get_permissions(self):
        if self.request.method == 'POST':
            return [permissions.AllowAny()]
        return [permissions.IsAuthenticated()]

    def get(self, request):
        requests = _visible_requests(request.user)
        status_filter = request.query_params.get('status')
        if status_filter:
            requests = requests.filter(status=status_filter)
        return Response(EmergencyAccessRequestSerializer(requests, many=True).data)

    def post(self, request):
        serializer = CreateEmergencyRequestSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        is_allowed, wait_time = check_submission_rate_limit(
            data['requester_email'], action='emergency_request',
            limit_seconds=settings.EMERGENCY_REQUEST_RATE_LIMIT_SECONDS,
        )
        if not is_allowed:
            return Response({
                "error": f"A request was submitted recently. Try again in {wait_time} seconds.",
                "code": "rate_limited",
            }, status=status.HTTP_429_TOO_MANY_REQUESTS)

        ttl = timedelta(hours=data['ttl_hours']) if data.get('ttl_hours') else None
        actor = request.user if request.user.is_authenticated else None
        try:
            emergency_request = workflow.create_request(
                data['owner_id'], data['contact_id'],
                data['requester_name'], data['requester_email'],
                data['reason'], data['emergency_type'],
                ttl=ttl, actor=actor, request=request,
            )
        except AerialNestError as e:
            # Rejected submissions don't count against the requester
            clear_submission_rate_limit(data['requester_email'], action='emergency_request')
            return error_response(e)

        return Response({
            "id": emergency_request.id,
            "status": emergency_request.status,
            "expiresAt": emergency_request.expires_at.isoformat(),
            "accessToken": emergency_request.access_token,
        }, status=status.HTTP_201_CREATED)


class EmergencyRequestDetailView(views.APIView):
    """GET /api/emergency-requests/{id}/ — Owner or admin view with granted documents."""

    def get(self, request, pk):
        try:
            emergency_request = _visible_requests(request.user).get(id=pk)
        except EmergencyAccessRequest.DoesNotExist:
            return Response({"error": "Emergency request not found.", "code": "not_found"},
                            status=status.HTTP_404_NOT_FOUND)
        return Response(EmergencyAccessRequestSerializer(emergency_request).data)


class EmergencyRequestDecisionView(views.APIView):
    """POST /api/emergency-requests/{id}/decision — Approve or deny (owner or admin)."""

    def post(self, request, pk):
        serializer = DecisionSerializer(data=request.data)
        if not serializer.is_valid():
            return Response(serializer.errors, status=status.HTTP_400_BAD_REQUEST)

        data = serializer.validated_data
        try:
            emergency_request = workflow.decide(
                pk, request.user, data['decision'],
                granted_document_ids=data.get('granted_document_ids'),
                denial_reason=data.get('denial_reason'),
                granted_access_type=data['granted_access_type'],
                admin_notes=data.get('admin_notes'),
                request=request,
            )
        except AerialNestError as e:
            return error_response(e)

        emergency_request = _visible_requests(request.user).get(id=emergency_request.id)
        return Response(EmergencyAccessRequestSerializer(emergency_request).data)
