from rest_framework import views, status
from rest_framework.response import Response

from .models import AccessLog
from .serializers import AccessLogSerializer

MAX_LOG_ROWS = 500


class AccessLogListView(views.APIView):
    """
    GET /api/access-logs/ — Access history of the caller's documents.
    Admins see every row. Filters: ?document=<id>&action=<action>&outcome=<outcome>
    """

    def get(self, request):
        logs = AccessLog.objects.select_related('document')
        if not request.user.is_admin:
            logs = logs.filter(owner=request.user)

        document_id = request.query_params.get('document')
        if document_id:
            if not document_id.isdigit():
                return Response({"error": "document must be a numeric id.", "code": "validation_error"},
                                status=status.HTTP_400_BAD_REQUEST)
            logs = logs.filter(document_id=document_id)
        action = request.query_params.get('action')
        if action:
            logs = logs.filter(action=action)
        outcome = request.query_params.get('outcome')
        if outcome:
            logs = logs.filter(outcome=outcome)

        return Response(AccessLogSerializer(logs[:MAX_LOG_ROWS], many=True).data)
