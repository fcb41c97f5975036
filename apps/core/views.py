"""
Service description and health check.
"""
from django.conf import settings
from django.db import connection, DatabaseError
from django.utils import timezone
from rest_framework import views, status, permissions
from rest_framework.response import Response


class ApiRootView(views.APIView):
    """GET /api/ — Service description."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response({
            "message": "Aerial Nest API is running",
            "timestamp": timezone.now().isoformat(),
            "version": settings.API_VERSION,
            "endpoints": [
                "GET /api/health/",
                "POST /api/auth/register/",
                "POST /api/auth/login/",
                "GET /api/categories/",
                "GET /api/documents/",
                "GET /api/contacts/",
                "POST /api/emergency-requests/",
                "GET /api/access-logs/",
            ],
        })


class HealthCheckView(views.APIView):
    """GET /api/health/ — Liveness plus database reachability."""
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        try:
            with connection.cursor() as cursor:
                cursor.execute("SELECT 1")
            database = "connected"
        except DatabaseError:
            database = "unavailable"

        healthy = database == "connected"
        return Response({
            "status": "healthy" if healthy else "degraded",
            "timestamp": timezone.now().isoformat(),
            "database": database,
        }, status=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE)
