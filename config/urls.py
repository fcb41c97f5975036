from django.contrib import admin
from django.urls import path, include

from apps.core.views import ApiRootView, HealthCheckView

urlpatterns = [
    path('admin/', admin.site.urls),

    path('', ApiRootView.as_view(), name='root'),
    path('api/', ApiRootView.as_view(), name='api-root'),
    path('api/health/', HealthCheckView.as_view(), name='health'),

    # Auth
    path('api/auth/', include('apps.authentication.urls')),

    # Documents + categories
    path('api/', include('apps.documents.urls')),

    # Trusted contacts + shares
    path('api/', include('apps.contacts.urls')),

    # Emergency access
    path('api/emergency-requests/', include('apps.emergency_access.urls')),

    # Audit
    path('api/access-logs/', include('apps.audit.urls')),
]
