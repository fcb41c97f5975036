from django.urls import path, re_path
from . import views

urlpatterns = [
    path('', views.EmergencyRequestListCreateView.as_view(), name='emergency-requests'),
    path('<int:pk>/', views.EmergencyRequestDetailView.as_view(), name='emergency-request-detail'),
    re_path(r'^(?P<pk>\d+)/decision/?$', views.EmergencyRequestDecisionView.as_view(),
            name='emergency-request-decision'),
]
