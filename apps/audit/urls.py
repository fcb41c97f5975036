from django.urls import path
from . import views

urlpatterns = [
    path('', views.AccessLogListView.as_view(), name='access-logs'),
]
