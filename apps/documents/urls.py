from django.urls import path
from . import views

urlpatterns = [
    path('categories/', views.CategoryListView.as_view(), name='categories'),
    path('documents/', views.DocumentListCreateView.as_view(), name='documents'),
    path('documents/<int:pk>/', views.DocumentDetailView.as_view(), name='document-detail'),
]
