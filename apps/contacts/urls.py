from django.urls import path
from . import views

urlpatterns = [
    path('contacts/', views.ContactListCreateView.as_view(), name='contacts'),
    path('contacts/<int:pk>/', views.ContactDetailView.as_view(), name='contact-detail'),
    path('contacts/<int:pk>/shares/', views.ContactShareListCreateView.as_view(), name='contact-shares'),
    path('shares/with-me/', views.SharedWithMeView.as_view(), name='shares-with-me'),
    path('shares/<int:pk>/', views.ShareDetailView.as_view(), name='share-detail'),
]
