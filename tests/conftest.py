import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from apps.authentication.models import User
from apps.contacts.models import TrustedContact
from apps.documents.models import Document, DocumentCategory


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def owner(db):
    return User.objects.create_user(
        email='margaret@example.com', password='nest-pass-1', first_name='Margaret', last_name='Hale'
    )


@pytest.fixture
def daughter_user(db):
    return User.objects.create_user(
        email='sarah@example.com', password='nest-pass-2', first_name='Sarah', last_name='Hale'
    )


@pytest.fixture
def stranger(db):
    return User.objects.create_user(
        email='stranger@example.com', password='nest-pass-3', first_name='Sam', last_name='Stone'
    )


@pytest.fixture
def admin_user(db):
    return User.objects.create_superuser(email='admin@aerialnest.com', password='admin-pass-1')


@pytest.fixture
def category(db):
    return DocumentCategory.objects.create(name='Healthcare', display_order=1)


def make_document(owner, title='Healthcare Directive', **kwargs):
    defaults = {
        'document_type': 'healthcare_directive',
        's3_key': f"users/{owner.id}/documents/{title.lower().replace(' ', '_')}.pdf",
        'file_name': f"{title}.pdf",
        'file_size': 2048,
        'file_type': 'pdf',
    }
    defaults.update(kwargs)
    return Document.objects.create(owner=owner, title=title, **defaults)


@pytest.fixture
def document(owner, category):
    return make_document(owner, category=category, user_notes='Copy kept in the desk drawer')


@pytest.fixture
def will(owner):
    return make_document(owner, title='Last Will', document_type='will')


@pytest.fixture
def emergency_contact(owner):
    return TrustedContact.objects.create(
        owner=owner, contact_name='Sarah Hale', contact_email='sarah@example.com',
        relationship='daughter', emergency_contact=True,
    )


@pytest.fixture
def friend_contact(owner):
    return TrustedContact.objects.create(
        owner=owner, contact_name='Frank Friend', contact_email='frank@example.com',
        relationship='friend', emergency_contact=False,
    )


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def owner_client(owner):
    client = APIClient()
    client.force_authenticate(user=owner)
    return client
