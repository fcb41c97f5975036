from datetime import timedelta
from io import StringIO

import pytest
from django.core.management import call_command
from django.utils import timezone

from apps.emergency_access import workflow
from apps.emergency_access.models import EmergencyAccessRequest

pytestmark = pytest.mark.django_db


def test_command_reports_nothing_to_do():
    out = StringIO()
    call_command('expire_emergency_requests', stdout=out)
    assert 'No stale emergency requests found' in out.getvalue()


def test_command_marks_stale_requests(owner, emergency_contact):
    emergency_request = workflow.create_request(
        owner.id, emergency_contact.id, 'Sarah Hale', 'sarah@example.com', 'Fell down the stairs',
        ttl=timedelta(hours=1), now=timezone.now() - timedelta(hours=2),
    )

    out = StringIO()
    call_command('expire_emergency_requests', stdout=out)

    assert 'Marked 1 emergency requests as expired' in out.getvalue()
    emergency_request.refresh_from_db()
    assert emergency_request.status == EmergencyAccessRequest.STATUS_EXPIRED
