import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contacts', '0001_initial'),
        ('documents', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='EmergencyAccessRequest',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('requested_by_name', models.CharField(max_length=255)),
                ('requested_by_email', models.EmailField(max_length=254)),
                ('request_reason', models.TextField()),
                ('emergency_type', models.CharField(choices=[('medical', 'Medical'), ('financial', 'Financial'), ('general', 'General')], default='general', max_length=100)),
                ('requested_at', models.DateTimeField(default=django.utils.timezone.now)),
                ('status', models.CharField(choices=[('pending', 'Pending'), ('approved', 'Approved'), ('denied', 'Denied'), ('expired', 'Expired')], db_index=True, default='pending', max_length=50)),
                ('approved_at', models.DateTimeField(blank=True, null=True)),
                ('expires_at', models.DateTimeField(db_index=True)),
                ('denial_reason', models.TextField(blank=True, null=True)),
                ('decided_at', models.DateTimeField(blank=True, null=True)),
                ('admin_notes', models.TextField(blank=True, null=True)),
                ('access_token', models.CharField(db_index=True, max_length=64, unique=True)),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('admin_approved_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='admin_decided_emergency_requests', to=settings.AUTH_USER_MODEL)),
                ('decided_by', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='decided_emergency_requests', to=settings.AUTH_USER_MODEL)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_requests', to=settings.AUTH_USER_MODEL)),
                ('trusted_contact', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_requests', to='contacts.trustedcontact')),
            ],
            options={
                'ordering': ['-requested_at'],
                'indexes': [models.Index(fields=['owner', 'status'], name='emergency_owner_status_idx')],
            },
        ),
        migrations.CreateModel(
            name='EmergencyAccessDocument',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('granted_access_type', models.CharField(choices=[('view', 'View'), ('download', 'Download')], default='view', max_length=50)),
                ('accessed_at', models.DateTimeField(blank=True, null=True)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='emergency_grants', to='documents.document')),
                ('emergency_request', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='granted_documents', to='emergency_access.emergencyaccessrequest')),
            ],
            options={
                'unique_together': {('emergency_request', 'document')},
            },
        ),
    ]
