import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('contacts', '0001_initial'),
        ('documents', '0001_initial'),
        ('emergency_access', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='AccessLog',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('accessed_by_email', models.EmailField(blank=True, default='', max_length=254)),
                ('accessed_by_name', models.CharField(blank=True, default='', max_length=255)),
                ('action', models.CharField(choices=[('viewed', 'Viewed'), ('downloaded', 'Downloaded'), ('shared', 'Shared'), ('emergency_accessed', 'Emergency Accessed'), ('uploaded', 'Uploaded'), ('emergency_requested', 'Emergency Requested'), ('emergency_decided', 'Emergency Decided')], max_length=100)),
                ('access_context', models.CharField(choices=[('normal', 'Normal'), ('emergency', 'Emergency'), ('shared', 'Shared')], default='normal', max_length=100)),
                ('outcome', models.CharField(choices=[('granted', 'Granted'), ('denied', 'Denied')], default='granted', max_length=20)),
                ('reason_code', models.CharField(blank=True, default='', max_length=50)),
                ('ip_address', models.GenericIPAddressField(blank=True, null=True)),
                ('user_agent', models.TextField(blank=True, default='')),
                ('metadata', models.JSONField(blank=True, default=dict)),
                ('created_at', models.DateTimeField(auto_now_add=True, db_index=True)),
                ('accessed_by_user', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='access_logs', to=settings.AUTH_USER_MODEL)),
                ('document', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='access_logs', to='documents.document')),
                ('emergency_request', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='access_logs', to='emergency_access.emergencyaccessrequest')),
                ('owner', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='owned_access_logs', to=settings.AUTH_USER_MODEL)),
                ('trusted_contact', models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='access_logs', to='contacts.trustedcontact')),
            ],
            options={
                'ordering': ['-created_at', '-id'],
                'indexes': [
                    models.Index(fields=['owner', 'created_at'], name='accesslog_owner_created_idx'),
                    models.Index(fields=['document', 'created_at'], name='accesslog_doc_created_idx'),
                ],
            },
        ),
    ]
