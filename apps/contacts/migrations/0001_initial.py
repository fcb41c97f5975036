import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ('documents', '0001_initial'),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name='TrustedContact',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('contact_name', models.CharField(max_length=255)),
                ('contact_email', models.EmailField(db_index=True, max_length=254)),
                ('contact_phone', models.CharField(blank=True, default='', max_length=20)),
                ('relationship', models.CharField(blank=True, choices=[('daughter', 'Daughter'), ('son', 'Son'), ('spouse', 'Spouse'), ('sibling', 'Sibling'), ('executor', 'Executor'), ('friend', 'Friend'), ('other', 'Other')], default='', max_length=100)),
                ('can_access_all', models.BooleanField(default=False)),
                ('emergency_contact', models.BooleanField(default=False)),
                ('notes', models.TextField(blank=True, default='')),
                ('created_at', models.DateTimeField(auto_now_add=True)),
                ('updated_at', models.DateTimeField(auto_now=True)),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='trusted_contacts', to=settings.AUTH_USER_MODEL)),
            ],
            options={
                'ordering': ['contact_name'],
            },
        ),
        migrations.CreateModel(
            name='DocumentShare',
            fields=[
                ('id', models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name='ID')),
                ('access_type', models.CharField(choices=[('view', 'View'), ('download', 'Download')], default='view', max_length=50)),
                ('share_message', models.TextField(blank=True, default='')),
                ('shared_at', models.DateTimeField(auto_now_add=True)),
                ('document', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='documents.document')),
                ('owner', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='document_shares', to=settings.AUTH_USER_MODEL)),
                ('shared_by', models.ForeignKey(null=True, on_delete=django.db.models.deletion.SET_NULL, related_name='granted_shares', to=settings.AUTH_USER_MODEL)),
                ('trusted_contact', models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name='shares', to='contacts.trustedcontact')),
            ],
            options={
                'ordering': ['-shared_at'],
                'unique_together': {('document', 'trusted_contact')},
            },
        ),
    ]
