from django.db import migrations

CATEGORIES = [
    ('Healthcare', 'Medical directives, healthcare proxies, and medical information', 1),
    ('Legal', 'Wills, trusts, and legal documents', 2),
    ('Financial', 'Powers of attorney, insurance policies, and financial accounts', 3),
    ('Personal', 'Letters, memories, and personal messages', 4),
    ('Property', 'Deeds, titles, and property information', 5),
    ('Other', 'Miscellaneous important documents', 6),
]


def seed_categories(apps, schema_editor):
    DocumentCategory = apps.get_model('documents', 'DocumentCategory')
    for name, description, display_order in CATEGORIES:
        DocumentCategory.objects.get_or_create(
            name=name, defaults={'description': description, 'display_order': display_order}
        )


def remove_categories(apps, schema_editor):
    DocumentCategory = apps.get_model('documents', 'DocumentCategory')
    DocumentCategory.objects.filter(name__in=[name for name, _, _ in CATEGORIES]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ('documents', '0001_initial'),
    ]

    operations = [
        migrations.RunPython(seed_categories, remove_categories),
    ]
