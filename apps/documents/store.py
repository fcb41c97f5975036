from apps.core.exceptions import NotFoundError

from .models import Document


def get_document(document_id):
    """Document metadata by id, active or not. Raises NotFoundError."""
    try:
        return Document.objects.select_related('owner').get(id=document_id)
    except (Document.DoesNotExist, ValueError, TypeError):
        raise NotFoundError("Document not found.")


def active_documents_for(owner_id, document_ids):
    """The subset of ``document_ids`` that are active documents of ``owner_id``."""
    return Document.objects.filter(owner_id=owner_id, id__in=document_ids, is_active=True)
