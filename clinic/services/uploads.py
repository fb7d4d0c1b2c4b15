"""
Patient document uploads.

Files are checked against ``settings.UPLOAD_MAX_MB`` and
``settings.ALLOWED_UPLOAD_TYPES`` and stored under
``documents/YYYY/MM/`` with a generated, collision-free name.
"""
from __future__ import annotations

import logging
import os
import re
import secrets

from django.conf import settings
from django.utils import timezone

from clinic.exceptions import NotFoundError, ValidationError
from clinic.models import Document, Patient

logger = logging.getLogger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def generate_filename(original_name: str, *, now=None) -> str:
    """``<basename>-<timestamp>-<random><ext>`` under ``documents/YYYY/MM``."""
    now = now or timezone.now()
    base, ext = os.path.splitext(os.path.basename(original_name or 'file'))
    base = _UNSAFE_CHARS.sub('_', base).strip('._')[:80] or 'file'
    ext = _UNSAFE_CHARS.sub('', ext.lower())[:10]
    stamp = int(now.timestamp() * 1000)
    return f"documents/{now:%Y}/{now:%m}/{base}-{stamp}-{secrets.randbelow(10 ** 9)}{ext}"


def validate_upload(f) -> str:
    size_mb = (f.size or 0) / (1024 * 1024)
    if size_mb > settings.UPLOAD_MAX_MB:
        raise ValidationError(f"File exceeds the {settings.UPLOAD_MAX_MB} MB limit", {'file': ['File too large']})
    ctype = (getattr(f, 'content_type', '') or '').lower()
    if ctype not in settings.ALLOWED_UPLOAD_TYPES:
        raise ValidationError(f"Unsupported file type: {ctype or 'unknown'}", {'file': ['Unsupported file type']})
    return ctype


def store_document(patient: Patient, f, *, uploaded_by=None, category: str = '') -> Document:
    ctype = validate_upload(f)
    original = os.path.basename(f.name or 'file')
    doc = Document(
        patient=patient,
        original_name=original[:255],
        content_type=ctype,
        size=f.size or 0,
        category=category or '',
        uploaded_by=uploaded_by,
    )
    doc.file.save(generate_filename(original), f, save=False)
    doc.save()
    logger.info('Stored document %s (%s bytes) for patient %s', doc.file.name, doc.size, patient.id)
    return doc


def get_document(patient: Patient, document_id) -> Document:
    doc = patient.documents.filter(id=document_id).first()
    if doc is None:
        raise NotFoundError('Document', document_id)
    return doc


def delete_document(doc: Document) -> None:
    storage, name = doc.file.storage, doc.file.name
    doc.delete()
    if name:
        storage.delete(name)


def serialize_document(doc: Document) -> dict:
    return {
        'id': doc.id,
        'patientId': doc.patient_id,
        'originalName': doc.original_name,
        'contentType': doc.content_type,
        'size': doc.size,
        'category': doc.category or None,
        'url': doc.file.url if doc.file else None,
        'uploadedBy': doc.uploaded_by_id,
        'createdAt': doc.created_at.isoformat() if doc.created_at else None,
    }
