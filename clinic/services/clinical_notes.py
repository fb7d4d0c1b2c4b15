from __future__ import annotations

from django.db import transaction
from django.db.models import Q

from clinic.models import ClinicalNote, Patient
from clinic.services.chart import get_record, iso, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'title': 'title',
    'content': 'content',
    'date': 'date',
    'type': 'type',
    'consultationType': 'consultation_type',
    'specialty': 'specialty',
}


def serialize_clinical_note(n: ClinicalNote) -> dict:
    return {
        'id': n.id,
        'patientId': n.patient_id,
        'title': n.title,
        'content': n.content,
        'date': iso(n.date),
        'type': n.type,
        'consultationType': n.consultation_type or None,
        'specialty': n.specialty or None,
        'authorId': n.author_id,
        'author': user_name(n.author),
        'authorSpecialty': (n.author.specialty or None) if n.author_id else None,
        'createdAt': iso(n.created_at),
        'updatedAt': iso(n.updated_at),
    }


def get_clinical_note(patient: Patient, note_id) -> ClinicalNote:
    return get_record(patient.clinical_notes.select_related('author'), note_id, 'Clinical note')


def list_clinical_notes(patient: Patient, *, type: str | None = None, search: str | None = None):
    qs = patient.clinical_notes.select_related('author')
    if type:
        qs = qs.filter(type=type)
    if search:
        qs = qs.filter(Q(title__icontains=search) | Q(content__icontains=search))
    return qs.order_by('-date', '-id')


def create_clinical_note(patient: Patient, current_user, data: dict) -> ClinicalNote:
    """The signed-in user is always recorded as the author."""
    note = ClinicalNote(patient=patient, author=current_user, **model_fields(data, FIELD_MAP))
    if not note.specialty and getattr(current_user, 'specialty', ''):
        note.specialty = current_user.specialty
    with transaction.atomic():
        note.save()
    invalidate_patient_cache(patient.id)
    return note


def update_clinical_note(note: ClinicalNote, data: dict) -> ClinicalNote:
    for field, value in model_fields(data, FIELD_MAP).items():
        setattr(note, field, value)
    with transaction.atomic():
        note.save()
    invalidate_patient_cache(note.patient_id)
    return note


def delete_clinical_note(note: ClinicalNote) -> None:
    patient_id = note.patient_id
    note.delete()
    invalidate_patient_cache(patient_id)
