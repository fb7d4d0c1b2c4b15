from __future__ import annotations

from django.db import transaction
from django.db.models import Q

from clinic.exceptions import ValidationError
from clinic.models import Medication, Patient
from clinic.services.chart import get_record, iso, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'name': 'name',
    'status': 'status',
    'startedDate': 'started_date',
    'instructions': 'instructions',
    'prescriptionType': 'prescription_type',
    'refillsAuthorized': 'refills_authorized',
    'refillsRemaining': 'refills_remaining',
    'durationDays': 'duration_days',
    'expiryDate': 'expiry_date',
}

NULLABLE = {'refills_authorized', 'refills_remaining', 'duration_days', 'expiry_date'}


def serialize_medication(m: Medication) -> dict:
    return {
        'id': m.id,
        'patientId': m.patient_id,
        'name': m.name,
        'status': m.status,
        'startedDate': iso(m.started_date),
        'instructions': m.instructions or None,
        'prescriptionType': m.prescription_type or None,
        'refillsAuthorized': m.refills_authorized,
        'refillsRemaining': m.refills_remaining,
        'durationDays': m.duration_days,
        'expiryDate': iso(m.expiry_date),
        'prescribedById': m.prescribed_by_id,
        'prescribedBy': user_name(m.prescribed_by),
        'createdAt': iso(m.created_at),
        'updatedAt': iso(m.updated_at),
    }


def _check(m: Medication) -> None:
    errors = {}
    if (m.refills_remaining is not None and m.refills_authorized is not None
            and m.refills_remaining > m.refills_authorized):
        errors['refillsRemaining'] = ['Cannot exceed refills authorized']
    if m.expiry_date and m.started_date and m.expiry_date < m.started_date:
        errors['expiryDate'] = ['Expiry date cannot be before the start date']
    if errors:
        raise ValidationError('Invalid medication data', errors)


def get_medication(patient: Patient, medication_id) -> Medication:
    return get_record(patient.medications.select_related('prescribed_by'), medication_id, 'Medication')


def list_medications(patient: Patient, *, status: str | None = None, search: str | None = None):
    qs = patient.medications.select_related('prescribed_by')
    if status:
        qs = qs.filter(status=status)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(instructions__icontains=search))
    return qs.order_by('-started_date', '-id')


def create_medication(patient: Patient, current_user, data: dict) -> Medication:
    m = Medication(patient=patient, prescribed_by=current_user, **model_fields(data, FIELD_MAP, nullable=NULLABLE))
    if m.refills_remaining is None and m.refills_authorized is not None:
        m.refills_remaining = m.refills_authorized
    _check(m)
    with transaction.atomic():
        m.save()
    invalidate_patient_cache(patient.id)
    return m


def update_medication(m: Medication, data: dict) -> Medication:
    for field, value in model_fields(data, FIELD_MAP, nullable=NULLABLE).items():
        setattr(m, field, value)
    _check(m)
    with transaction.atomic():
        m.save()
    invalidate_patient_cache(m.patient_id)
    return m


def delete_medication(m: Medication) -> None:
    patient_id = m.patient_id
    m.delete()
    invalidate_patient_cache(patient_id)
