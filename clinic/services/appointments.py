from __future__ import annotations

from django.db import transaction

from clinic.exceptions import NotFoundError
from clinic.models import Appointment, Patient, User
from clinic.services.patients import invalidate_patient_cache

_FIELD_MAP = {
    'date': 'date',
    'time': 'time',
    'type': 'type',
    'status': 'status',
    'duration': 'duration',
    'location': 'location',
    'reason': 'reason',
    'notes': 'notes',
    'consultationType': 'consultation_type',
    'specialty': 'specialty',
    'referralRequired': 'referral_required',
}

_TEXT_FIELDS = {'location', 'reason', 'notes', 'consultation_type', 'specialty'}


def serialize_appointment(a: Appointment) -> dict:
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'providerId': a.provider_id,
        'providerName': a.provider.display_name if a.provider_id else None,
        'date': a.date.isoformat() if a.date else None,
        'time': a.time,
        'type': a.type,
        'status': a.status,
        'duration': a.duration,
        'location': a.location or None,
        'reason': a.reason or None,
        'notes': a.notes or None,
        'consultationType': a.consultation_type or None,
        'specialty': a.specialty or None,
        'referralRequired': a.referral_required,
        'createdAt': a.created_at.isoformat() if a.created_at else None,
        'updatedAt': a.updated_at.isoformat() if a.updated_at else None,
    }


def _provider(provider_id) -> User:
    provider = User.objects.filter(id=provider_id).first()
    if provider is None:
        raise NotFoundError('Provider', provider_id)
    return provider


def _fields(data: dict) -> dict:
    fields = {}
    for key, model_field in _FIELD_MAP.items():
        if key in data:
            value = data[key]
            if value is None and model_field in _TEXT_FIELDS:
                value = ''
            fields[model_field] = value
    return fields


def get_appointment(patient: Patient, appointment_id) -> Appointment:
    appt = (
        Appointment.objects.select_related('provider')
        .filter(id=appointment_id, patient=patient)
        .first()
    )
    if appt is None:
        raise NotFoundError('Appointment', appointment_id)
    return appt


def list_appointments(*, patient_id=None, provider_id=None, status=None, date_from=None, date_to=None):
    qs = Appointment.objects.select_related('provider', 'patient')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if provider_id:
        qs = qs.filter(provider_id=provider_id)
    if status:
        qs = qs.filter(status=status)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    return qs.order_by('-date', '-time')


def create_appointment(patient: Patient, data: dict) -> Appointment:
    with transaction.atomic():
        appt = Appointment.objects.create(
            patient=patient,
            provider=_provider(data['providerId']),
            **_fields(data),
        )
    invalidate_patient_cache(patient.id)
    return appt


def update_appointment(appt: Appointment, data: dict) -> Appointment:
    with transaction.atomic():
        if data.get('providerId'):
            appt.provider = _provider(data['providerId'])
        for field, value in _fields(data).items():
            setattr(appt, field, value)
        appt.save()
    invalidate_patient_cache(appt.patient_id)
    return appt


def delete_appointment(appt: Appointment) -> None:
    patient_id = appt.patient_id
    appt.delete()
    invalidate_patient_cache(patient_id)
