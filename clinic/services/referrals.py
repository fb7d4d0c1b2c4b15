"""
Specialist referrals.

Referrals are always addressed through their patient: a referral id that
belongs to another patient is reported as not found.
"""
from __future__ import annotations

from django.db import transaction

from clinic.exceptions import NotFoundError
from clinic.models import Patient, Referral, User
from clinic.services.patients import invalidate_patient_cache

_FIELD_MAP = {
    'date': 'date',
    'specialty': 'specialty',
    'reason': 'reason',
    'diagnosis': 'diagnosis',
    'priority': 'priority',
    'status': 'status',
    'referredToProviderName': 'referred_to_provider_name',
    'referredToFacility': 'referred_to_facility',
    'referredToAddress': 'referred_to_address',
    'referredToPhone': 'referred_to_phone',
    'appointmentDate': 'appointment_date',
    'appointmentTime': 'appointment_time',
    'notes': 'notes',
    'attachments': 'attachments',
    'insurancePreAuth': 'insurance_pre_auth',
    'preAuthNumber': 'pre_auth_number',
    'followUpRequired': 'follow_up_required',
    'followUpDate': 'follow_up_date',
}

_NULLABLE = {'appointment_date', 'follow_up_date'}
_BOOLEAN = {'insurance_pre_auth', 'follow_up_required'}


def _user_name(user: User | None) -> str | None:
    return user.display_name if user else None


def serialize_referral(r: Referral) -> dict:
    return {
        'id': r.id,
        'patientId': r.patient_id,
        'date': r.date.isoformat() if r.date else None,
        'specialty': r.specialty,
        'reason': r.reason,
        'diagnosis': r.diagnosis or None,
        'priority': r.priority,
        'status': r.status,
        'referringPhysicianId': r.referring_physician_id,
        'referringPhysicianName': _user_name(r.referring_physician),
        'referredToProviderId': r.referred_to_provider_id,
        'referredToProviderName': r.referred_to_provider_name or _user_name(r.referred_to_provider),
        'referredToFacility': r.referred_to_facility or None,
        'referredToAddress': r.referred_to_address or None,
        'referredToPhone': r.referred_to_phone or None,
        'appointmentDate': r.appointment_date.isoformat() if r.appointment_date else None,
        'appointmentTime': r.appointment_time or None,
        'notes': r.notes or None,
        'attachments': r.attachments or [],
        'insurancePreAuth': r.insurance_pre_auth,
        'preAuthNumber': r.pre_auth_number or None,
        'followUpRequired': r.follow_up_required,
        'followUpDate': r.follow_up_date.isoformat() if r.follow_up_date else None,
        'createdAt': r.created_at.isoformat() if r.created_at else None,
        'updatedAt': r.updated_at.isoformat() if r.updated_at else None,
    }


def _user(user_id, label: str) -> User | None:
    if not user_id:
        return None
    user = User.objects.filter(id=user_id).first()
    if user is None:
        raise NotFoundError(label, user_id)
    return user


def _fields(data: dict) -> dict:
    fields = {}
    for key, model_field in _FIELD_MAP.items():
        if key not in data:
            continue
        value = data[key]
        if value is None:
            if model_field in _NULLABLE:
                pass
            elif model_field in _BOOLEAN:
                value = False
            elif model_field == 'attachments':
                value = []
            else:
                value = ''
        fields[model_field] = value
    return fields


def get_referral(patient: Patient, referral_id) -> Referral:
    referral = (
        Referral.objects.select_related('referring_physician', 'referred_to_provider')
        .filter(id=referral_id, patient=patient)
        .first()
    )
    if referral is None:
        raise NotFoundError('Referral', referral_id)
    return referral


def list_referrals(*, patient_id=None, status=None, priority=None, specialty=None,
                   date_from=None, date_to=None):
    qs = Referral.objects.select_related('referring_physician', 'referred_to_provider')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    if priority:
        qs = qs.filter(priority=priority)
    if specialty:
        qs = qs.filter(specialty__icontains=specialty)
    if date_from:
        qs = qs.filter(date__gte=date_from)
    if date_to:
        qs = qs.filter(date__lte=date_to)
    return qs.order_by('-date', '-id')


def create_referral(patient: Patient, data: dict) -> Referral:
    fields = _fields(data)
    fields.setdefault('status', 'pending')
    fields.setdefault('attachments', [])
    with transaction.atomic():
        referral = Referral.objects.create(
            patient=patient,
            referring_physician=_user(data.get('referringPhysicianId'), 'Referring physician'),
            referred_to_provider=_user(data.get('referredToProviderId'), 'Referred-to provider'),
            **fields,
        )
    invalidate_patient_cache(patient.id)
    return referral


def update_referral(referral: Referral, data: dict) -> Referral:
    with transaction.atomic():
        if 'referringPhysicianId' in data:
            referral.referring_physician = _user(data['referringPhysicianId'], 'Referring physician')
        if 'referredToProviderId' in data:
            referral.referred_to_provider = _user(data['referredToProviderId'], 'Referred-to provider')
        for field, value in _fields(data).items():
            setattr(referral, field, value)
        referral.save()
    invalidate_patient_cache(referral.patient_id)
    return referral


def delete_referral(referral: Referral) -> None:
    patient_id = referral.patient_id
    referral.delete()
    invalidate_patient_cache(patient_id)
