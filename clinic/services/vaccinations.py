from __future__ import annotations

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic.exceptions import NotFoundError, ValidationError
from clinic.models import Patient, User, Vaccination
from clinic.services.patients import invalidate_patient_cache

VACCINATION_PAGE_DEFAULT = 50

_FIELD_MAP = {
    'vaccineName': 'vaccine_name',
    'vaccineCode': 'vaccine_code',
    'date': 'date',
    'location': 'location',
    'route': 'route',
    'site': 'site',
    'lotNumber': 'lot_number',
    'manufacturer': 'manufacturer',
    'expirationDate': 'expiration_date',
    'doseNumber': 'dose_number',
    'totalDoses': 'total_doses',
    'nextDoseDate': 'next_dose_date',
    'adverseReactions': 'adverse_reactions',
    'notes': 'notes',
    'verified': 'verified',
    'verifiedBy': 'verified_by',
    'verifiedDate': 'verified_date',
}

_NULLABLE = {'expiration_date', 'dose_number', 'total_doses', 'next_dose_date', 'verified_date'}


def serialize_vaccination(v: Vaccination) -> dict:
    return {
        'id': v.id,
        'patientId': v.patient_id,
        'vaccineName': v.vaccine_name,
        'vaccineCode': v.vaccine_code or None,
        'date': v.date.isoformat() if v.date else None,
        'administeredById': v.administered_by_id,
        'administeredBy': v.administered_by.display_name if v.administered_by_id else None,
        'location': v.location or None,
        'route': v.route or None,
        'site': v.site or None,
        'lotNumber': v.lot_number or None,
        'manufacturer': v.manufacturer or None,
        'expirationDate': v.expiration_date.isoformat() if v.expiration_date else None,
        'doseNumber': v.dose_number,
        'totalDoses': v.total_doses,
        'nextDoseDate': v.next_dose_date.isoformat() if v.next_dose_date else None,
        'adverseReactions': v.adverse_reactions or [],
        'notes': v.notes or None,
        'verified': v.verified,
        'verifiedBy': v.verified_by or None,
        'verifiedById': v.verified_by_user_id,
        'verifiedDate': v.verified_date.isoformat() if v.verified_date else None,
        'createdAt': v.created_at.isoformat() if v.created_at else None,
        'updatedAt': v.updated_at.isoformat() if v.updated_at else None,
    }


def _fields(data: dict) -> dict:
    fields = {}
    for key, model_field in _FIELD_MAP.items():
        if key not in data:
            continue
        value = data[key]
        if value is None and model_field not in _NULLABLE:
            if model_field == 'adverse_reactions':
                value = []
            elif model_field == 'verified':
                value = False
            else:
                value = ''
        fields[model_field] = value
    return fields


def _user(user_id, label: str) -> User | None:
    if not user_id:
        return None
    user = User.objects.filter(id=user_id).first()
    if user is None:
        raise NotFoundError(label, user_id)
    return user


def _check_consistency(v: Vaccination) -> None:
    errors = {}
    if v.dose_number and v.total_doses and v.dose_number > v.total_doses:
        errors['doseNumber'] = ['Dose number cannot exceed total doses']
    if v.next_dose_date and v.date and v.next_dose_date < v.date:
        errors['nextDoseDate'] = ['Next dose date cannot be before the vaccination date']
    if errors:
        raise ValidationError('Invalid vaccination data', errors)


def _apply_verification(v: Vaccination, data: dict) -> None:
    if 'verifiedById' in data:
        v.verified_by_user = _user(data['verifiedById'], 'Verifying user')
        if v.verified_by_user and not v.verified_by:
            v.verified_by = v.verified_by_user.display_name
    if v.verified and not v.verified_date:
        v.verified_date = timezone.localdate()


def get_vaccination(patient: Patient, vaccination_id) -> Vaccination:
    v = (
        Vaccination.objects.select_related('administered_by', 'verified_by_user')
        .filter(id=vaccination_id, patient=patient)
        .first()
    )
    if v is None:
        raise NotFoundError('Vaccination', vaccination_id)
    return v


def list_vaccinations(patient: Patient, *, verified: bool | None = None, search: str | None = None):
    qs = patient.vaccinations.select_related('administered_by', 'verified_by_user')
    if verified is not None:
        qs = qs.filter(verified=verified)
    if search:
        qs = qs.filter(
            Q(vaccine_name__icontains=search) | Q(vaccine_code__icontains=search)
            | Q(manufacturer__icontains=search)
        )
    return qs.order_by('-date', '-id')


def due_vaccinations(patient: Patient | None = None, *, as_of=None):
    """Vaccinations whose next dose is due on or before ``as_of`` (today)."""
    as_of = as_of or timezone.localdate()
    qs = Vaccination.objects.select_related('patient', 'administered_by').filter(
        next_dose_date__isnull=False, next_dose_date__lte=as_of, patient__is_active=True,
    )
    if patient is not None:
        qs = qs.filter(patient=patient)
    return qs.order_by('next_dose_date')


def create_vaccination(patient: Patient, current_user, data: dict) -> Vaccination:
    administered_by = _user(data.get('administeredById'), 'Administering user') or current_user
    v = Vaccination(patient=patient, administered_by=administered_by, **_fields(data))
    _apply_verification(v, data)
    _check_consistency(v)
    with transaction.atomic():
        v.save()
    invalidate_patient_cache(patient.id)
    return v


def update_vaccination(v: Vaccination, data: dict) -> Vaccination:
    if 'administeredById' in data:
        v.administered_by = _user(data['administeredById'], 'Administering user')
    for field, value in _fields(data).items():
        setattr(v, field, value)
    _apply_verification(v, data)
    _check_consistency(v)
    with transaction.atomic():
        v.save()
    invalidate_patient_cache(v.patient_id)
    return v


def delete_vaccination(v: Vaccination) -> None:
    patient_id = v.patient_id
    v.delete()
    invalidate_patient_cache(patient_id)
