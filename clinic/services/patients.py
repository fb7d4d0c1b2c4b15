"""
Patient records: listing, search, CRUD and the per-patient timeline.

List and detail payloads are cached. Rather than deleting keys by
pattern (not supported by every cache backend) list keys embed a
version number that is bumped on every patient write.
"""
from __future__ import annotations

import hashlib
import json
import logging

from django.conf import settings
from django.core.cache import cache
from django.db import transaction
from django.db.models import Q

from clinic.exceptions import NotFoundError
from clinic.models import Hub, Medication, Patient
from clinic.services.paging import clamp_limit, paginate

logger = logging.getLogger(__name__)

RISK_BANDS = {
    'low': (0, 33),
    'medium': (34, 66),
    'high': (67, 100),
}

SORT_FIELDS = {
    'name': 'name',
    'createdAt': 'created_at',
    'updatedAt': 'updated_at',
    'riskScore': 'risk_score',
    'dateOfBirth': 'date_of_birth',
    'condition': 'condition',
}

SEARCH_LIMIT = 20
TIMELINE_LIMIT = 50

_VERSION_KEY = 'patients:list:version'


# ---------------------------------------------------------------------
# Cache helpers
# ---------------------------------------------------------------------
def _list_version() -> int:
    version = cache.get(_VERSION_KEY)
    if version is None:
        version = 1
        cache.set(_VERSION_KEY, version, None)
    return version


def _list_cache_key(params: dict) -> str:
    digest = hashlib.md5(json.dumps(params, sort_keys=True, default=str).encode()).hexdigest()
    return f"patients:list:{_list_version()}:{digest}"


def _detail_cache_key(patient_id: int) -> str:
    return f"patients:detail:{patient_id}"


def invalidate_patient_cache(patient_id: int | None = None) -> None:
    """Drop cached lists, and the detail of ``patient_id`` when given."""
    try:
        cache.set(_VERSION_KEY, _list_version() + 1, None)
        if patient_id is not None:
            cache.delete(_detail_cache_key(patient_id))
    except Exception:
        logger.warning('Patient cache invalidation failed', exc_info=True)


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def risk_level(score: int) -> str:
    for level, (low, high) in RISK_BANDS.items():
        if low <= score <= high:
            return level
    return 'high'


def serialize_patient(patient: Patient) -> dict:
    return {
        'id': patient.id,
        'name': patient.name,
        'dateOfBirth': patient.date_of_birth.isoformat() if patient.date_of_birth else None,
        'gender': patient.gender,
        'email': patient.email or None,
        'phone': patient.phone or None,
        'address': patient.address or None,
        'condition': patient.condition or None,
        'riskScore': patient.risk_score,
        'riskLevel': risk_level(patient.risk_score),
        'bloodPressure': patient.blood_pressure or None,
        'allergies': patient.allergies or [],
        'emergencyContact': patient.emergency_contact or None,
        'insurance': patient.insurance or None,
        'hubId': patient.hub_id,
        'isActive': patient.is_active,
        'createdBy': patient.created_by_id,
        'updatedBy': patient.updated_by_id,
        'createdAt': patient.created_at.isoformat() if patient.created_at else None,
        'updatedAt': patient.updated_at.isoformat() if patient.updated_at else None,
    }


def normalize_allergies(values) -> list[str]:
    """Trim, drop blanks and de-duplicate case-insensitively (first spelling wins)."""
    seen: set[str] = set()
    result: list[str] = []
    for value in values or []:
        value = str(value or '').strip()
        if not value:
            continue
        key = value.lower()
        if key in seen:
            continue
        seen.add(key)
        result.append(value)
    return result


# ---------------------------------------------------------------------
# Queries
# ---------------------------------------------------------------------
def get_patient(patient_id, *, include_archived: bool = True) -> Patient:
    qs = Patient.objects.select_related('hub')
    if not include_archived:
        qs = qs.filter(is_active=True)
    patient = qs.filter(id=patient_id).first()
    if patient is None:
        raise NotFoundError('Patient', patient_id)
    return patient


def list_patients(*, search: str | None = None, risk: str | None = None, condition: str | None = None,
                  hub: str | None = None, include_archived: bool = False, sort_by: str | None = None,
                  sort_order: str | None = None, page: int = 1, limit: int | None = None) -> tuple[list[dict], dict]:
    limit = clamp_limit(limit)
    params = {
        'search': search, 'risk': risk, 'condition': condition, 'hub': hub,
        'archived': include_archived, 'sortBy': sort_by, 'sortOrder': sort_order,
        'page': page, 'limit': limit,
    }
    key = _list_cache_key(params)
    cached = cache.get(key)
    if cached is not None:
        return cached['data'], cached['pagination']

    qs = Patient.objects.all()
    if not include_archived:
        qs = qs.filter(is_active=True)
    if search:
        qs = qs.filter(Q(name__icontains=search) | Q(email__icontains=search) | Q(phone__icontains=search))
    if risk in RISK_BANDS:
        low, high = RISK_BANDS[risk]
        qs = qs.filter(risk_score__gte=low) if risk == 'high' else qs.filter(risk_score__gte=low, risk_score__lte=high)
    if condition:
        qs = qs.filter(condition__icontains=condition)
    if hub:
        qs = qs.filter(hub_id=hub)
    field = SORT_FIELDS.get(sort_by or '', 'created_at')
    ordering = field if (sort_order or 'desc').lower() == 'asc' else f'-{field}'
    qs = qs.order_by(ordering, '-id')

    items, pagination = paginate(qs, page, limit)
    data = [serialize_patient(p) for p in items]
    cache.set(key, {'data': data, 'pagination': pagination}, settings.PATIENT_LIST_CACHE_TTL)
    return data, pagination


def search_patients(q: str) -> list[dict]:
    q = (q or '').strip()
    if not q:
        return []
    qs = (
        Patient.objects.filter(is_active=True)
        .filter(Q(name__icontains=q) | Q(email__icontains=q) | Q(phone__icontains=q))
        .order_by('name')[:SEARCH_LIMIT]
    )
    return [serialize_patient(p) for p in qs]


def patient_detail(patient_id) -> dict:
    """Patient with active care team and recent clinical records."""
    from clinic.services.appointments import serialize_appointment
    from clinic.services.care_team import serialize_assignment
    from clinic.services.medications import serialize_medication
    from clinic.services.referrals import serialize_referral
    from clinic.services.vaccinations import serialize_vaccination
    from clinic.services.vitals import latest_vital, serialize_vital

    key = _detail_cache_key(patient_id)
    cached = cache.get(key)
    if cached is not None:
        return cached

    patient = get_patient(patient_id)
    data = serialize_patient(patient)
    data['careTeam'] = [
        serialize_assignment(a)
        for a in patient.care_team.filter(is_active=True).select_related('user').order_by('-assigned_date')
    ]
    data['appointments'] = [
        serialize_appointment(a)
        for a in patient.appointments.select_related('provider').order_by('-date', '-time')[:10]
    ]
    data['referrals'] = [
        serialize_referral(r)
        for r in patient.referrals.select_related('referring_physician', 'referred_to_provider').order_by('-date')[:10]
    ]
    data['vaccinations'] = [
        serialize_vaccination(v)
        for v in patient.vaccinations.select_related('administered_by').order_by('-date')[:10]
    ]
    data['activeMedications'] = [
        serialize_medication(m)
        for m in patient.medications.filter(status=Medication.STATUS_ACTIVE)
        .select_related('prescribed_by').order_by('-started_date')
    ]
    vital = latest_vital(patient)
    data['latestVitals'] = serialize_vital(vital) if vital is not None else None
    cache.set(key, data, settings.PATIENT_DETAIL_CACHE_TTL)
    return data


def patient_timeline(patient: Patient) -> list[dict]:
    events: list[dict] = []
    for a in patient.appointments.select_related('provider').order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'appointment', 'id': a.id, 'date': a.date.isoformat(),
            'title': f"{a.type} appointment", 'status': a.status,
            'detail': a.reason or None,
        })
    for r in patient.referrals.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'referral', 'id': r.id, 'date': r.date.isoformat(),
            'title': f"Referral to {r.specialty}", 'status': r.status,
            'detail': r.reason or None,
        })
    for v in patient.vaccinations.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'vaccination', 'id': v.id, 'date': v.date.isoformat(),
            'title': v.vaccine_name, 'status': 'verified' if v.verified else 'unverified',
            'detail': v.notes or None,
        })
    for m in patient.medications.order_by('-started_date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'medication', 'id': m.id, 'date': m.started_date.isoformat(),
            'title': m.name, 'status': m.status,
            'detail': m.instructions or None,
        })
    for lab in patient.lab_results.order_by('-ordered_date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'lab_result', 'id': lab.id, 'date': lab.ordered_date.isoformat(),
            'title': lab.test_name, 'status': lab.status,
            'detail': lab.interpretation or None,
        })
    for n in patient.clinical_notes.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'clinical_note', 'id': n.id, 'date': n.date.isoformat(),
            'title': n.title, 'status': n.type,
            'detail': None,
        })
    for s in patient.surgical_notes.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'surgery', 'id': s.id, 'date': s.date.isoformat(),
            'title': s.procedure_name, 'status': s.status,
            'detail': s.indication or None,
        })
    for st in patient.imaging_studies.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'imaging', 'id': st.id, 'date': st.date.isoformat(),
            'title': f"{st.modality} {st.body_part}", 'status': st.status,
            'detail': st.findings or None,
        })
    for c in patient.consents.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'consent', 'id': c.id, 'date': c.date.isoformat(),
            'title': c.title, 'status': c.status,
            'detail': c.procedure_name or None,
        })
    for e in patient.nutrition_entries.order_by('-date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'nutrition', 'id': e.id, 'date': e.date.isoformat(),
            'title': f"Nutrition {e.type}", 'status': e.type,
            'detail': e.recommended_diet or None,
        })
    for i in patient.invoices.order_by('-issue_date')[:TIMELINE_LIMIT]:
        events.append({
            'type': 'invoice', 'id': i.id, 'date': i.issue_date.isoformat(),
            'title': f"Invoice {i.invoice_number}", 'status': i.status,
            'detail': f"{i.total_amount} {i.currency}",
        })
    events.sort(key=lambda e: (e['date'], e['id']), reverse=True)
    return events[:TIMELINE_LIMIT]


# ---------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------
_FIELD_MAP = {
    'name': 'name',
    'dateOfBirth': 'date_of_birth',
    'gender': 'gender',
    'email': 'email',
    'phone': 'phone',
    'address': 'address',
    'condition': 'condition',
    'riskScore': 'risk_score',
    'bloodPressure': 'blood_pressure',
    'allergies': 'allergies',
    'emergencyContact': 'emergency_contact',
    'insurance': 'insurance',
}


def _resolve_hub(hub_id) -> Hub | None:
    if not hub_id:
        return None
    hub = Hub.objects.filter(id=hub_id).first()
    if hub is None:
        raise NotFoundError('Hub', hub_id)
    return hub


def create_patient(current_user, data: dict) -> Patient:
    """Create a patient from validated camelCase ``data``."""
    fields = {model_field: data[key] for key, model_field in _FIELD_MAP.items() if key in data}
    fields['allergies'] = normalize_allergies(fields.get('allergies'))
    for key in ('email', 'phone', 'address', 'condition', 'blood_pressure'):
        if fields.get(key) is None:
            fields.pop(key, None)
    for key in ('emergency_contact', 'insurance'):
        if fields.get(key) is None:
            fields[key] = {}
    with transaction.atomic():
        patient = Patient.objects.create(
            hub=_resolve_hub(data.get('hubId')),
            created_by=current_user,
            updated_by=current_user,
            **fields,
        )
    invalidate_patient_cache()
    logger.info('Patient %s created by user %s', patient.id, getattr(current_user, 'id', None))
    return patient


def update_patient(current_user, patient: Patient, data: dict) -> tuple[Patient, dict]:
    """Apply a partial update; returns the patient and a ``{field: {from, to}}`` diff."""
    changes: dict = {}
    with transaction.atomic():
        for key, model_field in _FIELD_MAP.items():
            if key not in data:
                continue
            value = data[key]
            if model_field == 'allergies':
                value = normalize_allergies(value)
            elif model_field in ('emergency_contact', 'insurance') and value is None:
                value = {}
            elif value is None:
                value = ''
            old = getattr(patient, model_field)
            if old != value:
                changes[key] = {'from': str(old) if old is not None else None, 'to': str(value)}
                setattr(patient, model_field, value)
        if 'hubId' in data:
            hub = _resolve_hub(data.get('hubId'))
            if patient.hub_id != (hub.id if hub else None):
                changes['hubId'] = {'from': patient.hub_id, 'to': hub.id if hub else None}
            patient.hub = hub
        if 'isActive' in data and data['isActive'] is not None and data['isActive'] != patient.is_active:
            changes['isActive'] = {'from': patient.is_active, 'to': data['isActive']}
            patient.is_active = data['isActive']
        patient.updated_by = current_user
        patient.save()
    invalidate_patient_cache(patient.id)
    return patient, changes


def delete_patient(current_user, patient: Patient, *, hard: bool = False) -> None:
    patient_id = patient.id
    with transaction.atomic():
        if hard:
            # invoices protect the patient row; remove them with it
            patient.invoices.all().delete()
            patient.delete()
        else:
            patient.is_active = False
            patient.updated_by = current_user
            patient.save(update_fields=['is_active', 'updated_by', 'updated_at'])
    invalidate_patient_cache(patient_id)
    logger.info('Patient %s %s by user %s', patient_id, 'deleted' if hard else 'archived',
                getattr(current_user, 'id', None))
