from __future__ import annotations

from django.db import transaction
from django.db.models import Q

from clinic.models import ImagingStudy, Patient
from clinic.services.chart import get_record, iso, lookup_user, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'type': 'type',
    'modality': 'modality',
    'bodyPart': 'body_part',
    'date': 'date',
    'findings': 'findings',
    'status': 'status',
    'reportUrl': 'report_url',
}


def serialize_imaging_study(s: ImagingStudy) -> dict:
    return {
        'id': s.id,
        'patientId': s.patient_id,
        'type': s.type,
        'modality': s.modality,
        'bodyPart': s.body_part,
        'date': iso(s.date),
        'findings': s.findings,
        'status': s.status,
        'reportUrl': s.report_url or None,
        'orderingPhysicianId': s.ordering_physician_id,
        'orderingPhysician': user_name(s.ordering_physician),
        'createdAt': iso(s.created_at),
        'updatedAt': iso(s.updated_at),
    }


def get_imaging_study(patient: Patient, study_id) -> ImagingStudy:
    return get_record(patient.imaging_studies.select_related('ordering_physician'), study_id, 'Imaging study')


def list_imaging_studies(patient: Patient, *, modality: str | None = None, status: str | None = None,
                         search: str | None = None):
    qs = patient.imaging_studies.select_related('ordering_physician')
    if modality:
        qs = qs.filter(modality=modality)
    if status:
        qs = qs.filter(status=status)
    if search:
        qs = qs.filter(Q(type__icontains=search) | Q(body_part__icontains=search) | Q(findings__icontains=search))
    return qs.order_by('-date', '-id')


def create_imaging_study(patient: Patient, current_user, data: dict) -> ImagingStudy:
    study = ImagingStudy(patient=patient, **model_fields(data, FIELD_MAP))
    if 'orderingPhysicianId' in data:
        study.ordering_physician = lookup_user(data['orderingPhysicianId'], 'Ordering physician')
    else:
        study.ordering_physician = current_user
    with transaction.atomic():
        study.save()
    invalidate_patient_cache(patient.id)
    return study


def update_imaging_study(study: ImagingStudy, data: dict) -> ImagingStudy:
    for field, value in model_fields(data, FIELD_MAP).items():
        setattr(study, field, value)
    if 'orderingPhysicianId' in data:
        study.ordering_physician = lookup_user(data['orderingPhysicianId'], 'Ordering physician')
    with transaction.atomic():
        study.save()
    invalidate_patient_cache(study.patient_id)
    return study


def delete_imaging_study(study: ImagingStudy) -> None:
    patient_id = study.patient_id
    study.delete()
    invalidate_patient_cache(patient_id)
