from __future__ import annotations

import logging

from django.db import transaction

from clinic.exceptions import ValidationError
from clinic.models import Patient, VitalSign
from clinic.services.chart import get_record, iso, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

logger = logging.getLogger(__name__)

FIELD_MAP = {
    'date': 'date',
    'time': 'time',
    'systolic': 'systolic',
    'diastolic': 'diastolic',
    'heartRate': 'heart_rate',
    'temperature': 'temperature',
    'oxygen': 'oxygen',
    'notes': 'notes',
}

NULLABLE = {'systolic', 'diastolic', 'heart_rate', 'temperature', 'oxygen'}


def serialize_vital(v: VitalSign) -> dict:
    return {
        'id': v.id,
        'patientId': v.patient_id,
        'date': iso(v.date),
        'time': v.time or None,
        'systolic': v.systolic,
        'diastolic': v.diastolic,
        'bloodPressure': f"{v.systolic}/{v.diastolic}" if v.systolic and v.diastolic else None,
        'heartRate': v.heart_rate,
        'temperature': v.temperature,
        'oxygen': v.oxygen,
        'notes': v.notes or None,
        'recordedById': v.recorded_by_id,
        'recordedBy': user_name(v.recorded_by),
        'createdAt': iso(v.created_at),
        'updatedAt': iso(v.updated_at),
    }


def _check(v: VitalSign) -> None:
    if v.systolic and v.diastolic and v.diastolic >= v.systolic:
        raise ValidationError('Invalid vital signs', {'diastolic': ['Diastolic must be below systolic']})


def get_vital(patient: Patient, vital_id) -> VitalSign:
    return get_record(patient.vitals.select_related('recorded_by'), vital_id, 'Vital')


def list_vitals(patient: Patient):
    return patient.vitals.select_related('recorded_by').order_by('-date', '-time', '-id')


def latest_vital(patient: Patient) -> VitalSign | None:
    return list_vitals(patient).first()


def create_vital(patient: Patient, current_user, data: dict) -> VitalSign:
    v = VitalSign(patient=patient, recorded_by=current_user, **model_fields(data, FIELD_MAP, nullable=NULLABLE))
    _check(v)
    with transaction.atomic():
        v.save()
    logger.debug('Recorded vitals %s for patient %s', v.id, patient.id)
    invalidate_patient_cache(patient.id)
    return v


def update_vital(v: VitalSign, data: dict) -> VitalSign:
    for field, value in model_fields(data, FIELD_MAP, nullable=NULLABLE).items():
        setattr(v, field, value)
    _check(v)
    with transaction.atomic():
        v.save()
    invalidate_patient_cache(v.patient_id)
    return v


def delete_vital(v: VitalSign) -> None:
    patient_id = v.patient_id
    v.delete()
    invalidate_patient_cache(patient_id)
