from __future__ import annotations

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic.exceptions import ValidationError
from clinic.models import LabResult, Patient
from clinic.services.chart import get_record, iso, lookup_user, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'testName': 'test_name',
    'testCode': 'test_code',
    'category': 'category',
    'orderedDate': 'ordered_date',
    'collectedDate': 'collected_date',
    'resultDate': 'result_date',
    'status': 'status',
    'results': 'results',
    'referenceRanges': 'reference_ranges',
    'interpretation': 'interpretation',
    'notes': 'notes',
    'labName': 'lab_name',
    'labLocation': 'lab_location',
}

NULLABLE = {'collected_date', 'result_date'}
EMPTY = {'results': {}, 'reference_ranges': {}}

# flags in ``results`` that need a clinician's attention
ABNORMAL_FLAGS = {'high', 'low', 'critical'}


def serialize_lab_result(lab: LabResult) -> dict:
    return {
        'id': lab.id,
        'patientId': lab.patient_id,
        'testName': lab.test_name,
        'testCode': lab.test_code or None,
        'category': lab.category or None,
        'orderedDate': iso(lab.ordered_date),
        'collectedDate': iso(lab.collected_date),
        'resultDate': iso(lab.result_date),
        'status': lab.status,
        'results': lab.results or {},
        'referenceRanges': lab.reference_ranges or {},
        'abnormal': sorted(abnormal_analytes(lab)),
        'interpretation': lab.interpretation or None,
        'notes': lab.notes or None,
        'labName': lab.lab_name or None,
        'labLocation': lab.lab_location or None,
        'orderingPhysicianId': lab.ordering_physician_id,
        'orderingPhysician': user_name(lab.ordering_physician),
        'reviewedById': lab.reviewed_by_id,
        'reviewedBy': user_name(lab.reviewed_by),
        'reviewedAt': iso(lab.reviewed_at),
        'createdAt': iso(lab.created_at),
        'updatedAt': iso(lab.updated_at),
    }


def abnormal_analytes(lab: LabResult) -> set[str]:
    """Analyte names whose result carries a high, low or critical flag."""
    results = lab.results if isinstance(lab.results, dict) else {}
    return {
        name for name, value in results.items()
        if isinstance(value, dict) and str(value.get('flag', '')).lower() in ABNORMAL_FLAGS
    }


def _check(lab: LabResult) -> None:
    errors = {}
    if lab.collected_date and lab.collected_date < lab.ordered_date:
        errors['collectedDate'] = ['Collection cannot precede the order date']
    if lab.result_date and lab.result_date < (lab.collected_date or lab.ordered_date):
        errors['resultDate'] = ['Result date cannot precede collection or order']
    if errors:
        raise ValidationError('Invalid lab result data', errors)


def _apply_people(lab: LabResult, data: dict) -> None:
    if 'orderingPhysicianId' in data:
        lab.ordering_physician = lookup_user(data['orderingPhysicianId'], 'Ordering physician')
    if 'reviewedById' in data:
        lab.reviewed_by = lookup_user(data['reviewedById'], 'Reviewer')
        lab.reviewed_at = timezone.now() if lab.reviewed_by is not None else None


def get_lab_result(patient: Patient, lab_result_id) -> LabResult:
    qs = patient.lab_results.select_related('ordering_physician', 'reviewed_by')
    return get_record(qs, lab_result_id, 'Lab result')


def list_lab_results(patient: Patient, *, status: str | None = None, category: str | None = None,
                     search: str | None = None):
    qs = patient.lab_results.select_related('ordering_physician', 'reviewed_by')
    if status:
        qs = qs.filter(status=status)
    if category:
        qs = qs.filter(category__iexact=category)
    if search:
        qs = qs.filter(Q(test_name__icontains=search) | Q(test_code__icontains=search))
    return qs.order_by('-ordered_date', '-id')


def create_lab_result(patient: Patient, current_user, data: dict) -> LabResult:
    lab = LabResult(patient=patient, **model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY))
    _apply_people(lab, data)
    if 'orderingPhysicianId' not in data:
        lab.ordering_physician = current_user
    _check(lab)
    with transaction.atomic():
        lab.save()
    invalidate_patient_cache(patient.id)
    return lab


def update_lab_result(lab: LabResult, data: dict) -> LabResult:
    for field, value in model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY).items():
        setattr(lab, field, value)
    _apply_people(lab, data)
    _check(lab)
    with transaction.atomic():
        lab.save()
    invalidate_patient_cache(lab.patient_id)
    return lab


def delete_lab_result(lab: LabResult) -> None:
    patient_id = lab.patient_id
    lab.delete()
    invalidate_patient_cache(patient_id)
