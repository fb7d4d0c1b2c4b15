"""
Operative notes.

A note starts as ``scheduled`` and is completed after the procedure.
When both start and end times are given and no duration is, the
duration is derived from them (procedures can run past midnight).
"""
from __future__ import annotations

from django.db import transaction
from django.db.models import Q

from clinic.exceptions import NotFoundError, ValidationError
from clinic.models import Patient, SurgicalNote, User
from clinic.services.chart import get_record, iso, lookup_user, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'date': 'date',
    'procedureName': 'procedure_name',
    'procedureType': 'procedure_type',
    'status': 'status',
    'anesthesiaType': 'anesthesia_type',
    'indication': 'indication',
    'preoperativeDiagnosis': 'preoperative_diagnosis',
    'postoperativeDiagnosis': 'postoperative_diagnosis',
    'procedureDescription': 'procedure_description',
    'findings': 'findings',
    'complications': 'complications',
    'estimatedBloodLoss': 'estimated_blood_loss',
    'specimens': 'specimens',
    'drains': 'drains',
    'postOpInstructions': 'post_op_instructions',
    'recoveryNotes': 'recovery_notes',
    'followUpDate': 'follow_up_date',
    'operatingRoom': 'operating_room',
    'duration': 'duration',
    'startTime': 'start_time',
    'endTime': 'end_time',
}

NULLABLE = {'follow_up_date', 'duration'}
EMPTY = {'specimens': []}

MINUTES_PER_DAY = 24 * 60


def _person(user: User | None) -> dict | None:
    if user is None:
        return None
    return {'id': user.id, 'name': user.display_name, 'specialty': user.specialty or None}


def serialize_surgical_note(n: SurgicalNote) -> dict:
    return {
        'id': n.id,
        'patientId': n.patient_id,
        'date': iso(n.date),
        'procedureName': n.procedure_name,
        'procedureType': n.procedure_type,
        'status': n.status,
        'surgeonId': n.surgeon_id,
        'surgeon': _person(n.surgeon),
        'assistantSurgeons': [_person(u) for u in n.assistant_surgeons.all()],
        'anesthesiologistId': n.anesthesiologist_id,
        'anesthesiologist': _person(n.anesthesiologist),
        'anesthesiaType': n.anesthesia_type or None,
        'indication': n.indication,
        'preoperativeDiagnosis': n.preoperative_diagnosis,
        'postoperativeDiagnosis': n.postoperative_diagnosis or None,
        'procedureDescription': n.procedure_description,
        'findings': n.findings or None,
        'complications': n.complications or None,
        'estimatedBloodLoss': n.estimated_blood_loss or None,
        'specimens': n.specimens or [],
        'drains': n.drains or None,
        'postOpInstructions': n.post_op_instructions or None,
        'recoveryNotes': n.recovery_notes or None,
        'followUpDate': iso(n.follow_up_date),
        'operatingRoom': n.operating_room or None,
        'duration': n.duration,
        'startTime': n.start_time or None,
        'endTime': n.end_time or None,
        'createdAt': iso(n.created_at),
        'updatedAt': iso(n.updated_at),
    }


def _minutes(hhmm: str) -> int:
    hours, minutes = hhmm.split(':')
    return int(hours) * 60 + int(minutes)


def elapsed_minutes(start: str, end: str) -> int:
    """Minutes from ``start`` to ``end`` (HH:MM), wrapping past midnight."""
    return (_minutes(end) - _minutes(start)) % MINUTES_PER_DAY


def _check(n: SurgicalNote) -> None:
    if n.follow_up_date and n.date and n.follow_up_date < n.date:
        raise ValidationError('Invalid surgical note',
                              {'followUpDate': ['Follow-up cannot be before the procedure date']})
    if n.start_time and n.end_time and n.start_time == n.end_time:
        raise ValidationError('Invalid surgical note', {'endTime': ['End time must differ from start time']})


def _assistants(ids) -> list[User]:
    ids = list(dict.fromkeys(ids or []))
    users = list(User.objects.filter(id__in=ids))
    missing = set(ids) - {u.id for u in users}
    if missing:
        raise NotFoundError('Assistant surgeon', min(missing))
    return users


def _apply_people(n: SurgicalNote, data: dict) -> None:
    if 'surgeonId' in data:
        n.surgeon = lookup_user(data['surgeonId'], 'Surgeon')
    if 'anesthesiologistId' in data:
        n.anesthesiologist = lookup_user(data['anesthesiologistId'], 'Anesthesiologist')


def _derive_duration(n: SurgicalNote, data: dict) -> None:
    if 'duration' in data and data['duration'] is not None:
        return
    if n.start_time and n.end_time:
        n.duration = elapsed_minutes(n.start_time, n.end_time)


def _queryset(patient: Patient):
    return (
        patient.surgical_notes.select_related('surgeon', 'anesthesiologist')
        .prefetch_related('assistant_surgeons')
    )


def get_surgical_note(patient: Patient, note_id) -> SurgicalNote:
    return get_record(_queryset(patient), note_id, 'Surgical note')


def list_surgical_notes(patient: Patient, *, status: str | None = None, procedure_type: str | None = None,
                        search: str | None = None):
    qs = _queryset(patient)
    if status:
        qs = qs.filter(status=status)
    if procedure_type:
        qs = qs.filter(procedure_type=procedure_type)
    if search:
        qs = qs.filter(
            Q(procedure_name__icontains=search) | Q(indication__icontains=search)
            | Q(preoperative_diagnosis__icontains=search)
        )
    return qs.order_by('-date', '-id')


def create_surgical_note(patient: Patient, current_user, data: dict) -> SurgicalNote:
    n = SurgicalNote(patient=patient, **model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY))
    _apply_people(n, data)
    if n.surgeon is None:
        n.surgeon = current_user
    _derive_duration(n, data)
    _check(n)
    assistants = _assistants(data.get('assistantSurgeonIds'))
    with transaction.atomic():
        n.save()
        n.assistant_surgeons.set(assistants)
    invalidate_patient_cache(patient.id)
    return n


def update_surgical_note(n: SurgicalNote, data: dict) -> SurgicalNote:
    for field, value in model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY).items():
        setattr(n, field, value)
    _apply_people(n, data)
    _derive_duration(n, data)
    _check(n)
    assistants = _assistants(data['assistantSurgeonIds']) if 'assistantSurgeonIds' in data else None
    with transaction.atomic():
        n.save()
        if assistants is not None:
            n.assistant_surgeons.set(assistants)
    invalidate_patient_cache(n.patient_id)
    return n


def delete_surgical_note(n: SurgicalNote) -> None:
    patient_id = n.patient_id
    n.delete()
    invalidate_patient_cache(patient_id)
