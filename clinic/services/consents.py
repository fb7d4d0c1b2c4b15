"""
Consent forms.

A consent is ``pending`` until it is signed. Signing needs a signer
(a name or a user) and stamps ``signed_date`` with today when none is
given. A signed consent whose expiration date has passed is reported
with the ``expired`` status without rewriting the stored row.
"""
from __future__ import annotations

from django.db import transaction
from django.db.models import Q
from django.utils import timezone

from clinic.exceptions import ValidationError
from clinic.models import Consent, Patient
from clinic.services.chart import get_record, iso, lookup_user, model_fields, user_name
from clinic.services.patients import invalidate_patient_cache

FIELD_MAP = {
    'date': 'date',
    'type': 'type',
    'title': 'title',
    'description': 'description',
    'status': 'status',
    'procedureName': 'procedure_name',
    'risks': 'risks',
    'benefits': 'benefits',
    'alternatives': 'alternatives',
    'signedBy': 'signed_by',
    'witnessName': 'witness_name',
    'physicianName': 'physician_name',
    'signedDate': 'signed_date',
    'signedTime': 'signed_time',
    'expirationDate': 'expiration_date',
    'notes': 'notes',
    'digitalSignature': 'digital_signature',
    'printedSignature': 'printed_signature',
}

NULLABLE = {'signed_date', 'expiration_date'}
EMPTY = {'risks': [], 'benefits': [], 'alternatives': [], 'printed_signature': False}

# user id input -> (model field, label used in 404s)
PEOPLE = {
    'signedById': ('signed_by_user', 'Signer'),
    'witnessId': ('witness', 'Witness'),
    'physicianId': ('physician', 'Physician'),
}


def effective_status(c: Consent, *, as_of=None) -> str:
    as_of = as_of or timezone.localdate()
    if c.status == Consent.STATUS_SIGNED and c.expiration_date and c.expiration_date < as_of:
        return 'expired'
    return c.status


def serialize_consent(c: Consent) -> dict:
    return {
        'id': c.id,
        'patientId': c.patient_id,
        'date': iso(c.date),
        'type': c.type,
        'title': c.title,
        'description': c.description,
        'status': effective_status(c),
        'procedureName': c.procedure_name or None,
        'risks': c.risks or [],
        'benefits': c.benefits or [],
        'alternatives': c.alternatives or [],
        'signedBy': c.signed_by or None,
        'signedById': c.signed_by_user_id,
        'witnessName': c.witness_name or None,
        'witnessId': c.witness_id,
        'physicianName': c.physician_name or None,
        'physicianId': c.physician_id,
        'signedDate': iso(c.signed_date),
        'signedTime': c.signed_time or None,
        'expirationDate': iso(c.expiration_date),
        'notes': c.notes or None,
        'digitalSignature': c.digital_signature or None,
        'printedSignature': c.printed_signature,
        'createdAt': iso(c.created_at),
        'updatedAt': iso(c.updated_at),
    }


def _apply_people(c: Consent, data: dict) -> None:
    for key, (field, label) in PEOPLE.items():
        if key in data:
            setattr(c, field, lookup_user(data[key], label))
    if c.physician is not None and not c.physician_name:
        c.physician_name = c.physician.display_name
    if c.signed_by_user is not None and not c.signed_by:
        c.signed_by = c.signed_by_user.display_name


def _check(c: Consent) -> None:
    errors = {}
    if c.status == Consent.STATUS_SIGNED:
        if not (c.signed_by or c.signed_by_user_id):
            errors['signedBy'] = ['A signed consent needs the name or id of the signer']
        if c.signed_date is None:
            c.signed_date = timezone.localdate()
    if c.expiration_date and c.date and c.expiration_date < c.date:
        errors['expirationDate'] = ['Expiration cannot be before the consent date']
    if c.signed_date and c.date and c.signed_date < c.date:
        errors['signedDate'] = ['Signature cannot be before the consent date']
    if errors:
        raise ValidationError('Invalid consent', errors)


def get_consent(patient: Patient, consent_id) -> Consent:
    qs = patient.consents.select_related('physician', 'witness', 'signed_by_user')
    return get_record(qs, consent_id, 'Consent')


def list_consents(patient: Patient, *, status: str | None = None, type: str | None = None,
                  search: str | None = None):
    qs = patient.consents.select_related('physician', 'witness', 'signed_by_user')
    if status:
        qs = qs.filter(status=status)
    if type:
        qs = qs.filter(type=type)
    if search:
        qs = qs.filter(
            Q(title__icontains=search) | Q(description__icontains=search) | Q(procedure_name__icontains=search)
        )
    return qs.order_by('-date', '-id')


def create_consent(patient: Patient, current_user, data: dict) -> Consent:
    c = Consent(patient=patient, **model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY))
    _apply_people(c, data)
    if 'physicianId' not in data:
        c.physician = current_user
        c.physician_name = c.physician_name or current_user.display_name
    _check(c)
    with transaction.atomic():
        c.save()
    invalidate_patient_cache(patient.id)
    return c


def update_consent(c: Consent, data: dict) -> Consent:
    for field, value in model_fields(data, FIELD_MAP, nullable=NULLABLE, empty=EMPTY).items():
        setattr(c, field, value)
    _apply_people(c, data)
    _check(c)
    with transaction.atomic():
        c.save()
    invalidate_patient_cache(c.patient_id)
    return c


def delete_consent(c: Consent) -> None:
    patient_id = c.patient_id
    c.delete()
    invalidate_patient_cache(patient_id)
