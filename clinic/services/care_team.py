"""
Care team membership.

A user appears at most once on a patient's care team. Removing a member
only deactivates the assignment; adding them again reactivates it.
"""
from __future__ import annotations

from django.db import transaction
from django.utils import timezone

from clinic.exceptions import NotFoundError, ValidationError
from clinic.models import CareTeamAssignment, Patient, User
from clinic.services.patients import invalidate_patient_cache


def serialize_assignment(a: CareTeamAssignment) -> dict:
    user = a.user
    return {
        'id': a.id,
        'patientId': a.patient_id,
        'userId': a.user_id,
        'userName': user.display_name,
        'userEmail': user.email,
        'userRole': user.role,
        'role': a.role,
        'specialty': a.specialty or user.specialty or None,
        'notes': a.notes or None,
        'assignedDate': a.assigned_date.isoformat() if a.assigned_date else None,
        'isActive': a.is_active,
    }


def list_care_team(patient: Patient):
    return patient.care_team.filter(is_active=True).select_related('user').order_by('-assigned_date')


def get_assignment(patient: Patient, assignment_id) -> CareTeamAssignment:
    a = (
        CareTeamAssignment.objects.select_related('user')
        .filter(id=assignment_id, patient=patient)
        .first()
    )
    if a is None:
        raise NotFoundError('Care team assignment', assignment_id)
    return a


@transaction.atomic
def add_member(patient: Patient, *, user_id, role: str, specialty: str = '', notes: str = '') -> CareTeamAssignment:
    user = User.objects.filter(id=user_id, is_active=True).first()
    if user is None:
        raise NotFoundError('User', user_id)
    existing = CareTeamAssignment.objects.select_for_update().filter(patient=patient, user=user).first()
    if existing is not None:
        if existing.is_active:
            raise ValidationError('User is already a member of the care team')
        existing.is_active = True
        existing.role = role
        existing.specialty = specialty or ''
        existing.notes = notes or ''
        existing.assigned_date = timezone.now()
        existing.save()
        assignment = existing
    else:
        assignment = CareTeamAssignment.objects.create(
            patient=patient, user=user, role=role, specialty=specialty or '',
            notes=notes or '', assigned_date=timezone.now(),
        )
    invalidate_patient_cache(patient.id)
    return assignment


def update_member(a: CareTeamAssignment, data: dict) -> CareTeamAssignment:
    for key, field in (('role', 'role'), ('specialty', 'specialty'), ('notes', 'notes')):
        if key in data:
            setattr(a, field, data[key] or '')
    a.save()
    invalidate_patient_cache(a.patient_id)
    return a


def remove_member(a: CareTeamAssignment) -> None:
    a.is_active = False
    a.save(update_fields=['is_active', 'updated_at'])
    invalidate_patient_cache(a.patient_id)
