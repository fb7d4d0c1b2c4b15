"""
Role based access control.

Each write operation is allowed for a fixed set of roles; reads only
require authentication. Views either use the permission classes below or
call :func:`ensure_role` inline when GET and write share a handler.
"""
from rest_framework.permissions import BasePermission, SAFE_METHODS

from .exceptions import ForbiddenError

ADMIN = 'admin'
PHYSICIAN = 'physician'
NURSE = 'nurse'
NURSE_PRACTITIONER = 'nurse_practitioner'
PHYSICIAN_ASSISTANT = 'physician_assistant'
MEDICAL_ASSISTANT = 'medical_assistant'
RECEPTIONIST = 'receptionist'
BILLING = 'billing'
READ_ONLY = 'read_only'

CLINICAL_EDITORS = frozenset({ADMIN, PHYSICIAN, NURSE, NURSE_PRACTITIONER, PHYSICIAN_ASSISTANT})
PRESCRIBERS = frozenset({ADMIN, PHYSICIAN, NURSE_PRACTITIONER, PHYSICIAN_ASSISTANT})
REFERRAL_EDITORS = CLINICAL_EDITORS | {RECEPTIONIST}
REFERRAL_DELETERS = frozenset({ADMIN, PHYSICIAN, RECEPTIONIST})
# vitals, consents, nutrition and vaccinations can also be charted by assistants
CHART_EDITORS = CLINICAL_EDITORS | {MEDICAL_ASSISTANT}
VACCINATION_EDITORS = CHART_EDITORS
PHYSICIANS = frozenset({ADMIN, PHYSICIAN})
SCHEDULERS = CLINICAL_EDITORS | {RECEPTIONIST, MEDICAL_ASSISTANT}
BILLING_STAFF = frozenset({ADMIN, BILLING, RECEPTIONIST})
HUB_EDITORS = frozenset({ADMIN, PHYSICIAN, NURSE_PRACTITIONER})
HUB_NOTE_EDITORS = HUB_EDITORS | {NURSE}
ADMINS = frozenset({ADMIN})

# Roles offered in provider pickers
PROVIDER_ROLES = frozenset({PHYSICIAN, NURSE, NURSE_PRACTITIONER, PHYSICIAN_ASSISTANT, MEDICAL_ASSISTANT})

# Write permission -> roles holding it, as enforced by the views.
# Every authenticated role can read.
PERMISSIONS = {
    'patients:write': CLINICAL_EDITORS,
    'appointments:write': SCHEDULERS,
    'referrals:write': REFERRAL_EDITORS,
    'referrals:delete': REFERRAL_DELETERS,
    'vaccinations:write': VACCINATION_EDITORS,
    'medications:write': PRESCRIBERS,
    'vitals:write': CHART_EDITORS,
    'lab-results:write': PRESCRIBERS,
    'lab-results:delete': PHYSICIANS,
    'clinical-notes:create': CLINICAL_EDITORS,
    'clinical-notes:write': PRESCRIBERS,
    'clinical-notes:delete': PHYSICIANS,
    'surgical-notes:write': PRESCRIBERS,
    'imaging:order': PRESCRIBERS,
    'imaging:write': PHYSICIANS,
    'consents:write': CHART_EDITORS,
    'nutrition:write': CHART_EDITORS,
    'chart:delete': PRESCRIBERS,
    'billing:write': BILLING_STAFF,
    'hubs:write': HUB_EDITORS,
    'hub-notes:write': HUB_NOTE_EDITORS,
    'users:manage': ADMINS,
    'audit:read': ADMINS,
}


def has_role(user, roles) -> bool:
    return bool(user and user.is_authenticated and getattr(user, 'role', None) in roles)


def ensure_role(user, roles) -> None:
    """Raise :class:`ForbiddenError` unless ``user`` holds one of ``roles``."""
    if not has_role(user, roles):
        raise ForbiddenError('Insufficient permissions')


class IsAdminRole(BasePermission):
    """Allow access only to users with the admin role."""
    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        return has_role(getattr(request, 'user', None), ADMINS)


class WriteRoles(BasePermission):
    """Reads for any authenticated user, writes for ``write_roles``.

    Use :func:`write_roles` to build a subclass for a given role set.
    """
    write_roles: frozenset = frozenset()

    def has_permission(self, request, view) -> bool:  # type: ignore[override]
        user = getattr(request, 'user', None)
        if not (user and user.is_authenticated):
            return False
        if request.method in SAFE_METHODS:
            return True
        return getattr(user, 'role', None) in self.write_roles


def write_roles(roles, name: str = 'WriteRoles') -> type:
    return type(name, (WriteRoles,), {'write_roles': frozenset(roles)})


CanEditPatients = write_roles(CLINICAL_EDITORS, 'CanEditPatients')
CanSchedule = write_roles(SCHEDULERS, 'CanSchedule')
CanBill = write_roles(BILLING_STAFF, 'CanBill')
CanEditHubs = write_roles(ADMINS, 'CanEditHubs')
CanEditHubContent = write_roles(HUB_EDITORS, 'CanEditHubContent')
CanEditHubNotes = write_roles(HUB_NOTE_EDITORS, 'CanEditHubNotes')
