"""
Audit trail helpers.

Every write to the audit log goes through :func:`log_audit_event`, which
never raises: a failed insert is logged and the caller carries on.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.db import transaction

from clinic.exceptions import redact
from clinic.models import AuditLog

logger = logging.getLogger(__name__)

AUDIT_QUERY_LIMIT = 100


def client_ip(request) -> str | None:
    if request is None:
        return None
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip() or None
    return request.META.get('REMOTE_ADDR') or None


def log_audit_event(
    *,
    action: str,
    resource_type: str,
    user=None,
    resource_id=None,
    patient_id: int | None = None,
    request=None,
    status_code: int | None = None,
    changes: dict | None = None,
    metadata: dict | None = None,
    success: bool = True,
    error_message: str = '',
    user_email: str = '',
) -> AuditLog | None:
    if not getattr(settings, 'AUDIT_ENABLED', True):
        return None
    if user is not None and not getattr(user, 'is_authenticated', False):
        user = None
    if request is not None:
        # tells AuditMiddleware the request already has an explicit entry
        getattr(request, '_request', request).audit_logged = True
    try:
        # savepoint so a failed insert does not poison the caller's transaction
        with transaction.atomic():
            return AuditLog.objects.create(
                user=user,
                user_email=(user.email if user else user_email) or '',
                user_role=getattr(user, 'role', '') or '',
                action=action,
                resource_type=resource_type,
                resource_id='' if resource_id is None else str(resource_id),
                patient_id=patient_id,
                ip_address=client_ip(request),
                user_agent=(request.META.get('HTTP_USER_AGENT', '') if request is not None else '')[:1000],
                request_method=getattr(request, 'method', '') or '',
                request_path=(getattr(request, 'path', '') or '')[:500],
                status_code=status_code,
                changes=redact(changes) if changes else None,
                metadata=metadata,
                success=success,
                error_message=error_message or '',
            )
    except Exception:
        logger.exception('Failed to write audit log (%s %s)', action, resource_type)
        return None


def log_patient_access(user, patient_id: int, request=None) -> AuditLog | None:
    return log_audit_event(
        user=user, action='READ', resource_type='Patient', resource_id=patient_id,
        patient_id=patient_id, request=request,
    )


def log_patient_modification(user, patient_id: int, action: str, changes: dict | None = None,
                             request=None) -> AuditLog | None:
    return log_audit_event(
        user=user, action=action, resource_type='Patient', resource_id=patient_id,
        patient_id=patient_id, changes=changes, request=request,
    )


def log_auth_event(*, action: str, user=None, email: str = '', success: bool = True,
                   error_message: str = '', request=None) -> AuditLog | None:
    return log_audit_event(
        user=user, user_email=email, action=action, resource_type='Auth',
        resource_id=getattr(user, 'id', None), success=success,
        error_message=error_message, request=request,
    )


def query_audit_logs(*, user_id=None, patient_id=None, action=None, resource_type=None,
                     resource_id=None, date_from=None, date_to=None):
    qs = AuditLog.objects.select_related('user')
    if user_id:
        qs = qs.filter(user_id=user_id)
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if action:
        qs = qs.filter(action=action)
    if resource_type:
        qs = qs.filter(resource_type=resource_type)
    if resource_id:
        qs = qs.filter(resource_id=str(resource_id))
    if date_from:
        qs = qs.filter(created_at__date__gte=date_from)
    if date_to:
        qs = qs.filter(created_at__date__lte=date_to)
    return qs.order_by('-created_at', '-id')


def patient_audit_trail(patient_id: int, *, limit: int = AUDIT_QUERY_LIMIT, offset: int = 0) -> list[AuditLog]:
    return list(query_audit_logs(patient_id=patient_id)[offset:offset + limit])


def user_audit_trail(user_id: int, *, limit: int = AUDIT_QUERY_LIMIT, offset: int = 0) -> list[AuditLog]:
    return list(query_audit_logs(user_id=user_id)[offset:offset + limit])


def resource_audit_trail(resource_type: str, resource_id, *, limit: int = AUDIT_QUERY_LIMIT,
                         offset: int = 0) -> list[AuditLog]:
    return list(query_audit_logs(resource_type=resource_type, resource_id=resource_id)[offset:offset + limit])


def serialize_audit_log(log: AuditLog) -> dict:
    return {
        'id': log.id,
        'userId': log.user_id,
        'userEmail': log.user_email,
        'userRole': log.user_role,
        'action': log.action,
        'resourceType': log.resource_type,
        'resourceId': log.resource_id or None,
        'patientId': log.patient_id,
        'ipAddress': log.ip_address,
        'userAgent': log.user_agent,
        'requestMethod': log.request_method,
        'requestPath': log.request_path,
        'statusCode': log.status_code,
        'changes': log.changes,
        'metadata': log.metadata,
        'success': log.success,
        'errorMessage': log.error_message or None,
        'timestamp': log.created_at.isoformat() if log.created_at else None,
    }
