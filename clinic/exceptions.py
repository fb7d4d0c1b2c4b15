"""
Application errors and the unified API exception handler.

Services raise :class:`AppError` subclasses; views let them propagate and
``api_exception_handler`` turns them (and DRF/Django errors) into the
``{'ok': False, 'error': {...}}`` envelope.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.core.exceptions import PermissionDenied as DjangoPermissionDenied
from django.http import Http404
from rest_framework import exceptions as drf_exceptions
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)

SENSITIVE_FIELDS = {'password', 'currentPassword', 'newPassword', 'token', 'refresh', 'refreshToken', 'ssn'}


class AppError(Exception):
    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message: str, *, status_code: int | None = None, code: str | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code


class ValidationError(AppError):
    status_code = 400
    code = 'VALIDATION_ERROR'

    def __init__(self, message: str, errors: dict | None = None):
        super().__init__(message)
        self.errors = errors or {}


class UnauthorizedError(AppError):
    status_code = 401
    code = 'UNAUTHORIZED'

    def __init__(self, message: str = 'Unauthorized'):
        super().__init__(message)


class ForbiddenError(AppError):
    status_code = 403
    code = 'FORBIDDEN'

    def __init__(self, message: str = 'Forbidden'):
        super().__init__(message)


class NotFoundError(AppError):
    status_code = 404
    code = 'NOT_FOUND'

    def __init__(self, resource: str = 'Resource', id=None):
        message = f"{resource} with id {id} not found" if id is not None else f"{resource} not found"
        super().__init__(message)


class ConflictError(AppError):
    status_code = 409
    code = 'CONFLICT'


def redact(data):
    """Return a copy of ``data`` with sensitive keys masked."""
    if isinstance(data, dict):
        return {k: ('[REDACTED]' if k in SENSITIVE_FIELDS else redact(v)) for k, v in data.items()}
    if isinstance(data, list):
        return [redact(v) for v in data]
    return data


def _drf_code(exc: drf_exceptions.APIException) -> str:
    if isinstance(exc, drf_exceptions.ValidationError):
        return 'VALIDATION_ERROR'
    if isinstance(exc, (drf_exceptions.NotAuthenticated, drf_exceptions.AuthenticationFailed)):
        return 'UNAUTHORIZED'
    if isinstance(exc, drf_exceptions.PermissionDenied):
        return 'FORBIDDEN'
    if isinstance(exc, drf_exceptions.NotFound):
        return 'NOT_FOUND'
    if isinstance(exc, drf_exceptions.Throttled):
        return 'RATE_LIMITED'
    if isinstance(exc, drf_exceptions.MethodNotAllowed):
        return 'METHOD_NOT_ALLOWED'
    return 'API_ERROR'


def api_exception_handler(exc, context):
    if isinstance(exc, AppError):
        error = {'code': exc.code, 'message': exc.message}
        if isinstance(exc, ValidationError) and exc.errors:
            error['errors'] = exc.errors
        if exc.status_code >= 500:
            logger.error('Application error: %s', exc.message, exc_info=exc)
        return Response({'ok': False, 'error': error}, status=exc.status_code)

    if isinstance(exc, Http404):
        exc = drf_exceptions.NotFound(str(exc) or 'Not found')
    elif isinstance(exc, DjangoPermissionDenied):
        exc = drf_exceptions.PermissionDenied(str(exc) or None)

    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.exception(
            'Unhandled error on %s %s',
            getattr(request, 'method', '-'),
            getattr(request, 'path', '-'),
            exc_info=exc,
        )
        message = str(exc) if settings.DEBUG else 'Internal server error'
        return Response({'ok': False, 'error': {'code': 'INTERNAL_ERROR', 'message': message}}, status=500)

    error = {'code': _drf_code(exc)}
    if isinstance(exc, drf_exceptions.ValidationError):
        error['message'] = 'Validation failed'
        error['errors'] = resp.data if isinstance(resp.data, dict) else {'non_field_errors': resp.data}
    elif isinstance(resp.data, dict):
        error['message'] = resp.data.get('detail') or resp.data
    else:
        error['message'] = str(resp.data)
    return Response({'ok': False, 'error': error}, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp) -> dict:
    headers = {}
    for name in ('WWW-Authenticate', 'Retry-After', 'Allow'):
        if resp.has_header(name):
            headers[name] = resp[name]
    return headers
