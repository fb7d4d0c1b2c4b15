import logging
import re
import time

from django.conf import settings

from clinic.services.audit import log_audit_event

logger = logging.getLogger(__name__)

_ID = re.compile(r'^\d+$')


def _resource_name(segment: str) -> str:
    if segment.endswith('ies'):
        segment = segment[:-3] + 'y'
    elif segment.endswith('s') and not segment.endswith('ss'):
        segment = segment[:-1]
    return ''.join(part.capitalize() for part in segment.split('-'))


def parse_resource(path: str):
    """Return ``(resource_type, resource_id, patient_id)`` for an API path.

    Paths alternate collection and id (``patients/5/referrals/9``); a
    leading ``billing`` segment is a namespace and hub ids are slugs.
    """
    segments = [s for s in path.split('/') if s]
    if segments[:2] == ['api', 'v1']:
        segments = segments[2:]
    if segments[:1] == ['billing']:
        segments = segments[1:]
    resource_type, resource_id, patient_id = '', None, None
    i = 0
    while i < len(segments):
        collection = segments[i]
        ident = segments[i + 1] if i + 1 < len(segments) else None
        resource_type = _resource_name(collection)
        if ident is not None and (_ID.match(ident) or collection == 'hubs'):
            resource_id = ident
            if collection == 'patients' and _ID.match(ident):
                patient_id = int(ident)
            i += 2
        else:
            resource_id = None
            i += 1 if ident is None else 2
    return resource_type, resource_id, patient_id


class AuditMiddleware:
    """Record authenticated API requests under the audited prefixes.

    Views that already wrote an explicit entry (with field changes) mark
    the request and are skipped here.
    """
    METHOD_ACTIONS = {
        'GET': 'READ',
        'POST': 'CREATE',
        'PUT': 'UPDATE',
        'PATCH': 'UPDATE',
        'DELETE': 'DELETE',
    }
    SKIP_PREFIXES = ('/api/v1/auth', '/healthz', '/health', '/metrics')

    def __init__(self, get_response):
        self.get_response = get_response

    def _should_audit(self, request) -> bool:
        if not getattr(settings, 'AUDIT_ENABLED', True):
            return False
        path = request.path or ''
        if any(path.startswith(p) for p in self.SKIP_PREFIXES):
            return False
        if request.method not in self.METHOD_ACTIONS:
            return False
        return any(path.startswith(p) for p in settings.AUDIT_PATH_PREFIXES)

    def __call__(self, request):
        if not self._should_audit(request):
            return self.get_response(request)

        started = time.monotonic()
        response = self.get_response(request)
        if getattr(request, 'audit_logged', False):
            return response
        user = getattr(request, 'user', None)
        if not (user and user.is_authenticated):
            return response

        resource_type, resource_id, patient_id = parse_resource(request.path)
        metadata = {'durationMs': int((time.monotonic() - started) * 1000)}
        if request.META.get('QUERY_STRING'):
            metadata['query'] = request.META['QUERY_STRING'][:500]
        log_audit_event(
            user=user,
            action=self.METHOD_ACTIONS[request.method],
            resource_type=resource_type or 'Unknown',
            resource_id=resource_id,
            patient_id=patient_id,
            request=request,
            status_code=response.status_code,
            metadata=metadata,
            success=response.status_code < 400,
        )
        return response
