"""
Per-user settings. Every endpoint acts on the signed-in user only.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.serializers.preferences import PreferencesSerializer
from clinic.services import preferences as svc
from clinic.services.audit import log_audit_event


@api_view(['GET', 'PUT', 'DELETE'])
@permission_classes([IsAuthenticated])
def preferences(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.get_preferences(request.user)})
    if request.method == 'DELETE':
        svc.clear_preferences(request.user)
        return Response({'ok': True, 'data': None})

    s = PreferencesSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': svc.save_preferences(request.user, s.validated_data)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def export_data(request):
    log_audit_event(action='EXPORT', resource_type='User', user=request.user, resource_id=request.user.id,
                    request=request)
    return Response({'ok': True, 'data': svc.export_user_data(request.user)})
