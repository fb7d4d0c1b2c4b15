from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import IsAdminRole
from clinic.serializers.audit import AuditQuerySerializer
from clinic.services import audit as svc
from clinic.services.paging import paginate


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def audit_logs(request):
    q = AuditQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.query_audit_logs(
        user_id=vd.get('userId'),
        patient_id=vd.get('patientId'),
        action=vd.get('action'),
        resource_type=vd.get('resourceType'),
        resource_id=vd.get('resourceId'),
        date_from=vd.get('from'),
        date_to=vd.get('to'),
    )
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_audit_log(a) for a in items], 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def patient_audit_trail(request, patient_id: int):
    logs = svc.patient_audit_trail(patient_id)
    return Response({'ok': True, 'data': [svc.serialize_audit_log(a) for a in logs]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def user_audit_trail(request, user_id: int):
    logs = svc.user_audit_trail(user_id)
    return Response({'ok': True, 'data': [svc.serialize_audit_log(a) for a in logs]})


@api_view(['GET'])
@permission_classes([IsAuthenticated, IsAdminRole])
def resource_audit_trail(request, resource_type: str, resource_id: str):
    logs = svc.resource_audit_trail(resource_type, resource_id)
    return Response({'ok': True, 'data': [svc.serialize_audit_log(a) for a in logs]})
