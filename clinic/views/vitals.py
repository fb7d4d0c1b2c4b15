from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CHART_EDITORS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import VitalSignQuerySerializer, VitalSignSerializer
from clinic.services import vitals as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_vitals(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, CHART_EDITORS)
        s = VitalSignSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        v = svc.create_vital(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_vital(v)}, status=201)

    q = VitalSignQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    items, pagination = paginate(svc.list_vitals(patient), vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_vital(v) for v in items], 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def latest_vitals(request, patient_id: int):
    patient = get_patient(patient_id)
    v = svc.latest_vital(patient)
    return Response({'ok': True, 'data': svc.serialize_vital(v) if v is not None else None})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vital_detail(request, patient_id: int, vital_id: int):
    patient = get_patient(patient_id)
    v = svc.get_vital(patient, vital_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_vital(v)})
    if request.method == 'DELETE':
        ensure_role(request.user, PRESCRIBERS)
        svc.delete_vital(v)
        return Response({'ok': True, 'data': {'id': vital_id}})

    ensure_role(request.user, CHART_EDITORS)
    s = VitalSignSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    v = svc.update_vital(v, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_vital(v)})
