from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import PHYSICIANS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import LabResultQuerySerializer, LabResultSerializer
from clinic.services import lab_results as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_lab_results(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, PRESCRIBERS)
        s = LabResultSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        lab = svc.create_lab_result(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_lab_result(lab)}, status=201)

    q = LabResultQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_lab_results(patient, status=vd.get('status'), category=vd.get('category'),
                              search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_lab_result(lab) for lab in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def lab_result_detail(request, patient_id: int, lab_result_id: int):
    patient = get_patient(patient_id)
    lab = svc.get_lab_result(patient, lab_result_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_lab_result(lab)})
    if request.method == 'DELETE':
        ensure_role(request.user, PHYSICIANS)
        svc.delete_lab_result(lab)
        return Response({'ok': True, 'data': {'id': lab_result_id}})

    ensure_role(request.user, PRESCRIBERS)
    s = LabResultSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    lab = svc.update_lab_result(lab, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_lab_result(lab)})
