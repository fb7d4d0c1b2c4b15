from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import PRESCRIBERS, ensure_role
from clinic.serializers.chart import MedicationQuerySerializer, MedicationSerializer
from clinic.services import medications as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_medications(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, PRESCRIBERS)
        s = MedicationSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        m = svc.create_medication(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_medication(m)}, status=201)

    q = MedicationQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_medications(patient, status=vd.get('status'), search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_medication(m) for m in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def medication_detail(request, patient_id: int, medication_id: int):
    patient = get_patient(patient_id)
    m = svc.get_medication(patient, medication_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_medication(m)})
    ensure_role(request.user, PRESCRIBERS)
    if request.method == 'DELETE':
        svc.delete_medication(m)
        return Response({'ok': True, 'data': {'id': medication_id}})

    s = MedicationSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    m = svc.update_medication(m, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_medication(m)})
