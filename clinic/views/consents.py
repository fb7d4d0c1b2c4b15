from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CHART_EDITORS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import ConsentQuerySerializer, ConsentSerializer
from clinic.services import consents as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_consents(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, CHART_EDITORS)
        s = ConsentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        c = svc.create_consent(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_consent(c)}, status=201)

    q = ConsentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_consents(patient, status=vd.get('status'), type=vd.get('type'), search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_consent(c) for c in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def consent_detail(request, patient_id: int, consent_id: int):
    patient = get_patient(patient_id)
    c = svc.get_consent(patient, consent_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_consent(c)})
    if request.method == 'DELETE':
        ensure_role(request.user, PRESCRIBERS)
        svc.delete_consent(c)
        return Response({'ok': True, 'data': {'id': consent_id}})

    ensure_role(request.user, CHART_EDITORS)
    s = ConsentSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    c = svc.update_consent(c, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_consent(c)})
