from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CHART_EDITORS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import NutritionEntryQuerySerializer, NutritionEntrySerializer
from clinic.services import nutrition as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_nutrition(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, CHART_EDITORS)
        s = NutritionEntrySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        e = svc.create_nutrition_entry(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_nutrition_entry(e)}, status=201)

    q = NutritionEntryQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_nutrition_entries(patient, type=vd.get('type'), search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_nutrition_entry(e) for e in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def nutrition_entry_detail(request, patient_id: int, entry_id: int):
    patient = get_patient(patient_id)
    e = svc.get_nutrition_entry(patient, entry_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_nutrition_entry(e)})
    if request.method == 'DELETE':
        ensure_role(request.user, PRESCRIBERS)
        svc.delete_nutrition_entry(e)
        return Response({'ok': True, 'data': {'id': entry_id}})

    ensure_role(request.user, CHART_EDITORS)
    s = NutritionEntrySerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    e = svc.update_nutrition_entry(e, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_nutrition_entry(e)})
