from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import PRESCRIBERS, VACCINATION_EDITORS, ensure_role
from clinic.serializers.clinical import VaccinationQuerySerializer, VaccinationSerializer
from clinic.services import vaccinations as svc
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_vaccinations(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, VACCINATION_EDITORS)
        s = VaccinationSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        v = svc.create_vaccination(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_vaccination(v)}, status=201)

    q = VaccinationQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_vaccinations(patient, verified=vd.get('verified'), search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=svc.VACCINATION_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_vaccination(v) for v in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def vaccination_detail(request, patient_id: int, vaccination_id: int):
    patient = get_patient(patient_id)
    v = svc.get_vaccination(patient, vaccination_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_vaccination(v)})
    if request.method == 'DELETE':
        ensure_role(request.user, PRESCRIBERS)
        svc.delete_vaccination(v)
        return Response({'ok': True, 'data': {'id': vaccination_id}})

    ensure_role(request.user, VACCINATION_EDITORS)
    s = VaccinationSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    v = svc.update_vaccination(v, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_vaccination(v)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def due_vaccinations(request, patient_id: int | None = None):
    """Next doses due today or earlier, for one patient or all active patients."""
    patient = get_patient(patient_id) if patient_id is not None else None
    data = [svc.serialize_vaccination(v) for v in svc.due_vaccinations(patient)]
    return Response({'ok': True, 'data': data})
