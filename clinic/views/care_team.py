from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CanEditPatients
from clinic.serializers.clinical import CareTeamMemberSerializer, CareTeamUpdateSerializer
from clinic.services import care_team as svc
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditPatients])
def patient_care_team(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        s = CareTeamMemberSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        vd = s.validated_data
        a = svc.add_member(
            patient,
            user_id=vd['userId'],
            role=vd['role'],
            specialty=vd.get('specialty') or '',
            notes=vd.get('notes') or '',
        )
        return Response({'ok': True, 'data': svc.serialize_assignment(a)}, status=201)

    data = [svc.serialize_assignment(a) for a in svc.list_care_team(patient)]
    return Response({'ok': True, 'data': data})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditPatients])
def care_team_member(request, patient_id: int, assignment_id: int):
    patient = get_patient(patient_id)
    a = svc.get_assignment(patient, assignment_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_assignment(a)})
    if request.method == 'DELETE':
        svc.remove_member(a)
        return Response({'ok': True, 'data': {'id': assignment_id, 'isActive': False}})

    s = CareTeamUpdateSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    a = svc.update_member(a, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_assignment(a)})
