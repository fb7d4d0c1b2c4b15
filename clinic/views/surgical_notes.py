from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import PRESCRIBERS, ensure_role
from clinic.serializers.chart import SurgicalNoteQuerySerializer, SurgicalNoteSerializer
from clinic.services import surgical_notes as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_surgical_notes(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, PRESCRIBERS)
        s = SurgicalNoteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        note = svc.create_surgical_note(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_surgical_note(note)}, status=201)

    q = SurgicalNoteQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_surgical_notes(patient, status=vd.get('status'), procedure_type=vd.get('procedureType'),
                                 search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_surgical_note(n) for n in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def surgical_note_detail(request, patient_id: int, note_id: int):
    patient = get_patient(patient_id)
    note = svc.get_surgical_note(patient, note_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_surgical_note(note)})
    ensure_role(request.user, PRESCRIBERS)
    if request.method == 'DELETE':
        svc.delete_surgical_note(note)
        return Response({'ok': True, 'data': {'id': note_id}})

    s = SurgicalNoteSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    note = svc.update_surgical_note(note, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_surgical_note(note)})
