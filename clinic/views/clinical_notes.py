from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CLINICAL_EDITORS, PHYSICIANS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import ClinicalNoteQuerySerializer, ClinicalNoteSerializer
from clinic.services import clinical_notes as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_clinical_notes(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, CLINICAL_EDITORS)
        s = ClinicalNoteSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        note = svc.create_clinical_note(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_clinical_note(note)}, status=201)

    q = ClinicalNoteQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_clinical_notes(patient, type=vd.get('type'), search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_clinical_note(n) for n in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def clinical_note_detail(request, patient_id: int, note_id: int):
    patient = get_patient(patient_id)
    note = svc.get_clinical_note(patient, note_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_clinical_note(note)})
    if request.method == 'DELETE':
        ensure_role(request.user, PHYSICIANS)
        svc.delete_clinical_note(note)
        return Response({'ok': True, 'data': {'id': note_id}})

    ensure_role(request.user, PRESCRIBERS)
    s = ClinicalNoteSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    note = svc.update_clinical_note(note, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_clinical_note(note)})
