from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import PHYSICIANS, PRESCRIBERS, ensure_role
from clinic.serializers.chart import ImagingStudyQuerySerializer, ImagingStudySerializer
from clinic.services import imaging as svc
from clinic.services.chart import CHART_PAGE_DEFAULT
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_imaging_studies(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, PRESCRIBERS)
        s = ImagingStudySerializer(data=request.data)
        s.is_valid(raise_exception=True)
        study = svc.create_imaging_study(patient, request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_imaging_study(study)}, status=201)

    q = ImagingStudyQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_imaging_studies(patient, modality=vd.get('modality'), status=vd.get('status'),
                                  search=vd.get('search'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'), default=CHART_PAGE_DEFAULT)
    return Response({'ok': True, 'data': [svc.serialize_imaging_study(s) for s in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def imaging_study_detail(request, patient_id: int, study_id: int):
    patient = get_patient(patient_id)
    study = svc.get_imaging_study(patient, study_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_imaging_study(study)})
    # reads and reports belong to the physicians
    ensure_role(request.user, PHYSICIANS)
    if request.method == 'DELETE':
        svc.delete_imaging_study(study)
        return Response({'ok': True, 'data': {'id': study_id}})

    s = ImagingStudySerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    study = svc.update_imaging_study(study, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_imaging_study(study)})
