"""
Patient record views.

Any authenticated user may read patients; creating and editing is limited
to clinical editors and deleting to administrators. List responses are
served from the cache in :mod:`clinic.services.patients`.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import ADMINS, CanEditPatients, ensure_role
from clinic.serializers.patient import PatientListQuerySerializer, PatientSearchQuerySerializer, PatientSerializer
from clinic.services import patients as svc
from clinic.services.audit import log_patient_access, log_patient_modification


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditPatients])
def patients_collection(request):
    if request.method == 'POST':
        s = PatientSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        patient = svc.create_patient(request.user, s.validated_data)
        log_patient_modification(request.user, patient.id, 'CREATE',
                                 changes={'name': patient.name}, request=request)
        return Response({'ok': True, 'data': svc.serialize_patient(patient)}, status=201)

    q = PatientListQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    data, pagination = svc.list_patients(
        search=vd.get('search'),
        risk=vd.get('risk'),
        condition=vd.get('condition'),
        hub=vd.get('hub'),
        include_archived=vd.get('includeArchived', False),
        sort_by=vd.get('sortBy'),
        sort_order=vd.get('sortOrder'),
        page=vd.get('page') or 1,
        limit=vd.get('limit'),
    )
    return Response({'ok': True, 'data': data, 'pagination': pagination})

patients_collection.cls.throttle_scope = 'patient_write'


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditPatients])
def patient_detail(request, patient_id: int):
    if request.method == 'GET':
        data = svc.patient_detail(patient_id)
        log_patient_access(request.user, patient_id, request=request)
        return Response({'ok': True, 'data': data})

    patient = svc.get_patient(patient_id)

    if request.method == 'DELETE':
        ensure_role(request.user, ADMINS)
        hard = str(request.query_params.get('hard', '')).lower() in ('1', 'true', 'yes')
        svc.delete_patient(request.user, patient, hard=hard)
        log_patient_modification(request.user, patient_id, 'DELETE',
                                 changes={'hard': hard}, request=request)
        return Response({'ok': True, 'data': {'id': patient_id, 'deleted': hard, 'archived': not hard}})

    s = PatientSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    patient, changes = svc.update_patient(request.user, patient, s.validated_data)
    log_patient_modification(request.user, patient.id, 'UPDATE', changes=changes or None, request=request)
    return Response({'ok': True, 'data': svc.serialize_patient(patient)})

patient_detail.cls.throttle_scope = 'patient_write'


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def search_patients(request):
    q = PatientSearchQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': svc.search_patients(q.validated_data['q'])})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_timeline(request, patient_id: int):
    patient = svc.get_patient(patient_id)
    return Response({'ok': True, 'data': svc.patient_timeline(patient)})
