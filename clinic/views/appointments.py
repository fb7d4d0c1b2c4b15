from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CanSchedule
from clinic.serializers.clinical import AppointmentQuerySerializer, AppointmentSerializer
from clinic.services import appointments as svc
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_all_appointments(request):
    q = AppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_appointments(
        patient_id=vd.get('patientId'),
        provider_id=vd.get('providerId'),
        status=vd.get('status'),
        date_from=vd.get('from'),
        date_to=vd.get('to'),
    )
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_appointment(a) for a in items], 'pagination': pagination})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanSchedule])
def patient_appointments(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        s = AppointmentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        appt = svc.create_appointment(patient, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_appointment(appt)}, status=201)

    q = AppointmentQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_appointments(patient_id=patient.id, status=vd.get('status'),
                               date_from=vd.get('from'), date_to=vd.get('to'))
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_appointment(a) for a in items], 'pagination': pagination})


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanSchedule])
def appointment_detail(request, patient_id: int, appointment_id: int):
    patient = get_patient(patient_id)
    appt = svc.get_appointment(patient, appointment_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_appointment(appt)})
    if request.method == 'DELETE':
        svc.delete_appointment(appt)
        return Response({'ok': True, 'data': {'id': appointment_id}})

    s = AppointmentSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    appt = svc.update_appointment(appt, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_appointment(appt)})
