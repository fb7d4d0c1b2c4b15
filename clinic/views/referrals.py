from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import REFERRAL_DELETERS, REFERRAL_EDITORS, ensure_role
from clinic.serializers.clinical import ReferralQuerySerializer, ReferralSerializer
from clinic.services import referrals as svc
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


def _list(vd, *, patient_id=None):
    qs = svc.list_referrals(
        patient_id=patient_id or vd.get('patientId'),
        status=vd.get('status'),
        priority=vd.get('priority'),
        specialty=vd.get('specialty'),
        date_from=vd.get('from'),
        date_to=vd.get('to'),
    )
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_referral(r) for r in items], 'pagination': pagination})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def list_all_referrals(request):
    q = ReferralQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return _list(q.validated_data)


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated])
def patient_referrals(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        ensure_role(request.user, REFERRAL_EDITORS)
        s = ReferralSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        referral = svc.create_referral(patient, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_referral(referral)}, status=201)

    q = ReferralQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    return _list(q.validated_data, patient_id=patient.id)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def referral_detail(request, patient_id: int, referral_id: int):
    patient = get_patient(patient_id)
    referral = svc.get_referral(patient, referral_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_referral(referral)})
    if request.method == 'DELETE':
        ensure_role(request.user, REFERRAL_DELETERS)
        svc.delete_referral(referral)
        return Response({'ok': True, 'data': {'id': referral_id}})

    ensure_role(request.user, REFERRAL_EDITORS)
    s = ReferralSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    referral = svc.update_referral(referral, s.validated_data)
    return Response({'ok': True, 'data': svc.serialize_referral(referral)})
