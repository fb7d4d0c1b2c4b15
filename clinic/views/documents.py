from __future__ import annotations

from rest_framework.decorators import api_view, parser_classes, permission_classes
from rest_framework.parsers import FormParser, JSONParser, MultiPartParser
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import CanEditPatients
from clinic.serializers.patient import DocumentUploadSerializer
from clinic.services import uploads as svc
from clinic.services.patients import get_patient


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanEditPatients])
@parser_classes([MultiPartParser, FormParser, JSONParser])
def patient_documents(request, patient_id: int):
    patient = get_patient(patient_id)
    if request.method == 'POST':
        s = DocumentUploadSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        doc = svc.store_document(patient, s.validated_data['file'], uploaded_by=request.user,
                                 category=s.validated_data.get('category', ''))
        return Response({'ok': True, 'data': svc.serialize_document(doc)}, status=201)

    docs = patient.documents.order_by('-created_at')
    return Response({'ok': True, 'data': [svc.serialize_document(d) for d in docs]})

patient_documents.cls.throttle_scope = 'upload'


@api_view(['GET', 'DELETE'])
@permission_classes([IsAuthenticated, CanEditPatients])
def document_detail(request, patient_id: int, document_id: int):
    patient = get_patient(patient_id)
    doc = svc.get_document(patient, document_id)
    if request.method == 'DELETE':
        svc.delete_document(doc)
        return Response({'ok': True, 'data': {'id': document_id}})
    return Response({'ok': True, 'data': svc.serialize_document(doc)})
