"""
Billing views: settings, invoices, payments and reporting.

Reads are open to any authenticated user; writes need a billing role
(admin, billing, receptionist), settings changes need admin.
"""
from __future__ import annotations

from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from clinic.permissions import ADMINS, CanBill, ensure_role
from clinic.serializers.billing import (
    BillingSettingsSerializer,
    InvoiceQuerySerializer,
    InvoiceSerializer,
    PaymentSerializer,
)
from clinic.services import billing as svc
from clinic.services.currency import supported_currencies
from clinic.services.paging import paginate
from clinic.services.patients import get_patient


@api_view(['GET', 'PUT', 'PATCH'])
@permission_classes([IsAuthenticated])
def billing_settings(request):
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_settings(svc.get_settings())})
    ensure_role(request.user, ADMINS)
    s = BillingSettingsSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    return Response({'ok': True, 'data': svc.serialize_settings(svc.update_settings(s.validated_data))})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def currencies(request):
    return Response({'ok': True, 'data': supported_currencies()})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def summary(request):
    return Response({'ok': True, 'data': svc.billing_summary()})


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
def _invoice_page(qs, vd):
    items, pagination = paginate(qs, vd.get('page'), vd.get('limit'))
    return Response({'ok': True, 'data': [svc.serialize_invoice(i) for i in items], 'pagination': pagination})


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanBill])
def invoices(request):
    if request.method == 'POST':
        s = InvoiceSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        invoice = svc.create_invoice(request.user, s.validated_data)
        return Response({'ok': True, 'data': svc.serialize_invoice(invoice, detail=True)}, status=201)

    q = InvoiceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_invoices(
        patient_id=vd.get('patientId'),
        status=vd.get('status'),
        currency=vd.get('currency'),
        start_date=vd.get('startDate'),
        end_date=vd.get('endDate'),
    )
    return _invoice_page(qs, vd)


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated, CanBill])
def invoice_detail(request, invoice_id: int):
    invoice = svc.get_invoice(invoice_id)
    if request.method == 'GET':
        return Response({'ok': True, 'data': svc.serialize_invoice(invoice, detail=True)})
    if request.method == 'DELETE':
        svc.delete_invoice(invoice)
        return Response({'ok': True, 'data': {'id': invoice_id}})

    s = InvoiceSerializer(data=request.data, partial=True)
    s.is_valid(raise_exception=True)
    data = dict(s.validated_data)
    # an invoice cannot be moved to another patient
    data.pop('patientId', None)
    invoice = svc.update_invoice(invoice, data)
    return Response({'ok': True, 'data': svc.serialize_invoice(invoice, detail=True)})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def patient_invoices(request, patient_id: int):
    patient = get_patient(patient_id)
    q = InvoiceQuerySerializer(data=request.query_params)
    q.is_valid(raise_exception=True)
    vd = q.validated_data
    qs = svc.list_invoices(patient_id=patient.id, status=vd.get('status'), currency=vd.get('currency'),
                           start_date=vd.get('startDate'), end_date=vd.get('endDate'))
    return _invoice_page(qs, vd)


# ---------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------
@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, CanBill])
def invoice_payments(request, invoice_id: int):
    invoice = svc.get_invoice(invoice_id)
    if request.method == 'POST':
        s = PaymentSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        payment = svc.record_payment(invoice, request.user, s.validated_data)
        invoice.refresh_from_db()
        return Response({
            'ok': True,
            'data': {
                'payment': svc.serialize_payment(payment),
                'invoice': svc.serialize_invoice(invoice),
            },
        }, status=201)

    data = [svc.serialize_payment(p) for p in svc.list_payments(invoice_id=invoice.id)]
    return Response({'ok': True, 'data': data})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def payments(request):
    invoice_id = request.query_params.get('invoiceId')
    qs = svc.list_payments(invoice_id=int(invoice_id) if (invoice_id or '').isdigit() else None)
    page = request.query_params.get('page')
    limit = request.query_params.get('limit')
    items, pagination = paginate(
        qs,
        int(page) if (page or '').isdigit() else 1,
        int(limit) if (limit or '').isdigit() else None,
    )
    return Response({'ok': True, 'data': [svc.serialize_payment(p) for p in items], 'pagination': pagination})
