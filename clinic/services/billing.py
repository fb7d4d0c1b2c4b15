"""
Invoices, payments and billing settings.

All money is handled as :class:`~decimal.Decimal` and rounded half-up to
cents. Invoice numbers come from the :class:`BillingSettings` counter,
which is incremented under a row lock.
"""
from __future__ import annotations

import logging
from datetime import timedelta
from decimal import ROUND_HALF_UP, Decimal

from django.db import transaction
from django.db.models import Count, Q, Sum
from django.utils import timezone

from clinic.exceptions import NotFoundError, ValidationError
from clinic.models import BillingSettings, Invoice, InvoiceItem, Patient, Payment
from clinic.services.currency import format_amount, is_valid_currency
from clinic.services.patients import invalidate_patient_cache

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')

LOCKED_STATUSES = (Invoice.STATUS_PAID, Invoice.STATUS_CANCELLED)
# only payments move an invoice into these
PAYMENT_STATUSES = (Invoice.STATUS_PAID, Invoice.STATUS_REFUNDED)


def money(value) -> Decimal:
    return Decimal(str(value or 0)).quantize(CENT, rounding=ROUND_HALF_UP)


# ---------------------------------------------------------------------
# Settings & numbering
# ---------------------------------------------------------------------
def get_settings() -> BillingSettings:
    settings_obj = BillingSettings.objects.order_by('id').first()
    if settings_obj is None:
        settings_obj = BillingSettings.objects.create()
    return settings_obj


def update_settings(data: dict) -> BillingSettings:
    s = get_settings()
    if 'defaultCurrency' in data:
        code = (data['defaultCurrency'] or '').upper()
        if not is_valid_currency(code):
            raise ValidationError(f"Unsupported currency: {data['defaultCurrency']}")
        s.default_currency = code
    if 'invoicePrefix' in data:
        s.invoice_prefix = data['invoicePrefix']
    if 'paymentTerms' in data:
        s.payment_terms_days = data['paymentTerms']
    if 'taxRate' in data:
        s.tax_rate = money(data['taxRate'])
    s.save()
    return s


def serialize_settings(s: BillingSettings) -> dict:
    return {
        'defaultCurrency': s.default_currency,
        'invoicePrefix': s.invoice_prefix,
        'nextInvoiceNumber': s.next_invoice_number,
        'paymentTerms': s.payment_terms_days,
        'taxRate': str(s.tax_rate),
    }


def next_invoice_number() -> str:
    """Reserve and return the next invoice number, e.g. ``INV-0042``."""
    with transaction.atomic():
        s = BillingSettings.objects.select_for_update().get(pk=get_settings().pk)
        while True:
            number = f"{s.invoice_prefix}-{s.next_invoice_number:04d}"
            s.next_invoice_number += 1
            if not Invoice.objects.filter(invoice_number=number).exists():
                break
        s.save(update_fields=['next_invoice_number', 'updated_at'])
    return number


# ---------------------------------------------------------------------
# Totals
# ---------------------------------------------------------------------
def item_amounts(quantity, unit_price, tax_rate=0, discount=0) -> dict:
    subtotal = money(Decimal(str(quantity)) * Decimal(str(unit_price)))
    discount = money(discount)
    after_discount = subtotal - discount
    tax = money(after_discount * Decimal(str(tax_rate or 0)) / HUNDRED)
    return {
        'subtotal': subtotal,
        'discount': discount,
        'tax': tax,
        'total': after_discount + tax,
    }


def invoice_totals(items: list[dict]) -> dict:
    subtotal = discount = tax = ZERO
    for item in items:
        amounts = item_amounts(item['quantity'], item['unitPrice'], item.get('taxRate'), item.get('discount'))
        subtotal += amounts['subtotal']
        discount += amounts['discount']
        tax += amounts['tax']
    return {
        'subtotal': subtotal,
        'discount': discount,
        'tax': tax,
        'total': subtotal - discount + tax,
    }


def _create_items(invoice: Invoice, items: list[dict]) -> None:
    rows = []
    for item in items:
        amounts = item_amounts(item['quantity'], item['unitPrice'], item.get('taxRate'), item.get('discount'))
        rows.append(InvoiceItem(
            invoice=invoice,
            description=item['description'],
            quantity=item['quantity'],
            unit_price=money(item['unitPrice']),
            tax_rate=money(item.get('taxRate')),
            discount=amounts['discount'],
            total_amount=amounts['total'],
            service_code=item.get('serviceCode') or '',
            category=item.get('category') or '',
        ))
    InvoiceItem.objects.bulk_create(rows)


def _apply_totals(invoice: Invoice, totals: dict) -> None:
    invoice.subtotal = totals['subtotal']
    invoice.discount_amount = totals['discount']
    invoice.tax_amount = totals['tax']
    invoice.total_amount = totals['total']
    invoice.balance_amount = totals['total'] - invoice.paid_amount


# ---------------------------------------------------------------------
# Serialization
# ---------------------------------------------------------------------
def serialize_item(item: InvoiceItem) -> dict:
    return {
        'id': item.id,
        'description': item.description,
        'quantity': str(item.quantity),
        'unitPrice': str(item.unit_price),
        'taxRate': str(item.tax_rate),
        'discount': str(item.discount),
        'totalAmount': str(item.total_amount),
        'serviceCode': item.service_code or None,
        'category': item.category or None,
    }


def serialize_payment(p: Payment) -> dict:
    return {
        'id': p.id,
        'invoiceId': p.invoice_id,
        'amount': str(p.amount),
        'currency': p.currency,
        'paymentMethod': p.payment_method,
        'status': p.status,
        'transactionId': p.transaction_id or None,
        'paymentDate': p.payment_date.isoformat() if p.payment_date else None,
        'notes': p.notes or None,
        'processedBy': p.processed_by_id,
    }


def serialize_invoice(invoice: Invoice, *, detail: bool = False) -> dict:
    data = {
        'id': invoice.id,
        'invoiceNumber': invoice.invoice_number,
        'patientId': invoice.patient_id,
        'patientName': invoice.patient.name if invoice.patient_id else None,
        'status': invoice.status,
        'currency': invoice.currency,
        'subtotal': str(invoice.subtotal),
        'taxAmount': str(invoice.tax_amount),
        'discountAmount': str(invoice.discount_amount),
        'totalAmount': str(invoice.total_amount),
        'paidAmount': str(invoice.paid_amount),
        'balanceAmount': str(invoice.balance_amount),
        'formattedTotal': format_amount(invoice.total_amount, invoice.currency),
        'issueDate': invoice.issue_date.isoformat() if invoice.issue_date else None,
        'dueDate': invoice.due_date.isoformat() if invoice.due_date else None,
        'paidDate': invoice.paid_date.isoformat() if invoice.paid_date else None,
        'notes': invoice.notes or None,
        'billingAddress': invoice.billing_address or None,
        'createdBy': invoice.created_by_id,
        'createdAt': invoice.created_at.isoformat() if invoice.created_at else None,
    }
    if detail:
        data['items'] = [serialize_item(i) for i in invoice.items.order_by('id')]
        data['payments'] = [serialize_payment(p) for p in invoice.payments.order_by('-payment_date')]
    return data


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
def get_invoice(invoice_id) -> Invoice:
    invoice = Invoice.objects.select_related('patient').filter(id=invoice_id).first()
    if invoice is None:
        raise NotFoundError('Invoice', invoice_id)
    return invoice


def list_invoices(*, patient_id=None, status=None, currency=None, start_date=None, end_date=None):
    qs = Invoice.objects.select_related('patient')
    if patient_id:
        qs = qs.filter(patient_id=patient_id)
    if status:
        qs = qs.filter(status=status)
    if currency:
        qs = qs.filter(currency=currency.upper())
    if start_date:
        qs = qs.filter(issue_date__gte=start_date)
    if end_date:
        qs = qs.filter(issue_date__lte=end_date)
    return qs.order_by('-issue_date', '-id')


def _check_currency(code: str) -> str:
    code = (code or '').upper()
    if not is_valid_currency(code):
        raise ValidationError(f"Unsupported currency: {code}", {'currency': ['Unsupported currency']})
    return code


def create_invoice(current_user, data: dict) -> Invoice:
    patient = Patient.objects.filter(id=data['patientId']).first()
    if patient is None:
        raise NotFoundError('Patient', data['patientId'])
    items = data.get('items') or []
    if not items:
        raise ValidationError('Invoice must have at least one item', {'items': ['At least one item is required']})
    s = get_settings()
    currency = _check_currency(data.get('currency') or s.default_currency)
    issue_date = data.get('issueDate') or timezone.localdate()
    due_date = data.get('dueDate') or issue_date + timedelta(days=s.payment_terms_days)
    if due_date < issue_date:
        raise ValidationError('Due date cannot be before issue date', {'dueDate': ['Must not precede issueDate']})

    with transaction.atomic():
        invoice = Invoice(
            patient=patient,
            invoice_number=next_invoice_number(),
            status=Invoice.STATUS_DRAFT,
            currency=currency,
            issue_date=issue_date,
            due_date=due_date,
            notes=data.get('notes') or '',
            billing_address=data.get('billingAddress') or {},
            created_by=current_user,
        )
        _apply_totals(invoice, invoice_totals(items))
        invoice.save()
        _create_items(invoice, items)
    invalidate_patient_cache(patient.id)
    logger.info('Invoice %s created for patient %s', invoice.invoice_number, patient.id)
    return invoice


def update_invoice(invoice: Invoice, data: dict) -> Invoice:
    if invoice.status in LOCKED_STATUSES:
        raise ValidationError(f"Cannot update a {invoice.status} invoice")
    with transaction.atomic():
        if 'currency' in data and data['currency']:
            invoice.currency = _check_currency(data['currency'])
        if data.get('status'):
            if data['status'] in PAYMENT_STATUSES:
                raise ValidationError(
                    f"Status '{data['status']}' is set by recording payments",
                    {'status': ['Paid and refunded statuses cannot be set directly']},
                )
            invoice.status = data['status']
        if data.get('issueDate'):
            invoice.issue_date = data['issueDate']
        if data.get('dueDate'):
            invoice.due_date = data['dueDate']
        if 'notes' in data:
            invoice.notes = data['notes'] or ''
        if 'billingAddress' in data:
            invoice.billing_address = data['billingAddress'] or {}
        if data.get('items') is not None:
            if not data['items']:
                raise ValidationError('Invoice must have at least one item', {'items': ['At least one item is required']})
            invoice.items.all().delete()
            _create_items(invoice, data['items'])
            _apply_totals(invoice, invoice_totals(data['items']))
            if invoice.balance_amount < ZERO:
                raise ValidationError('Invoice total cannot be less than the amount already paid')
        if invoice.due_date < invoice.issue_date:
            raise ValidationError('Due date cannot be before issue date', {'dueDate': ['Must not precede issueDate']})
        invoice.save()
    invalidate_patient_cache(invoice.patient_id)
    return invoice


def delete_invoice(invoice: Invoice) -> None:
    if invoice.status == Invoice.STATUS_PAID:
        raise ValidationError('Cannot delete a paid invoice')
    patient_id = invoice.patient_id
    invoice.delete()
    invalidate_patient_cache(patient_id)


# ---------------------------------------------------------------------
# Payments
# ---------------------------------------------------------------------
def record_payment(invoice: Invoice, current_user, data: dict) -> Payment:
    amount = money(data['amount'])
    if amount <= ZERO:
        raise ValidationError('Payment amount must be greater than zero', {'amount': ['Must be greater than zero']})
    with transaction.atomic():
        invoice = Invoice.objects.select_for_update().get(pk=invoice.pk)
        if invoice.status == Invoice.STATUS_CANCELLED:
            raise ValidationError('Cannot record a payment on a cancelled invoice')
        if amount > invoice.balance_amount:
            raise ValidationError(
                'Payment amount exceeds invoice balance',
                {'amount': [f"Must not exceed balance of {invoice.balance_amount}"]},
            )
        payment = Payment.objects.create(
            invoice=invoice,
            amount=amount,
            currency=invoice.currency,
            payment_method=data['paymentMethod'],
            status='completed',
            transaction_id=data.get('transactionId') or '',
            payment_date=data.get('paymentDate') or timezone.now(),
            notes=data.get('notes') or '',
            processed_by=current_user,
        )
        invoice.paid_amount += amount
        invoice.balance_amount = invoice.total_amount - invoice.paid_amount
        if invoice.balance_amount <= ZERO:
            invoice.balance_amount = ZERO
            invoice.status = Invoice.STATUS_PAID
            invoice.paid_date = timezone.localdate()
        else:
            invoice.status = Invoice.STATUS_SENT
        invoice.save(update_fields=['paid_amount', 'balance_amount', 'status', 'paid_date', 'updated_at'])
    invalidate_patient_cache(invoice.patient_id)
    logger.info('Payment of %s %s recorded on invoice %s', amount, invoice.currency, invoice.invoice_number)
    return payment


def list_payments(*, invoice_id=None):
    qs = Payment.objects.select_related('invoice')
    if invoice_id:
        qs = qs.filter(invoice_id=invoice_id)
    return qs.order_by('-payment_date')


# ---------------------------------------------------------------------
# Summary
# ---------------------------------------------------------------------
def billing_summary(as_of=None) -> dict:
    as_of = as_of or timezone.localdate()
    rows = (
        Invoice.objects.exclude(status=Invoice.STATUS_CANCELLED)
        .values('currency')
        .annotate(
            invoiced=Sum('total_amount'),
            paid=Sum('paid_amount'),
            outstanding=Sum('balance_amount'),
            count=Count('id'),
        )
        .order_by('currency')
    )
    overdue = Invoice.objects.filter(
        Q(due_date__lt=as_of) & Q(balance_amount__gt=0)
    ).exclude(status__in=LOCKED_STATUSES).count()
    return {
        'byCurrency': [
            {
                'currency': r['currency'],
                'invoiceCount': r['count'],
                'totalInvoiced': str(money(r['invoiced'])),
                'totalPaid': str(money(r['paid'])),
                'totalOutstanding': str(money(r['outstanding'])),
                'formattedOutstanding': format_amount(money(r['outstanding']), r['currency']),
            }
            for r in rows
        ],
        'overdueCount': overdue,
    }
