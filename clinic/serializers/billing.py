from decimal import Decimal

from rest_framework import serializers

from clinic.models import Invoice, Payment
from clinic.serializers.fields import CleanCharField
from clinic.services.currency import CURRENCIES


def _choices(model_choices):
    return [c[0] for c in model_choices]


class CurrencyField(serializers.CharField):
    def __init__(self, **kwargs):
        kwargs.setdefault('max_length', 3)
        super().__init__(**kwargs)

    def to_internal_value(self, data):
        code = super().to_internal_value(data).upper()
        if code and code not in CURRENCIES:
            raise serializers.ValidationError(f"Unsupported currency: {code}")
        return code


class InvoiceItemSerializer(serializers.Serializer):
    description = CleanCharField(max_length=500)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=Decimal('0.01'))
    unitPrice = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'))
    taxRate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0'),
                                       max_value=Decimal('100'), required=False, default=Decimal('0'))
    discount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=Decimal('0'),
                                        required=False, default=Decimal('0'))
    serviceCode = CleanCharField(required=False, allow_blank=True, max_length=50)
    category = CleanCharField(required=False, allow_blank=True, max_length=100)


class InvoiceSerializer(serializers.Serializer):
    """Invoice payload. ``patientId`` is only required on create."""
    patientId = serializers.IntegerField()
    items = InvoiceItemSerializer(many=True, allow_empty=False)
    currency = CurrencyField(required=False, allow_blank=True)
    status = serializers.ChoiceField(choices=_choices(Invoice.STATUS_CHOICES), required=False)
    issueDate = serializers.DateField(required=False)
    dueDate = serializers.DateField(required=False)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=5000)
    billingAddress = serializers.DictField(required=False, allow_null=True)

    def validate_items(self, items):
        # partial updates must still send complete line items
        for item in items:
            missing = [k for k in ('description', 'quantity', 'unitPrice') if k not in item]
            if missing:
                raise serializers.ValidationError(f"Line item is missing: {', '.join(missing)}")
        return items

    def validate(self, attrs):
        issue, due = attrs.get('issueDate'), attrs.get('dueDate')
        if issue and due and due < issue:
            raise serializers.ValidationError({'dueDate': ['Due date cannot be before the issue date']})
        return attrs


class InvoiceQuerySerializer(serializers.Serializer):
    patientId = serializers.IntegerField(required=False)
    status = serializers.ChoiceField(choices=_choices(Invoice.STATUS_CHOICES), required=False)
    currency = CurrencyField(required=False, allow_blank=True)
    startDate = serializers.DateField(required=False)
    endDate = serializers.DateField(required=False)
    page = serializers.IntegerField(required=False, min_value=1)
    limit = serializers.IntegerField(required=False, min_value=1)


class PaymentSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=12, decimal_places=2)
    paymentMethod = serializers.ChoiceField(choices=_choices(Payment.METHOD_CHOICES))
    transactionId = CleanCharField(required=False, allow_blank=True, max_length=100)
    paymentDate = serializers.DateTimeField(required=False)
    notes = CleanCharField(required=False, allow_blank=True, allow_null=True, max_length=2000)


class BillingSettingsSerializer(serializers.Serializer):
    defaultCurrency = CurrencyField(required=False)
    invoicePrefix = serializers.RegexField(r'^[A-Za-z0-9]{1,20}$', required=False)
    paymentTerms = serializers.IntegerField(required=False, min_value=0, max_value=365)
    taxRate = serializers.DecimalField(max_digits=5, decimal_places=2, min_value=Decimal('0'),
                                       max_value=Decimal('100'), required=False)
