from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Invoice, User
from clinic.services import billing
from clinic.services.currency import format_amount, get_currency, is_valid_currency

pytestmark = pytest.mark.django_db

CONSULTATION = {
    'description': 'Consultation',
    'quantity': '2',
    'unitPrice': '50.00',
    'taxRate': '10',
    'discount': '10',
}


@pytest.fixture
def billing_client(make_user, client_for):
    return client_for(make_user(User.ROLE_BILLING))


def create_invoice(client, patient, **extra):
    payload = {'patientId': patient.id, 'items': [CONSULTATION], **extra}
    return client.post(reverse('invoices'), payload, format='json')


# ---------------------------------------------------------------------
# Money and currency helpers
# ---------------------------------------------------------------------
def test_money_rounds_half_up():
    assert billing.money('2.675') == Decimal('2.68')
    assert billing.money('2.665') == Decimal('2.67')
    assert billing.money(None) == Decimal('0.00')


def test_item_amounts_apply_discount_before_tax():
    amounts = billing.item_amounts(quantity=2, unit_price='50.00', tax_rate='10', discount='10')
    assert amounts == {
        'subtotal': Decimal('100.00'),
        'discount': Decimal('10.00'),
        'tax': Decimal('9.00'),
        'total': Decimal('99.00'),
    }


def test_invoice_totals_sum_items():
    totals = billing.invoice_totals([
        {'quantity': 1, 'unitPrice': '19.99'},
        {'quantity': 3, 'unitPrice': '0.10', 'taxRate': '5'},
    ])
    assert totals['subtotal'] == Decimal('20.29')
    assert totals['tax'] == Decimal('0.02')
    assert totals['total'] == Decimal('20.31')


def test_currency_helpers():
    assert is_valid_currency('ngn')
    assert not is_valid_currency('XYZ')
    assert not is_valid_currency(None)
    assert get_currency('XYZ').code == 'USD'
    assert format_amount(Decimal('1234.5'), 'USD') == '$1,234.50'
    assert format_amount(Decimal('1500'), 'JPY') == '¥1,500'
    assert format_amount('not a number', 'EUR') == '€0'


# ---------------------------------------------------------------------
# Invoices
# ---------------------------------------------------------------------
def test_create_invoice_computes_totals_and_number(billing_client, patient):
    r = create_invoice(billing_client, patient)
    assert r.status_code == 201
    data = r.data['data']
    assert data['invoiceNumber'] == 'INV-0001'
    assert data['status'] == 'draft'
    assert data['currency'] == 'USD'
    assert data['subtotal'] == '100.00'
    assert data['discountAmount'] == '10.00'
    assert data['taxAmount'] == '9.00'
    assert data['totalAmount'] == '99.00'
    assert data['balanceAmount'] == '99.00'
    assert data['formattedTotal'] == '$99.00'
    assert len(data['items']) == 1
    assert data['items'][0]['totalAmount'] == '99.00'
    today = timezone.localdate()
    assert data['issueDate'] == today.isoformat()
    assert data['dueDate'] == (today + timedelta(days=30)).isoformat()

    second = create_invoice(billing_client, patient).data['data']
    assert second['invoiceNumber'] == 'INV-0002'


def test_create_invoice_validation(billing_client, patient):
    assert create_invoice(billing_client, patient, currency='XYZ').status_code == 400
    r = billing_client.post(reverse('invoices'), {'patientId': patient.id, 'items': []}, format='json')
    assert r.status_code == 400
    assert 'items' in r.data['error']['errors']
    r = create_invoice(billing_client, patient, issueDate='2024-05-10', dueDate='2024-05-01')
    assert r.status_code == 400
    assert 'dueDate' in r.data['error']['errors']
    r = billing_client.post(reverse('invoices'), {'patientId': 9999, 'items': [CONSULTATION]}, format='json')
    assert r.status_code == 404


def test_currency_is_normalised(billing_client, patient):
    r = create_invoice(billing_client, patient, currency='eur')
    assert r.status_code == 201
    assert r.data['data']['currency'] == 'EUR'
    assert r.data['data']['formattedTotal'] == '€99.00'


def test_physician_cannot_bill(make_user, client_for, patient):
    client = client_for(make_user(User.ROLE_PHYSICIAN))
    assert create_invoice(client, patient).status_code == 403
    # reads stay open
    assert client.get(reverse('invoices')).status_code == 200


def test_receptionist_can_bill(make_user, client_for, patient):
    client = client_for(make_user(User.ROLE_RECEPTIONIST))
    assert create_invoice(client, patient).status_code == 201


def test_update_replaces_items_but_not_patient(billing_client, patient, make_patient):
    other = make_patient(name='Someone Else')
    invoice_id = create_invoice(billing_client, patient).data['data']['id']
    r = billing_client.patch(reverse('invoice_detail', args=[invoice_id]), {
        'patientId': other.id,
        'items': [{'description': 'X-ray', 'quantity': '1', 'unitPrice': '200.00'}],
        'status': 'sent',
    }, format='json')
    assert r.status_code == 200
    data = r.data['data']
    assert data['patientId'] == patient.id
    assert data['totalAmount'] == '200.00'
    assert data['status'] == 'sent'
    assert [i['description'] for i in data['items']] == ['X-ray']


def test_payments_settle_invoice(billing_client, patient):
    invoice_id = create_invoice(billing_client, patient).data['data']['id']
    url = reverse('invoice_payments', args=[invoice_id])

    r = billing_client.post(url, {'amount': '40.00', 'paymentMethod': 'cash'}, format='json')
    assert r.status_code == 201
    assert r.data['data']['payment']['amount'] == '40.00'
    assert r.data['data']['invoice']['status'] == 'sent'
    assert r.data['data']['invoice']['balanceAmount'] == '59.00'

    r = billing_client.post(url, {'amount': '60.00', 'paymentMethod': 'card'}, format='json')
    assert r.status_code == 400
    assert 'amount' in r.data['error']['errors']

    r = billing_client.post(url, {'amount': '0', 'paymentMethod': 'card'}, format='json')
    assert r.status_code == 400

    r = billing_client.post(url, {'amount': '59.00', 'paymentMethod': 'mobile_money'}, format='json')
    assert r.status_code == 201
    invoice = Invoice.objects.get(id=invoice_id)
    assert invoice.status == Invoice.STATUS_PAID
    assert invoice.balance_amount == Decimal('0')
    assert invoice.paid_amount == Decimal('99.00')
    assert invoice.paid_date == timezone.localdate()

    assert len(billing_client.get(url).data['data']) == 2
    # paid invoices are locked
    detail = reverse('invoice_detail', args=[invoice_id])
    assert billing_client.patch(detail, {'notes': 'late edit'}, format='json').status_code == 400
    assert billing_client.delete(detail).status_code == 400


def test_no_payment_on_cancelled_invoice(billing_client, patient):
    invoice_id = create_invoice(billing_client, patient).data['data']['id']
    billing_client.patch(reverse('invoice_detail', args=[invoice_id]), {'status': 'cancelled'}, format='json')
    r = billing_client.post(
        reverse('invoice_payments', args=[invoice_id]), {'amount': '10.00', 'paymentMethod': 'cash'}, format='json',
    )
    assert r.status_code == 400


def test_delete_draft_invoice(billing_client, patient):
    invoice_id = create_invoice(billing_client, patient).data['data']['id']
    r = billing_client.delete(reverse('invoice_detail', args=[invoice_id]))
    assert r.status_code == 200
    assert not Invoice.objects.filter(id=invoice_id).exists()


def test_list_and_patient_invoices(billing_client, patient, make_patient):
    other = make_patient(name='Someone Else')
    create_invoice(billing_client, patient)
    create_invoice(billing_client, other, currency='NGN')

    r = billing_client.get(reverse('invoices'), {'currency': 'ngn'})
    assert [i['patientId'] for i in r.data['data']] == [other.id]
    assert r.data['pagination']['total'] == 1

    r = billing_client.get(reverse('patient_invoices', args=[patient.id]))
    assert [i['patientId'] for i in r.data['data']] == [patient.id]


def test_summary_groups_by_currency(billing_client, patient):
    create_invoice(billing_client, patient)
    create_invoice(billing_client, patient, currency='GBP')
    data = billing_client.get(reverse('billing_summary')).data['data']
    by_currency = {row['currency']: row for row in data['byCurrency']}
    assert set(by_currency) == {'GBP', 'USD'}
    assert by_currency['USD']['totalOutstanding'] == '99.00'
    assert by_currency['GBP']['formattedOutstanding'] == '£99.00'
    assert data['overdueCount'] == 0


def test_status_paid_cannot_be_set_by_update(billing_client, patient):
    invoice_id = create_invoice(billing_client, patient, issueDate='2020-01-01', dueDate='2020-01-31').data['data']['id']
    assert billing_client.get(reverse('billing_summary')).data['data']['overdueCount'] == 1
    detail = reverse('invoice_detail', args=[invoice_id])

    for status in ('paid', 'refunded'):
        r = billing_client.patch(detail, {'status': status}, format='json')
        assert r.status_code == 400
        assert 'status' in r.data['error']['errors']

    invoice = Invoice.objects.get(id=invoice_id)
    assert invoice.status == Invoice.STATUS_DRAFT
    assert invoice.paid_date is None
    assert billing_client.get(reverse('billing_summary')).data['data']['overdueCount'] == 1
    # still editable
    assert billing_client.patch(detail, {'notes': 'chased by phone'}, format='json').status_code == 200


def test_summary_counts_only_open_past_due_invoices(billing_client, patient):
    past_due = {'issueDate': '2020-01-01', 'dueDate': '2020-01-31'}
    open_id = create_invoice(billing_client, patient, **past_due).data['data']['id']
    cancelled_id = create_invoice(billing_client, patient, **past_due).data['data']['id']
    paid_id = create_invoice(billing_client, patient, **past_due).data['data']['id']
    create_invoice(billing_client, patient)

    r = billing_client.patch(reverse('invoice_detail', args=[cancelled_id]), {'status': 'cancelled'}, format='json')
    assert r.status_code == 200
    r = billing_client.post(
        reverse('invoice_payments', args=[paid_id]), {'amount': '99.00', 'paymentMethod': 'cash'}, format='json',
    )
    assert r.status_code == 201
    # a partial payment leaves the invoice overdue
    billing_client.post(
        reverse('invoice_payments', args=[open_id]), {'amount': '10.00', 'paymentMethod': 'cash'}, format='json',
    )

    data = billing_client.get(reverse('billing_summary')).data['data']
    assert data['overdueCount'] == 1
    assert billing.billing_summary(as_of=date(2019, 12, 31))['overdueCount'] == 0


def test_billing_settings(make_user, client_for, billing_client, patient):
    r = billing_client.get(reverse('billing_settings'))
    assert r.data['data']['defaultCurrency'] == 'USD'
    assert billing_client.patch(reverse('billing_settings'), {'invoicePrefix': 'HOSP'}, format='json').status_code == 403

    admin = client_for(make_user(User.ROLE_ADMIN))
    r = admin.patch(reverse('billing_settings'), {'invoicePrefix': 'HOSP', 'defaultCurrency': 'ghs'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['defaultCurrency'] == 'GHS'

    data = create_invoice(billing_client, patient).data['data']
    assert data['invoiceNumber'] == 'HOSP-0001'
    assert data['currency'] == 'GHS'


def test_currencies(billing_client):
    codes = [c['code'] for c in billing_client.get(reverse('billing_currencies')).data['data']]
    assert 'USD' in codes and 'NGN' in codes
