import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.middleware import parse_resource
from clinic.models import AuditLog, User
from clinic.services.audit import log_audit_event, patient_audit_trail


@pytest.mark.parametrize('path, expected', [
    ('/api/v1/patients', ('Patient', None, None)),
    ('/api/v1/patients/5', ('Patient', '5', 5)),
    ('/api/v1/patients/5/referrals/9', ('Referral', '9', 5)),
    ('/api/v1/patients/7/care-team', ('CareTeam', None, 7)),
    ('/api/v1/patients/7/vaccinations/due', ('Vaccination', None, 7)),
    ('/api/v1/patients/7/lab-results/4', ('LabResult', '4', 7)),
    ('/api/v1/patients/7/imaging-studies', ('ImagingStudy', None, 7)),
    ('/api/v1/patients/7/vitals/latest', ('Vital', None, 7)),
    ('/api/v1/patients/7/nutrition/2', ('Nutrition', '2', 7)),
    ('/api/v1/billing/invoices/3/payments', ('Payment', None, None)),
    ('/api/v1/hubs/cardiology', ('Hub', 'cardiology', None)),
    ('/api/v1/hubs/cardiology/notes', ('Note', None, None)),
])
def test_parse_resource(path, expected):
    assert parse_resource(path) == expected


@pytest.mark.django_db
def test_middleware_logs_list_reads(make_user, client_for, patient):
    user = make_user()
    r = client_for(user).get(reverse('patients'), {'risk': 'medium'})
    assert r.status_code == 200
    log = AuditLog.objects.get()
    assert log.user == user
    assert log.action == 'READ'
    assert log.resource_type == 'Patient'
    assert log.request_path == '/api/v1/patients'
    assert log.status_code == 200
    assert 'durationMs' in log.metadata
    assert log.metadata['query'] == 'risk=medium'


@pytest.mark.django_db
def test_middleware_records_failures(make_user, client_for):
    r = client_for(make_user()).get(reverse('invoice_detail', args=[999]))
    assert r.status_code == 404
    log = AuditLog.objects.get()
    assert log.resource_type == 'Invoice'
    assert log.resource_id == '999'
    assert log.success is False


@pytest.mark.django_db
def test_unaudited_requests(make_user, client_for, client):
    assert client.get(reverse('patients')).status_code == 401
    assert client_for(make_user()).get(reverse('calculators')).status_code == 200
    assert not AuditLog.objects.exists()


@pytest.mark.django_db
def test_audit_can_be_disabled(settings, make_user, client_for, patient):
    settings.AUDIT_ENABLED = False
    assert log_audit_event(action='READ', resource_type='Patient') is None
    client_for(make_user()).get(reverse('patient_detail', args=[patient.id]))
    assert not AuditLog.objects.exists()


@pytest.mark.django_db
def test_changes_are_redacted(make_user):
    log = log_audit_event(user=make_user(), action='UPDATE', resource_type='User',
                          changes={'password': 'hunter2', 'email': 'a@hospital.test'})
    assert log.changes == {'password': '[REDACTED]', 'email': 'a@hospital.test'}


@pytest.mark.django_db
def test_admin_queries(make_user, client_for, patient, make_patient):
    doctor = make_user()
    admin = make_user(User.ROLE_ADMIN)
    other = make_patient(name='John Roe')
    client_for(doctor).get(reverse('patient_detail', args=[patient.id]))
    client_for(doctor).get(reverse('patient_detail', args=[other.id]))
    client_for(doctor).patch(reverse('patient_detail', args=[patient.id]), {'riskScore': 75}, format='json')

    client = client_for(admin)
    r = client.get(reverse('audit_logs'), {'userId': doctor.id, 'action': 'READ'})
    assert r.status_code == 200
    assert r.data['pagination']['total'] == 2

    today = timezone.localdate().isoformat()
    r = client.get(reverse('audit_logs'), {'patientId': patient.id, 'from': today, 'to': today})
    assert [e['action'] for e in r.data['data']] == ['UPDATE', 'READ']
    assert r.data['data'][0]['changes'] == {'riskScore': {'from': '40', 'to': '75'}}

    r = client.get(reverse('patient_audit_trail', args=[other.id]))
    assert len(r.data['data']) == 1
    r = client.get(reverse('user_audit_trail', args=[doctor.id]))
    assert len(r.data['data']) == 3
    assert len(patient_audit_trail(patient.id, limit=1)) == 1


@pytest.mark.django_db
def test_audit_endpoints_are_admin_only(make_user, client_for):
    client = client_for(make_user())
    assert client.get(reverse('audit_logs')).status_code == 403
    assert client.get(reverse('user_audit_trail', args=[1])).status_code == 403


@pytest.mark.django_db
def test_invalid_action_filter(make_user, client_for):
    r = client_for(make_user(User.ROLE_ADMIN)).get(reverse('audit_logs'), {'action': 'EXPLODE'})
    assert r.status_code == 400


@pytest.mark.django_db
def test_resource_trail(make_user, client_for):
    doctor = client_for(make_user())
    doctor.get(reverse('invoice_detail', args=[999]))
    doctor.get(reverse('invoice_detail', args=[999]))
    doctor.get(reverse('invoice_detail', args=[998]))

    url = reverse('resource_audit_trail', args=['Invoice', '999'])
    assert doctor.get(url).status_code == 403
    r = client_for(make_user(User.ROLE_ADMIN)).get(url)
    assert r.status_code == 200
    assert len(r.data['data']) == 2
    assert {(e['resourceType'], e['resourceId']) for e in r.data['data']} == {('Invoice', '999')}
