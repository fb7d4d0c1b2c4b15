from datetime import timedelta

import pytest
from django.urls import reverse
from django.utils import timezone

from clinic.models import Appointment, User

pytestmark = pytest.mark.django_db


@pytest.fixture
def provider(make_user):
    return make_user(User.ROLE_PHYSICIAN, first_name='Meredith', last_name='Grey')


def book(client, patient, provider, **extra):
    payload = {
        'providerId': provider.id,
        'date': timezone.localdate().isoformat(),
        'time': '09:30',
        'type': 'Consultation',
        **extra,
    }
    return client.post(reverse('patient_appointments', args=[patient.id]), payload, format='json')


def test_receptionist_books_appointment(make_user, client_for, patient, provider):
    client = client_for(make_user(User.ROLE_RECEPTIONIST))
    r = book(client, patient, provider, duration=30, reason='Chest pain')
    assert r.status_code == 201
    data = r.data['data']
    assert data['status'] == 'scheduled'
    assert data['providerName'] == 'Meredith Grey'
    assert data['duration'] == 30
    assert data['patientId'] == patient.id


def test_billing_cannot_book(make_user, client_for, patient, provider):
    client = client_for(make_user(User.ROLE_BILLING))
    assert book(client, patient, provider).status_code == 403


@pytest.mark.parametrize('time', ['9:30', '24:00', '12:60', 'noon'])
def test_time_must_be_hh_mm(make_user, client_for, patient, provider, time):
    client = client_for(make_user(User.ROLE_NURSE))
    r = book(client, patient, provider, time=time)
    assert r.status_code == 400
    assert 'time' in r.data['error']['errors']


def test_unknown_provider(make_user, client_for, patient):
    client = client_for(make_user(User.ROLE_NURSE))
    r = client.post(reverse('patient_appointments', args=[patient.id]), {
        'providerId': 9999, 'date': '2030-01-01', 'time': '10:00', 'type': 'Consultation',
    }, format='json')
    assert r.status_code == 404


def test_update_and_cancel(make_user, client_for, patient, provider):
    client = client_for(make_user(User.ROLE_NURSE))
    appt_id = book(client, patient, provider).data['data']['id']
    url = reverse('appointment_detail', args=[patient.id, appt_id])
    r = client.patch(url, {'status': 'cancelled', 'notes': 'Patient called'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'cancelled'
    assert r.data['data']['time'] == '09:30'
    assert client.delete(url).status_code == 200
    assert not Appointment.objects.filter(id=appt_id).exists()


def test_appointment_of_other_patient_is_not_found(make_user, client_for, patient, make_patient, provider):
    client = client_for(make_user(User.ROLE_NURSE))
    appt_id = book(client, patient, provider).data['data']['id']
    other = make_patient(name='Other Person')
    r = client.get(reverse('appointment_detail', args=[other.id, appt_id]))
    assert r.status_code == 404


def test_list_filters_by_date_range_and_provider(make_user, client_for, patient, provider):
    today = timezone.localdate()
    other_provider = make_user(User.ROLE_PHYSICIAN)
    Appointment.objects.create(patient=patient, provider=provider, date=today, time='08:00', type='Check-up')
    Appointment.objects.create(patient=patient, provider=provider, date=today + timedelta(days=20),
                               time='08:00', type='Check-up')
    Appointment.objects.create(patient=patient, provider=other_provider, date=today, time='09:00', type='Check-up')
    client = client_for(make_user(User.ROLE_READ_ONLY))

    r = client.get(reverse('appointments'), {
        'from': today.isoformat(), 'to': (today + timedelta(days=7)).isoformat(), 'providerId': provider.id,
    })
    assert r.status_code == 200
    assert r.data['pagination']['total'] == 1

    r = client.get(reverse('patient_appointments', args=[patient.id]))
    assert r.data['pagination']['total'] == 3


def test_dashboard_counts(make_user, client_for, patient, make_patient, provider):
    today = timezone.localdate()
    make_patient(name='High Risk', risk_score=90)
    make_patient(name='Archived', risk_score=90, is_active=False)
    Appointment.objects.create(patient=patient, provider=provider, date=today, time='08:00', type='Check-up')
    Appointment.objects.create(patient=patient, provider=provider, date=today, time='11:00', type='Check-up',
                               status='cancelled')
    Appointment.objects.create(patient=patient, provider=provider, date=today + timedelta(days=3),
                               time='08:00', type='Check-up')
    data = client_for(provider).get(reverse('dashboard')).data['data']
    assert data['patients'] == {'total': 3, 'active': 2, 'byRisk': {'low': 0, 'medium': 1, 'high': 1}}
    assert data['appointments']['today'] == 1
    assert data['appointments']['upcoming'] == 1
    assert data['appointments']['todayList'][0]['time'] == '08:00'
    assert data['pendingReferrals'] == 0
    assert data['outstandingBalance'] == []
