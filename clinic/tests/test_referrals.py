from datetime import date

import pytest
from django.urls import reverse

from clinic.models import Referral, User

pytestmark = pytest.mark.django_db

REFERRAL = {
    'date': '2025-03-01',
    'specialty': 'Cardiology',
    'reason': 'Abnormal ECG',
    'priority': 'urgent',
}


def refer(client, patient, **extra):
    return client.post(reverse('patient_referrals', args=[patient.id]), {**REFERRAL, **extra}, format='json')


def test_physician_creates_referral(make_user, client_for, patient):
    doc = make_user(User.ROLE_PHYSICIAN, first_name='Derek', last_name='Shepherd')
    r = refer(client_for(doc), patient, referringPhysicianId=doc.id, referredToFacility='Heart Centre',
              attachments=['ecg.pdf'])
    assert r.status_code == 201
    data = r.data['data']
    assert data['status'] == 'pending'
    assert data['referringPhysicianName'] == 'Derek Shepherd'
    assert data['referredToFacility'] == 'Heart Centre'
    assert data['attachments'] == ['ecg.pdf']
    assert data['insurancePreAuth'] is False


@pytest.mark.parametrize('role, expected', [
    (User.ROLE_RECEPTIONIST, 201),
    (User.ROLE_NURSE, 201),
    (User.ROLE_MEDICAL_ASSISTANT, 403),
    (User.ROLE_BILLING, 403),
])
def test_who_can_refer(make_user, client_for, patient, role, expected):
    assert refer(client_for(make_user(role)), patient).status_code == expected


def test_appointment_date_cannot_precede_referral(make_user, client_for, patient):
    r = refer(client_for(make_user()), patient, appointmentDate='2025-02-01')
    assert r.status_code == 400
    assert 'appointmentDate' in r.data['error']['errors']


def test_unknown_referred_provider(make_user, client_for, patient):
    assert refer(client_for(make_user()), patient, referredToProviderId=9999).status_code == 404


def test_update_and_delete_permissions(make_user, client_for, patient):
    doc = client_for(make_user(User.ROLE_PHYSICIAN))
    referral_id = refer(doc, patient).data['data']['id']
    url = reverse('referral_detail', args=[patient.id, referral_id])

    nurse = client_for(make_user(User.ROLE_NURSE))
    r = nurse.patch(url, {'status': 'sent', 'notes': 'Faxed'}, format='json')
    assert r.status_code == 200
    assert r.data['data']['status'] == 'sent'
    assert r.data['data']['specialty'] == 'Cardiology'

    assert nurse.delete(url).status_code == 403
    assert client_for(make_user(User.ROLE_READ_ONLY)).patch(url, {'status': 'accepted'}, format='json').status_code == 403
    assert doc.delete(url).status_code == 200
    assert not Referral.objects.filter(id=referral_id).exists()


def test_referral_is_scoped_to_patient(make_user, client_for, patient, make_patient):
    doc = client_for(make_user())
    referral_id = refer(doc, patient).data['data']['id']
    other = make_patient(name='Other Person')
    assert doc.get(reverse('referral_detail', args=[other.id, referral_id])).status_code == 404


def test_list_filters(make_user, client_for, patient, make_patient):
    other = make_patient(name='Other Person')
    Referral.objects.create(patient=patient, date=date(2025, 1, 10), specialty='Neurology', reason='Headache',
                            priority='routine', status='pending')
    Referral.objects.create(patient=patient, date=date(2025, 2, 10), specialty='Cardiology', reason='Murmur',
                            priority='urgent', status='accepted')
    Referral.objects.create(patient=other, date=date(2025, 2, 15), specialty='Cardiology', reason='Palpitations',
                            priority='routine', status='pending')
    client = client_for(make_user(User.ROLE_READ_ONLY))

    r = client.get(reverse('referrals'), {'status': 'pending'})
    assert r.data['pagination']['total'] == 2

    r = client.get(reverse('referrals'), {'specialty': 'cardio', 'from': '2025-02-01', 'to': '2025-02-12'})
    assert [x['reason'] for x in r.data['data']] == ['Murmur']

    r = client.get(reverse('patient_referrals', args=[patient.id]))
    assert [x['reason'] for x in r.data['data']] == ['Murmur', 'Headache']

    assert client.get(reverse('referrals'), {'priority': 'whenever'}).status_code == 400
