import pytest
from django.urls import reverse

from clinic.models import User
from clinic.services.users import similar_emails

pytestmark = pytest.mark.django_db


@pytest.fixture
def admin(make_user):
    return make_user(User.ROLE_ADMIN)


def test_admin_creates_user_with_generated_password(admin, client_for):
    r = client_for(admin).post(reverse('users'), {
        'email': 'New.Doctor@Hospital.test', 'role': 'physician', 'firstName': 'New', 'lastName': 'Doctor',
    }, format='json')
    assert r.status_code == 201
    data = r.data['data']
    assert data['email'] == 'new.doctor@hospital.test'
    assert data['username'] == 'new.doctor@hospital.test'
    password = data['temporaryPassword']
    assert User.objects.get(id=data['id']).check_password(password)


def test_explicit_password_is_validated(admin, client_for):
    client = client_for(admin)
    r = client.post(reverse('users'), {'email': 'a@hospital.test', 'role': 'nurse', 'password': '12345678'},
                    format='json')
    assert r.status_code == 400
    r = client.post(reverse('users'), {'email': 'a@hospital.test', 'role': 'nurse', 'password': 'Quiet-Harbor-19'},
                    format='json')
    assert r.status_code == 201
    assert 'temporaryPassword' not in r.data['data']


def test_duplicate_email_conflicts(admin, client_for):
    r = client_for(admin).post(reverse('users'), {'email': admin.email.upper(), 'role': 'nurse'}, format='json')
    assert r.status_code == 409


def test_non_admin_cannot_manage_users(make_user, client_for):
    client = client_for(make_user(User.ROLE_PHYSICIAN))
    assert client.get(reverse('users')).status_code == 403
    assert client.post(reverse('users'), {'email': 'x@hospital.test', 'role': 'admin'}, format='json').status_code == 403


def test_list_filters(admin, make_user, client_for):
    make_user(User.ROLE_NURSE, last_name='Zimmer')
    make_user(User.ROLE_NURSE, is_active=False)
    client = client_for(admin)
    r = client.get(reverse('users'), {'role': 'nurse'})
    assert r.data['pagination']['total'] == 2
    r = client.get(reverse('users'), {'role': 'nurse', 'isActive': 'true'})
    assert [u['lastName'] for u in r.data['data']] == ['Zimmer']


def test_admin_cannot_demote_or_deactivate_self(admin, client_for):
    client = client_for(admin)
    url = reverse('user_detail', args=[admin.id])
    assert client.patch(url, {'role': 'nurse'}, format='json').status_code == 403
    assert client.delete(url).status_code == 403


def test_deactivate_user(admin, make_user, client_for):
    nurse = make_user(User.ROLE_NURSE)
    r = client_for(admin).delete(reverse('user_detail', args=[nurse.id]))
    assert r.status_code == 200
    assert r.data['data']['isActive'] is False
    nurse.refresh_from_db()
    assert not nurse.is_active


def test_providers_are_active_clinicians(make_user, client_for):
    doc = make_user(User.ROLE_PHYSICIAN)
    make_user(User.ROLE_PHYSICIAN, is_active=False)
    make_user(User.ROLE_BILLING)
    reception = make_user(User.ROLE_RECEPTIONIST)
    data = client_for(reception).get(reverse('providers')).data['data']
    assert [u['id'] for u in data] == [doc.id]


def test_similar_emails(make_user):
    make_user(email='sarah.johnson@hospital.test')
    make_user(email='sjohnson@clinic.test')
    assert similar_emails('sarah.johnson@wrong.test') == ['sarah.johnson@hospital.test']
    assert 'sjohnson@clinic.test' in similar_emails('someone@clinic.test')
