from io import StringIO

import pytest
from django.core.management import call_command
from django.core.management.base import CommandError

from clinic.models import Hub, Invoice, Patient, User
from clinic.services.demo import DEMO_USERS
from clinic.services.hubs import DEFAULT_HUBS

pytestmark = pytest.mark.django_db


def run(*args, **kwargs):
    out = StringIO()
    call_command(*args, stdout=out, stderr=StringIO(), **kwargs)
    return out.getvalue()


def test_seed_hubs():
    assert f'Hubs seeded: {len(DEFAULT_HUBS)} created.' in run('seed_hubs')
    assert 'Hubs seeded: 0 created.' in run('seed_hubs')
    assert 'Hubs seeded: 0 created.' in run('seed_hubs', '--if-empty')


def test_ensure_demo_users_is_idempotent():
    out = run('ensure_demo_users')
    assert out.count('created: ') == len(DEMO_USERS)
    admin = User.objects.get(email='admin@hospital2035.com')
    assert admin.role == User.ROLE_ADMIN
    assert admin.check_password('Admin123!')

    admin.set_password('Something-Else-1')
    admin.is_active = False
    admin.save()
    out = run('ensure_demo_users')
    assert out.count('reset: ') == len(DEMO_USERS)
    admin.refresh_from_db()
    assert admin.is_active
    assert admin.check_password('Admin123!')
    assert User.objects.count() == len(DEMO_USERS)


def test_populate_data():
    out = run('populate_data', '--patients', '3', '--seed', '1')
    assert 'patients: 3' in out
    assert 'Demo data created.' in out
    assert Patient.objects.count() == 3
    assert Hub.objects.count() == len(DEFAULT_HUBS)
    assert all(p.appointments.exists() and p.vaccinations.exists() for p in Patient.objects.all())
    assert all(p.medications.exists() and p.vitals.exists() for p in Patient.objects.all())
    for invoice in Invoice.objects.all():
        assert invoice.balance_amount in (0, invoice.total_amount)

    out = run('populate_data', '--patients', '3')
    assert 'use --force' in out
    assert Patient.objects.count() == 3

    run('populate_data', '--patients', '2', '--force')
    assert Patient.objects.count() == 5


def test_populate_data_rejects_zero_patients():
    with pytest.raises(CommandError):
        run('populate_data', '--patients', '0')


def test_reset_password(make_user):
    user = make_user(User.ROLE_NURSE, email='nurse.joy@hospital.test')
    out = run('reset_password', 'Nurse.Joy@hospital.test', 'Fresh-Lantern-42')
    assert 'Password reset for nurse.joy@hospital.test (nurse)' in out
    user.refresh_from_db()
    assert user.check_password('Fresh-Lantern-42')

    with pytest.raises(CommandError, match='at least 8'):
        run('reset_password', 'nurse.joy@hospital.test', 'short')
    with pytest.raises(CommandError, match='Password does not meet requirements'):
        run('reset_password', 'nurse.joy@hospital.test', '12345678')


def test_reset_password_unknown_user_lists_similar(make_user):
    make_user(email='nurse.joy@hospital.test')
    err = StringIO()
    with pytest.raises(CommandError, match='User not found'):
        call_command('reset_password', 'nurse.joy@clinic.test', 'Fresh-Lantern-42', stdout=StringIO(), stderr=err)
    assert 'nurse.joy@hospital.test' in err.getvalue()


def test_check_user(make_user):
    make_user(User.ROLE_BILLING, email='brian@hospital.test', first_name='Brian', last_name='Lee')
    out = run('check_user', 'BRIAN@hospital.test', '--password', 'Str0ng-Passw0rd!')
    assert 'role:       billing' in out
    assert 'name:       Brian Lee' in out
    assert 'last login: never' in out
    assert 'Password matches.' in out
    assert 'Password does NOT match.' in run('check_user', 'brian@hospital.test', '--password', 'nope')
    with pytest.raises(CommandError):
        run('check_user', 'nobody@nowhere.test')


def test_list_and_remove_hub(make_patient):
    assert 'No hubs found' in run('list_hubs')
    run('seed_hubs')
    hub = Hub.objects.get(id='cardiology')
    make_patient(hub=hub)
    out = run('list_hubs')
    assert f'{len(DEFAULT_HUBS)} hub(s).' in out
    assert 'patients=1' in out

    with pytest.raises(CommandError, match='--force'):
        run('remove_hub', 'cardiology')
    assert "Hub 'cardiology' removed." in run('remove_hub', 'cardiology', '--force')
    with pytest.raises(CommandError, match='not found'):
        run('remove_hub', 'cardiology')


def test_check_patients(make_patient):
    make_patient(name='Ann Active', risk_score=80)
    make_patient(name='Old Record', is_active=False)
    out = run('check_patients')
    assert 'Patients: 2 total, 1 active, 1 archived' in out
    assert 'Risk: low=0, medium=0, high=1' in out
    assert '1 active patient(s) without a hub' in out
    assert 'Ann Active' in out
    assert 'Old Record' not in out
    assert 'Check complete.' in out
