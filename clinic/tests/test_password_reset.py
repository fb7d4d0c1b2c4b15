import re

import pytest
from django.urls import reverse
from rest_framework.test import APIClient

from clinic.models import AuditLog, User
from clinic.services.password_reset import make_reset_token

from .conftest import PASSWORD

pytestmark = pytest.mark.django_db

NEW_PASSWORD = 'Fresh-Passw0rd!9'


def request_reset(email):
    return APIClient().post(reverse('password_reset_request'), {'email': email}, format='json')


def reset(token, password=NEW_PASSWORD):
    return APIClient().post(reverse('password_reset'), {'token': token, 'password': password}, format='json')


def login(email, password):
    return APIClient().post(reverse('login_view'), {'email': email, 'password': password}, format='json')


def test_reset_by_emailed_link(make_user, mailoutbox, settings):
    settings.FRONTEND_URL = 'https://dash.hospital.test/'
    user = make_user(email='house@hospital.test')
    r = request_reset('House@Hospital.test')
    assert r.status_code == 200
    assert len(mailoutbox) == 1
    mail = mailoutbox[0]
    assert mail.to == ['house@hospital.test']
    assert 'https://dash.hospital.test/reset-password?token=' in mail.body
    token = re.search(r'token=(\S+)', mail.body).group(1)

    r = APIClient().get(reverse('password_reset_verify'), {'token': token})
    assert r.status_code == 200
    assert r.data['data']['valid'] is True

    assert reset(token).status_code == 200
    assert login(user.email, PASSWORD).status_code == 401
    assert login(user.email, NEW_PASSWORD).status_code == 200
    assert AuditLog.objects.filter(action='UPDATE', resource_type='Auth', user=user).exists()


def test_token_is_single_use(make_user):
    user = make_user()
    token = make_reset_token(user)
    assert reset(token).status_code == 200
    r = reset(token, 'Another-Passw0rd!7')
    assert r.status_code == 401
    assert r.data['error']['code'] == 'UNAUTHORIZED'
    r = APIClient().get(reverse('password_reset_verify'), {'token': token})
    assert r.status_code == 400


def test_reset_ends_existing_sessions(make_user):
    user = make_user()
    refresh = login(user.email, PASSWORD).data['data']['refreshToken']
    assert reset(make_reset_token(user)).status_code == 200
    r = APIClient().post(reverse('refresh_view'), {'refreshToken': refresh}, format='json')
    assert r.status_code == 401


def test_unknown_and_inactive_accounts_get_same_answer(make_user, mailoutbox):
    make_user(email='gone@hospital.test', is_active=False)
    known = request_reset('gone@hospital.test')
    unknown = request_reset('nobody@hospital.test')
    assert known.status_code == unknown.status_code == 200
    assert known.data == unknown.data
    assert mailoutbox == []


@pytest.mark.parametrize('token', ['', 'garbage', 'MQ.not-a-token', '!!.abc'])
def test_bad_tokens_rejected(make_user, token):
    make_user()
    r = reset(token)
    assert r.status_code in (400, 401)
    assert r.data['ok'] is False


def test_weak_new_password_rejected(make_user):
    user = make_user()
    r = reset(make_reset_token(user), 'password123')
    assert r.status_code == 400
    assert 'password' in r.data['error']['errors']
    user.refresh_from_db()
    assert user.check_password(PASSWORD)


def test_inactive_user_token_rejected(make_user):
    user = make_user(role=User.ROLE_NURSE)
    token = make_reset_token(user)
    user.is_active = False
    user.save(update_fields=['is_active'])
    assert reset(token).status_code == 401
