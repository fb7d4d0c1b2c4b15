import itertools
from datetime import date

import pytest
from django.core.cache import cache
from rest_framework.test import APIClient

from clinic.models import Patient, User

PASSWORD = 'Str0ng-Passw0rd!'

_seq = itertools.count(1)


@pytest.fixture(autouse=True)
def clear_cache():
    # throttle counters and cached patient lists live in the default cache
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def media_root(settings, tmp_path):
    settings.MEDIA_ROOT = tmp_path / 'media'
    return settings.MEDIA_ROOT


@pytest.fixture
def make_user(db):
    def _make(role=User.ROLE_PHYSICIAN, **kwargs):
        n = next(_seq)
        kwargs.setdefault('username', f'{role}{n}')
        kwargs.setdefault('email', f'{role}{n}@hospital.test')
        password = kwargs.pop('password', PASSWORD)
        return User.objects.create_user(role=role, password=password, **kwargs)
    return _make


@pytest.fixture
def client_for():
    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client
    return _client


@pytest.fixture
def make_patient(db):
    def _make(**kwargs):
        kwargs.setdefault('name', 'Jane Doe')
        kwargs.setdefault('date_of_birth', date(1980, 1, 1))
        kwargs.setdefault('gender', 'female')
        return Patient.objects.create(**kwargs)
    return _make


@pytest.fixture
def patient(make_patient):
    return make_patient(risk_score=40, condition='Hypertension')
