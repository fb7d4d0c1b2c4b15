"""
Helpers shared by the patient chart services (medications, vitals, lab
results, clinical and surgical notes, imaging, consents, nutrition).

Each chart service maps camelCase input keys to model fields through a
``FIELD_MAP`` and scopes every lookup to ``(id, patient)`` so a record
id from another patient's chart is a 404.
"""
from __future__ import annotations

from clinic.exceptions import NotFoundError
from clinic.models import User

CHART_PAGE_DEFAULT = 50


def model_fields(data: dict, field_map: dict, *, nullable=(), empty: dict | None = None) -> dict:
    """Translate validated input into model field values.

    Keys missing from ``data`` are left alone so partial updates work.
    An explicit ``None`` clears the field: nullable fields keep ``None``,
    others fall back to their ``empty`` value (``''`` unless given).
    """
    empty = empty or {}
    fields = {}
    for key, model_field in field_map.items():
        if key not in data:
            continue
        value = data[key]
        if value is None and model_field not in nullable:
            value = empty.get(model_field, '')
        fields[model_field] = value
    return fields


def lookup_user(user_id, label: str) -> User | None:
    if not user_id:
        return None
    user = User.objects.filter(id=user_id).first()
    if user is None:
        raise NotFoundError(label, user_id)
    return user


def user_name(user: User | None) -> str | None:
    return user.display_name if user is not None else None


def iso(value) -> str | None:
    return value.isoformat() if value else None


def get_record(qs, record_id, label: str):
    """Fetch one record from a patient-scoped queryset or raise 404."""
    obj = qs.filter(id=record_id).first()
    if obj is None:
        raise NotFoundError(label, record_id)
    return obj
