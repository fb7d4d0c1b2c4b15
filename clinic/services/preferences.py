from __future__ import annotations

import json

from django.utils import timezone

from clinic.models import User
from clinic.services.users import serialize_user


def get_preferences(user: User) -> dict | None:
    return user.preferences


def save_preferences(user: User, preferences: dict) -> dict:
    """Replace the stored preferences with ``preferences``."""
    # nested serializer output may hold OrderedDicts
    user.preferences = json.loads(json.dumps(preferences))
    user.save(update_fields=['preferences'])
    return user.preferences


def clear_preferences(user: User) -> None:
    user.preferences = None
    user.save(update_fields=['preferences'])


def export_user_data(user: User) -> dict:
    data = serialize_user(user)
    data['preferences'] = user.preferences
    return {'user': data, 'exportedAt': timezone.now().isoformat()}
