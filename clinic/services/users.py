from __future__ import annotations

import logging
import secrets

from django.contrib.auth.password_validation import validate_password
from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction
from django.db.models import Count, Q

from clinic.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from clinic.models import Hub, User
from clinic.permissions import PERMISSIONS, PROVIDER_ROLES

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'email': user.email,
        'name': user.display_name,
        'firstName': user.first_name,
        'lastName': user.last_name,
        'role': user.role,
        'phone': user.phone or None,
        'specialty': user.specialty or None,
        'department': user.department or None,
        'hubId': user.hub_id,
        'isActive': user.is_active,
        'lastLogin': user.last_login.isoformat() if user.last_login else None,
        'createdAt': user.date_joined.isoformat() if user.date_joined else None,
    }


def find_user_by_email(email: str) -> User | None:
    return User.objects.filter(email__iexact=(email or '').strip()).first()


def similar_emails(email: str, limit: int = 5) -> list[str]:
    """Emails sharing the local part or domain of ``email``."""
    email = (email or '').strip()
    local, _, domain = email.partition('@')
    q = Q()
    if local:
        q |= Q(email__icontains=local)
    if domain:
        q |= Q(email__icontains=domain)
    if not q:
        return []
    return list(User.objects.filter(q).order_by('email').values_list('email', flat=True)[:limit])


def check_password_strength(password: str, user: User | None = None) -> None:
    try:
        validate_password(password, user=user)
    except DjangoValidationError as e:
        raise ValidationError('Password does not meet requirements', {'password': e.messages})


def get_user(user_id) -> User:
    user = User.objects.select_related('hub').filter(id=user_id).first()
    if user is None:
        raise NotFoundError('User', user_id)
    return user


def list_users(*, search=None, role=None, hub=None, is_active=None):
    qs = User.objects.select_related('hub')
    if search:
        qs = qs.filter(
            Q(first_name__icontains=search) | Q(last_name__icontains=search)
            | Q(email__icontains=search) | Q(username__icontains=search)
        )
    if role:
        qs = qs.filter(role=role)
    if hub:
        qs = qs.filter(hub_id=hub)
    if is_active is not None:
        qs = qs.filter(is_active=is_active)
    return qs.order_by('last_name', 'first_name', 'id')


def list_providers():
    return User.objects.filter(is_active=True, role__in=PROVIDER_ROLES).order_by('last_name', 'first_name')


def _resolve_hub(hub_id) -> Hub | None:
    if not hub_id:
        return None
    hub = Hub.objects.filter(id=hub_id).first()
    if hub is None:
        raise NotFoundError('Hub', hub_id)
    return hub


def create_user(data: dict) -> tuple[User, str | None]:
    """Create a staff account.

    Returns the user and the generated initial password when none was
    supplied, so that an administrator can hand it over.
    """
    email = data['email'].strip().lower()
    if User.objects.filter(email__iexact=email).exists():
        raise ConflictError('A user with this email already exists')
    username = (data.get('username') or email).strip()
    if User.objects.filter(username=username).exists():
        raise ConflictError('A user with this username already exists')

    password = data.get('password')
    generated = None
    if password:
        check_password_strength(password)
    else:
        password = generated = secrets.token_urlsafe(12)

    with transaction.atomic():
        user = User.objects.create_user(
            username=username,
            email=email,
            password=password,
            first_name=data.get('firstName') or '',
            last_name=data.get('lastName') or '',
            role=data['role'],
            phone=data.get('phone') or '',
            specialty=data.get('specialty') or '',
            department=data.get('department') or '',
            hub=_resolve_hub(data.get('hubId')),
        )
    logger.info('User %s created with role %s', user.id, user.role)
    return user, generated


def update_user(current_user: User, user: User, data: dict) -> User:
    if 'role' in data and data['role'] != user.role and user.pk == current_user.pk:
        raise ForbiddenError('You cannot change your own role')
    if 'email' in data and data['email']:
        email = data['email'].strip().lower()
        if User.objects.filter(email__iexact=email).exclude(pk=user.pk).exists():
            raise ConflictError('A user with this email already exists')
        user.email = email
    for key, field in (('firstName', 'first_name'), ('lastName', 'last_name'), ('phone', 'phone'),
                       ('specialty', 'specialty'), ('department', 'department')):
        if key in data:
            setattr(user, field, data[key] or '')
    if data.get('role'):
        user.role = data['role']
    if 'hubId' in data:
        user.hub = _resolve_hub(data['hubId'])
    if 'isActive' in data and data['isActive'] is not None:
        if not data['isActive'] and user.pk == current_user.pk:
            raise ForbiddenError('You cannot deactivate your own account')
        user.is_active = data['isActive']
    if data.get('password'):
        check_password_strength(data['password'], user)
        user.set_password(data['password'])
    user.save()
    return user


def deactivate_user(current_user: User, user: User) -> User:
    if user.pk == current_user.pk:
        raise ForbiddenError('You cannot deactivate your own account')
    user.is_active = False
    user.save(update_fields=['is_active'])
    logger.info('User %s deactivated by %s', user.id, current_user.id)
    return user


def change_password(user: User, current: str, new: str) -> None:
    if not user.check_password(current):
        raise ValidationError('Current password is incorrect', {'currentPassword': ['Incorrect password']})
    check_password_strength(new, user)
    user.set_password(new)
    user.save(update_fields=['password'])


def reset_password(email: str, new_password: str) -> User:
    user = find_user_by_email(email)
    if user is None:
        raise NotFoundError('User', email)
    check_password_strength(new_password, user)
    user.set_password(new_password)
    user.save(update_fields=['password'])
    return user


def role_matrix() -> list[dict]:
    """Each role with the write permissions it holds and its user count.

    Roles are fixed in code, so this is read-only.
    """
    counts = dict(User.objects.filter(is_active=True).values_list('role').order_by().annotate(n=Count('id')))
    return [
        {
            'role': role,
            'label': label,
            'permissions': sorted(name for name, roles in PERMISSIONS.items() if role in roles),
            'activeUsers': counts.get(role, 0),
        }
        for role, label in User.ROLE_CHOICES
    ]
