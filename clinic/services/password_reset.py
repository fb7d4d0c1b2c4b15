"""
Password reset by email.

The reset token is ``<uid>.<token>``: the user id in URL-safe base64
and a Django ``PasswordResetTokenGenerator`` token. The token hashes
the password and last login, so it stops working once the password
changes and expires after ``PASSWORD_RESET_TIMEOUT`` seconds. Nothing
is stored server-side.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.contrib.auth.tokens import default_token_generator
from django.core.mail import send_mail
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken

from clinic.exceptions import UnauthorizedError
from clinic.models import User
from clinic.services.users import check_password_strength, find_user_by_email

logger = logging.getLogger(__name__)

INVALID_TOKEN = 'Invalid or expired reset token'


def make_reset_token(user: User) -> str:
    uid = urlsafe_base64_encode(force_bytes(user.pk))
    return f"{uid}.{default_token_generator.make_token(user)}"


def user_for_token(token: str) -> User | None:
    uid, _, raw = (token or '').partition('.')
    if not uid or not raw:
        return None
    try:
        user_id = force_str(urlsafe_base64_decode(uid))
    except (TypeError, ValueError):
        return None
    user = User.objects.filter(pk=user_id, is_active=True).first() if user_id.isdigit() else None
    if user is None or not default_token_generator.check_token(user, raw):
        return None
    return user


def request_password_reset(email: str) -> None:
    """Mail a reset link. Unknown or inactive accounts are ignored silently."""
    user = find_user_by_email(email)
    if user is None or not user.is_active:
        logger.warning('Password reset requested for unknown or inactive account %s', email)
        return
    link = f"{settings.FRONTEND_URL.rstrip('/')}/reset-password?token={make_reset_token(user)}"
    send_mail(
        'Reset your password',
        f"A password reset was requested for your account.\n\n{link}\n\n"
        f"The link expires in {settings.PASSWORD_RESET_TIMEOUT // 60} minutes. "
        "Ignore this email if you did not ask for it.",
        settings.DEFAULT_FROM_EMAIL,
        [user.email],
    )
    logger.info('Password reset email sent to user %s', user.id)


def reset_password_with_token(token: str, new_password: str) -> User:
    user = user_for_token(token)
    if user is None:
        raise UnauthorizedError(INVALID_TOKEN)
    check_password_strength(new_password, user)
    user.set_password(new_password)
    user.save(update_fields=['password'])
    # sessions opened with the old password end here
    for outstanding in OutstandingToken.objects.filter(user=user):
        BlacklistedToken.objects.get_or_create(token=outstanding)
    logger.info('Password reset completed for user %s', user.id)
    return user
