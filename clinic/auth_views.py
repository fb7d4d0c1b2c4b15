"""
Authentication endpoints.

Login returns a short-lived access token and a refresh token. The
refresh token is also set as an httpOnly cookie so the browser client
can renew its session without keeping the token in script-accessible
storage. Logout blacklists the refresh token. A forgotten password is
reset through an emailed one-time link.
"""
from __future__ import annotations

import logging

from django.conf import settings
from django.db.models import Q
from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.tokens import RefreshToken

from clinic.exceptions import ForbiddenError, UnauthorizedError, ValidationError
from clinic.models import User
from clinic.serializers.auth import (
    ChangePasswordSerializer,
    LoginSerializer,
    PasswordResetRequestSerializer,
    PasswordResetSerializer,
    PasswordResetVerifySerializer,
    RefreshSerializer,
)
from clinic.services import password_reset
from clinic.services.audit import log_auth_event
from clinic.services.users import change_password, serialize_user

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = 'Invalid credentials'


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        settings.REFRESH_COOKIE_NAME,
        token,
        max_age=int(settings.SIMPLE_JWT['REFRESH_TOKEN_LIFETIME'].total_seconds()),
        httponly=True,
        secure=settings.REFRESH_COOKIE_SECURE,
        samesite='Lax',
        path='/api/v1/auth',
    )


def _refresh_token_from(request) -> str:
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    return vd.get('refreshToken') or vd.get('refresh') or request.COOKIES.get(settings.REFRESH_COOKIE_NAME, '')


# ---------------------------------------------------------------------
# Login / refresh / logout
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Accepts ``email`` (or ``username``) and ``password``.

    Unknown users, wrong passwords and deactivated accounts all get the
    same 401 so the response does not reveal which accounts exist.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    identifier = s.validated_data['identifier']
    password = s.validated_data['password']

    user = User.objects.filter(Q(email__iexact=identifier) | Q(username=identifier)).first()
    if user is None or not user.check_password(password) or not user.is_active:
        reason = 'inactive' if user is not None and user.is_active is False else 'bad credentials'
        log_auth_event(action='LOGIN', user=None, email=identifier, success=False,
                       error_message=reason, request=request)
        logger.info('Failed login for %s (%s)', identifier, reason)
        raise UnauthorizedError(INVALID_CREDENTIALS)

    user.last_login = timezone.now()
    user.save(update_fields=['last_login'])
    log_auth_event(action='LOGIN', user=user, request=request)

    refresh = RefreshToken.for_user(user)
    response = Response({
        'ok': True,
        'data': {
            'accessToken': str(refresh.access_token),
            'refreshToken': str(refresh),
            'user': serialize_user(user),
        },
    }, status=200)
    _set_refresh_cookie(response, str(refresh))
    return response

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    token = _refresh_token_from(request)
    if not token:
        raise UnauthorizedError('Refresh token required')
    try:
        refresh = RefreshToken(token)
    except TokenError:
        raise UnauthorizedError('Invalid or expired refresh token')

    user_id = refresh.get(settings.SIMPLE_JWT.get('USER_ID_CLAIM', 'user_id'))
    user = User.objects.filter(id=user_id).first()
    if user is None or not user.is_active:
        raise UnauthorizedError('User not found or inactive')

    return Response({'ok': True, 'data': {'accessToken': str(refresh.access_token)}})

refresh_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    token = _refresh_token_from(request)
    if token:
        try:
            refresh = RefreshToken(token)
        except TokenError:
            refresh = None
            # already blacklisted or expired; the session is over either way
            logger.debug('Logout with unusable refresh token for user %s', request.user.id)
        if refresh is not None:
            owner = refresh.get(settings.SIMPLE_JWT.get('USER_ID_CLAIM', 'user_id'))
            if str(owner) != str(request.user.id):
                raise ForbiddenError('Refresh token belongs to another user')
            refresh.blacklist()
    log_auth_event(action='LOGOUT', user=request.user, request=request)
    response = Response({'ok': True, 'data': {'message': 'Logged out'}})
    response.delete_cookie(settings.REFRESH_COOKIE_NAME, path='/api/v1/auth')
    return response


# ---------------------------------------------------------------------
# Current user
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'data': serialize_user(request.user)})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data
    if vd['currentPassword'] == vd['newPassword']:
        raise ValidationError('New password must differ from the current password',
                              {'newPassword': ['Must differ from the current password']})
    change_password(request.user, vd['currentPassword'], vd['newPassword'])
    return Response({'ok': True, 'data': {'message': 'Password updated'}})


# ---------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_request_view(request):
    """Always 200 so the response does not reveal which emails have accounts."""
    s = PasswordResetRequestSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    password_reset.request_password_reset(s.validated_data['email'])
    return Response({'ok': True, 'data': {
        'message': 'If an account with that email exists, a password reset link has been sent.',
    }})

password_reset_request_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def password_reset_view(request):
    s = PasswordResetSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = password_reset.reset_password_with_token(s.validated_data['token'], s.validated_data['password'])
    log_auth_event(action='UPDATE', user=user, email=user.email, request=request)
    return Response({'ok': True, 'data': {'message': 'Password reset. You can now log in with your new password.'}})

password_reset_view.cls.throttle_scope = 'login'


@api_view(['GET'])
@permission_classes([AllowAny])
def password_reset_verify_view(request):
    s = PasswordResetVerifySerializer(data=request.query_params)
    s.is_valid(raise_exception=True)
    if password_reset.user_for_token(s.validated_data['token']) is None:
        raise ValidationError(password_reset.INVALID_TOKEN, {'token': [password_reset.INVALID_TOKEN]})
    return Response({'ok': True, 'data': {'valid': True}})
