"""
JWT authentication for the API.

Tokens are read from the ``Authorization: Bearer <token>`` header. Kept
in its own module so that DRF can import the authentication class during
settings initialisation without pulling in any views.
"""
from __future__ import annotations

from rest_framework_simplejwt.authentication import JWTAuthentication


class BearerJWTAuthentication(JWTAuthentication):
    """simplejwt authentication under a stable project import path.

    simplejwt already rejects tokens of deactivated users; the header
    type (``Bearer``) comes from ``SIMPLE_JWT['AUTH_HEADER_TYPES']``.
    """

    www_authenticate_realm = 'dashboard'
