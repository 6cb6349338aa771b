"""
Bearer token authentication for the REST API.

Tokens are JWTs issued by ``djangorestframework-simplejwt``.  Besides the
user id every token carries ``username``, ``userType`` and
``instituteId`` claims so that views can scope queries without another
lookup.  The guest account has no database row; a token whose
``userType`` claim is ``guest`` resolves to an in-memory ``GuestUser``.

Kept separate from the views so that DRF can import the class during
settings initialisation without circular imports.
"""
from __future__ import annotations

from django.conf import settings
from rest_framework_simplejwt.authentication import JWTAuthentication
from rest_framework_simplejwt.tokens import AccessToken, RefreshToken

from .models import Role

GUEST_USER_ID = 'guest-user'
GUEST_INSTITUTE_ID = 'all'


class GuestUser:
    """Read-only identity for the shared guest login."""

    id = None
    pk = None
    user_type = Role.GUEST.value
    institute_id = GUEST_INSTITUTE_ID
    full_name = 'Guest User'
    email = ''
    is_active = True
    is_staff = False
    is_superuser = False
    is_authenticated = True
    is_anonymous = False

    def __init__(self, username: str = 'guest'):
        self.username = username

    @property
    def role(self) -> Role:
        return Role.GUEST

    def __str__(self) -> str:
        return self.username


def _add_identity_claims(token, *, username, user_type, institute_id):
    token['username'] = username
    token['userType'] = user_type
    token['instituteId'] = institute_id
    return token


class HostelRefreshToken(RefreshToken):
    """Refresh token whose access tokens carry the identity claims."""

    @classmethod
    def for_user(cls, user):
        token = super().for_user(user)
        return _add_identity_claims(
            token,
            username=user.username,
            user_type=user.user_type,
            institute_id=user.institute_id,
        )


def issue_tokens(user) -> tuple[str, str]:
    """Return ``(access, refresh)`` for a database user."""
    refresh = HostelRefreshToken.for_user(user)
    return str(refresh.access_token), str(refresh)


def issue_guest_token() -> str:
    token = AccessToken()
    token[settings.SIMPLE_JWT['USER_ID_CLAIM']] = GUEST_USER_ID
    _add_identity_claims(
        token,
        username=settings.GUEST_USERNAME,
        user_type=Role.GUEST.value,
        institute_id=GUEST_INSTITUTE_ID,
    )
    return str(token)


class BearerAuthentication(JWTAuthentication):
    """``Authorization: Bearer <jwt>`` authentication.

    Missing, malformed and expired tokens are rejected by simplejwt with
    401.  Inactive users are rejected as well.
    """

    def get_user(self, validated_token):
        if validated_token.get('userType') == Role.GUEST.value:
            return GuestUser(validated_token.get('username') or 'guest')
        return super().get_user(validated_token)
