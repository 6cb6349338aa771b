"""
Authentication views.

Login is scoped to an institute and an account type: the same username
and password only work together with the institute id and ``userType``
the account was created with.  Successful logins return a JWT access
token (``token``) and a refresh token; both carry the identity claims
described in ``core.authentication``.
"""
from __future__ import annotations

import logging
import secrets

from django.conf import settings
from django.contrib.auth.models import update_last_login
from django.contrib.auth.tokens import default_token_generator
from django.utils.encoding import force_bytes, force_str
from django.utils.http import urlsafe_base64_decode, urlsafe_base64_encode
from rest_framework.decorators import api_view, permission_classes, throttle_classes
from rest_framework.exceptions import AuthenticationFailed, NotFound, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.throttling import ScopedRateThrottle
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from core.authentication import GUEST_INSTITUTE_ID, GUEST_USER_ID, issue_guest_token, issue_tokens
from core.permissions import IsInstituteMember, role_of
from core.serializers.auth import (
    ChangePasswordSerializer,
    ForgotPasswordSerializer,
    GuestLoginSerializer,
    LoginSerializer,
    LogoutSerializer,
    ResetPasswordSerializer,
)
from core.services.audit import log_action

from .models import Hall, Institute, Role, User

logger = logging.getLogger(__name__)

FORGOT_PASSWORD_MESSAGE = 'If the email exists, a reset link has been sent'


def user_payload(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'fullName': user.full_name,
        'userType': user.user_type,
        'instituteId': user.institute_id,
        'email': user.email,
    }


# ---------------------------------------------------------------------
# Login
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    vd = s.validated_data

    if not Institute.objects.filter(institute_id=vd['instituteId']).exists():
        raise NotFound('Institute not found')

    user = User.objects.filter(
        username=vd['username'],
        institute_id=vd['instituteId'],
        user_type=vd['userType'],
        is_active=True,
    ).first()
    if user is None or not user.check_password(vd['password']):
        log_action(user=None, action='login', object_type='user', institute_id=vd['instituteId'],
                   detail={'result': 'fail', 'username': vd['username'], 'ip': request.META.get('REMOTE_ADDR')})
        raise AuthenticationFailed('Invalid credentials')

    update_last_login(None, user)
    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': request.META.get('REMOTE_ADDR')})
    access, refresh = issue_tokens(user)
    return Response({
        'success': True,
        'token': access,
        'refresh': refresh,
        'user': user_payload(user),
    })

# ScopedRateThrottle reads throttle_scope from the wrapped view class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def guest_login_view(request):
    s = GuestLoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username, password = settings.GUEST_USERNAME, settings.GUEST_PASSWORD
    if not (username and password
            and secrets.compare_digest(s.validated_data['username'], username)
            and secrets.compare_digest(s.validated_data['password'], password)):
        raise AuthenticationFailed('Invalid guest credentials')
    return Response({
        'success': True,
        'token': issue_guest_token(),
        'user': {
            'id': GUEST_USER_ID,
            'username': username,
            'fullName': 'Guest User',
            'userType': Role.GUEST.value,
            'instituteId': GUEST_INSTITUTE_ID,
        },
    })

guest_login_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Token verification and refresh
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated])
def verify_view(request):
    claims = request.auth.payload if request.auth is not None else {}
    return Response({
        'valid': True,
        'user': {k: claims.get(k) for k in ('userId', 'username', 'userType', 'instituteId')},
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def refresh_view(request):
    """Issue a fresh token for the caller (accounts must still be active)."""
    if role_of(request.user) == Role.GUEST:
        return Response({'success': True, 'token': issue_guest_token()})
    user = User.objects.filter(pk=request.user.pk, is_active=True).first()
    if user is None:
        raise AuthenticationFailed('User not found or inactive')
    access, refresh = issue_tokens(user)
    return Response({'success': True, 'token': access, 'refresh': refresh})


# ---------------------------------------------------------------------
# Passwords
# ---------------------------------------------------------------------
@api_view(['POST'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def change_password_view(request):
    s = ChangePasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = request.user
    if not user.check_password(s.validated_data['currentPassword']):
        raise AuthenticationFailed('Current password is incorrect')
    user.set_password(s.validated_data['newPassword'])
    user.save(update_fields=['password'])
    log_action(user=user, action='password_changed', object_type='user', object_id=user.id)
    return Response({'success': True, 'message': 'Password changed successfully'})


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def forgot_password_view(request):
    s = ForgotPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    user = User.objects.filter(
        email__iexact=s.validated_data['email'],
        institute_id=s.validated_data['instituteId'],
        is_active=True,
    ).first()
    payload = {'message': FORGOT_PASSWORD_MESSAGE}
    if user is not None:
        log_action(user=user, action='password_reset_requested', object_type='user', object_id=user.id)
        # no mail transport is configured; the token is only handed out when explicitly enabled
        if settings.PASSWORD_RESET_EXPOSE_TOKEN:
            payload['uid'] = urlsafe_base64_encode(force_bytes(user.pk))
            payload['resetToken'] = default_token_generator.make_token(user)
    return Response(payload)

forgot_password_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
@throttle_classes([ScopedRateThrottle])
def reset_password_view(request):
    s = ResetPasswordSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    try:
        pk = force_str(urlsafe_base64_decode(s.validated_data['uid']))
    except (TypeError, ValueError):
        pk = None
    user = User.objects.filter(pk=pk).first() if pk and pk.isdigit() else None
    if user is None or not default_token_generator.check_token(user, s.validated_data['resetToken']):
        raise ValidationError('Invalid or expired reset token')
    user.set_password(s.validated_data['newPassword'])
    user.save(update_fields=['password'])
    log_action(user=user, action='password_reset', object_type='user', object_id=user.id)
    return Response({'success': True, 'message': 'Password reset successfully'})

reset_password_view.cls.throttle_scope = 'login'


# ---------------------------------------------------------------------
# Profile and logout
# ---------------------------------------------------------------------
@api_view(['GET'])
@permission_classes([IsAuthenticated, IsInstituteMember])
def user_info_view(request):
    user = request.user
    data = user_payload(user)
    data.update({
        'phone': user.phone,
        'isActive': user.is_active,
        'lastLogin': user.last_login,
        'assignedHalls': [{'id': h.id, 'name': h.name} for h in Hall.objects.filter(manager=user)],
    })
    return Response(data)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or every outstanding one of the caller."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if role_of(request.user) == Role.GUEST:
        # guest tokens are stateless access tokens
        return Response({'success': True, 'message': 'Logged out successfully', 'blacklisted': 0})
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError as e:
            raise ValidationError(f'Invalid refresh token: {e}')
        if str(token.get(settings.SIMPLE_JWT['USER_ID_CLAIM'])) != str(request.user.pk):
            raise ValidationError('Refresh token belongs to another account')
        token.blacklist()
        count = 1
    else:
        for token in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
    return Response({'success': True, 'message': 'Logged out successfully', 'blacklisted': count})
