"""
Authentication views.

Login returns both a DRF token (used by WebSocket clients and scripts)
and a JWT pair.  Refresh runs simplejwt's serializer so that the response
keeps the API envelope; logout blacklists one refresh token or all of
the caller's outstanding ones.  These views are kept apart from
``clinical.authentication`` so that DRF can load its authentication
classes without importing the views.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.exceptions import AuthenticationFailed, ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from clinical.serializers.auth import LoginSerializer, LogoutSerializer, RefreshSerializer
from clinical.services.audit import log_action

from .models import User

logger = logging.getLogger(__name__)


def serialize_user(user: User) -> dict:
    return {
        'id': user.id,
        'username': user.username,
        'name': user.display_name,
        'email': user.email,
        'role': user.role,
        'specialty': user.specialty,
    }


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']
    ip = request.META.get('REMOTE_ADDR')

    user = authenticate(request, username=username, password=s.validated_data['password'])
    if not user:
        log_action(user=None, action='login', object_type='user',
                   detail={'result': 'fail', 'username': username, 'ip': ip})
        logger.warning('Failed login for %s from %s', username, ip)
        raise AuthenticationFailed('Invalid username or password')

    log_action(user=user, action='login', object_type='user', object_id=user.id,
               detail={'result': 'ok', 'ip': ip})
    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    return Response({
        'ok': True,
        'data': {
            'token': token_obj.key,
            'jwt_access': str(refresh.access_token),
            'jwt_refresh': str(refresh),
            'user': serialize_user(user),
        },
    })

# ScopedRateThrottle reads throttle_scope from the wrapped APIView class
login_view.cls.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def refresh_view(request):
    """Exchange a refresh token for a new access token."""
    s = RefreshSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = TokenRefreshSerializer(data={'refresh': s.validated_data['refresh']})
    try:
        refresh.is_valid(raise_exception=True)
    except TokenError as exc:
        raise AuthenticationFailed(str(exc))
    data = {'jwt_access': refresh.validated_data['access']}
    if 'refresh' in refresh.validated_data:
        data['jwt_refresh'] = refresh.validated_data['refresh']
    return Response({'ok': True, 'data': data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """Blacklist the given refresh token, or every outstanding one of the caller."""
    s = LogoutSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    refresh = s.validated_data.get('refresh')
    count = 0
    if refresh:
        try:
            token = RefreshToken(refresh)
        except TokenError as exc:
            raise ValidationError({'refresh': str(exc)})
        # simplejwt may store the claim as a string
        if str(token.get('user_id')) != str(request.user.id):
            raise ValidationError({'refresh': 'token does not belong to the current user'})
        token.blacklist()
        count = 1
    else:
        for outstanding in OutstandingToken.objects.filter(user=request.user):
            _, created = BlacklistedToken.objects.get_or_create(token=outstanding)
            count += int(created)
    Token.objects.filter(user=request.user).delete()
    log_action(user=request.user, action='logout', object_type='user', object_id=request.user.id,
               detail={'blacklisted': count})
    return Response({'ok': True, 'data': {'blacklisted': count}})


@api_view(['GET'])
@permission_classes([IsAuthenticated])
def me_view(request):
    return Response({'ok': True, 'data': serialize_user(request.user)})
