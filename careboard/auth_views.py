"""
Authentication views.

Staff log in with username (or e-mail) and password and receive both a
DRF token, used by the board API, and a simplejwt refresh/access pair.
These views live apart from ``careboard.authentication`` so that DRF can
import the authentication class without pulling in view modules.
"""
from __future__ import annotations

import logging

from django.contrib.auth import authenticate
from rest_framework.authtoken.models import Token
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.serializers import TokenRefreshSerializer
from rest_framework_simplejwt.token_blacklist.models import BlacklistedToken, OutstandingToken
from rest_framework_simplejwt.tokens import RefreshToken

from careboard.serializers.auth import LoginSerializer

logger = logging.getLogger(__name__)


@api_view(['POST'])
@permission_classes([AllowAny])
def login_view(request):
    """
    Username/password login.  Accepts ``username`` (or ``account``) and
    ``password``; there is no role bypass.
    """
    s = LoginSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    username = s.validated_data['username']

    user = authenticate(request, username=username, password=s.validated_data['password'])
    if not user:
        logger.info("failed login for %s from %s", username, request.META.get('REMOTE_ADDR'))
        return Response({'ok': False, 'detail': 'Invalid username or password'}, status=400)

    token_obj, _ = Token.objects.get_or_create(user=user)
    refresh = RefreshToken.for_user(user)
    logger.info("login %s", user.username)

    payload: dict[str, object] = {
        'ok': True,
        'token': token_obj.key,
        'jwt_access': str(refresh.access_token),
        'jwt_refresh': str(refresh),
        'role': user.role,
        'user': {
            'id': user.id,
            'username': user.username,
            'identity': user.identity,
            'name': user.display_name,
            'role': user.role,
        },
    }
    if user.organization_id:
        payload['organization'] = {'id': user.organization.id, 'name': user.organization.name}
    return Response(payload, status=200)

# DRF ScopedRateThrottle uses throttle_scope on the view function
login_view.throttle_scope = 'login'


@api_view(['POST'])
@permission_classes([AllowAny])
def jwt_refresh_view(request):
    """Return a new access token from a refresh token."""
    s = TokenRefreshSerializer(data=request.data)
    try:
        s.is_valid(raise_exception=True)
    except TokenError as e:
        return Response({'ok': False, 'detail': str(e)}, status=401)
    data = dict(s.validated_data)
    data['jwt_access'] = data.pop('access')
    if 'refresh' in data:
        data['jwt_refresh'] = data.pop('refresh')
    return Response({'ok': True, **data})


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def jwt_logout_view(request):
    """Blacklist the given refresh token, or all of the user's outstanding ones."""
    refresh = request.data.get('refresh')
    if refresh:
        try:
            RefreshToken(refresh).blacklist()
        except TokenError as e:
            return Response({'ok': False, 'detail': str(e)}, status=400)
        return Response({'ok': True, 'blacklisted': 1})
    count = 0
    for token in OutstandingToken.objects.filter(user=request.user):
        _, created = BlacklistedToken.objects.get_or_create(token=token)
        count += int(created)
    return Response({'ok': True, 'blacklisted': count})
