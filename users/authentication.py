# users/authentication.py
from rest_framework import authentication, exceptions

from .apps import get_session_store

TOKEN_HEADER = 'HTTP_X_ADMIN_TOKEN'


class AdminUser:
    """What request.user is for a request carrying a live admin token."""
    is_authenticated = True
    is_staff = True

    def __init__(self, username):
        self.username = username

    def __str__(self):
        return self.username


def get_request_token(request):
    return str(request.META.get(TOKEN_HEADER, '')).strip()


class AdminTokenAuthentication(authentication.BaseAuthentication):
    """
    Resolves the X-Admin-Token header against the session store.

    Every failure (no header, unknown token, expired token) reads the same
    to the client: a 401 with "Unauthorized".
    """

    def authenticate(self, request):
        token = get_request_token(request)
        identity = get_session_store().validate(token)
        if identity is None:
            raise exceptions.AuthenticationFailed("Unauthorized")
        return (AdminUser(identity), token)

    def authenticate_header(self, request):
        return 'X-Admin-Token'
