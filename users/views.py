import logging

from rest_framework import exceptions, permissions
from rest_framework.views import APIView
from rest_framework.response import Response

from cores.models import AuditLog
from .apps import get_session_store
from .authentication import AdminUser
from .backends import AdminCredentialsBackend
from .serializers import LoginSerializer

logger = logging.getLogger(__name__)


class LoginView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        identity = AdminCredentialsBackend().authenticate(request, **serializer.validated_data)
        if identity is None:
            logger.warning("Rejected admin login from %s", request.META.get('REMOTE_ADDR'))
            raise exceptions.AuthenticationFailed("Invalid username or password.")

        session = get_session_store().issue(identity)
        request.user = AdminUser(identity)
        AuditLog.record(request, 'LOGIN', 'Session', details=f"Admin {identity} signed in")
        logger.info("Admin %s signed in", identity)

        return Response({
            "ok": True,
            "token": session.token,
            # epoch milliseconds, what the browser client compares against Date.now()
            "expiresAt": int(session.expires_at * 1000),
        })

    def get_authenticate_header(self, request):
        return 'X-Admin-Token'


class LogoutView(APIView):
    def post(self, request):
        get_session_store().revoke(request.auth)
        AuditLog.record(request, 'LOGOUT', 'Session', details=f"Admin {request.user} signed out")
        return Response({"ok": True})
