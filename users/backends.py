# users/backends.py
import hmac

from django.conf import settings


class AdminCredentialsBackend:
    """Checks the single configured admin account."""

    def authenticate(self, request, username=None, password=None, **kwargs):
        username = str(username or "").strip()
        password = str(password or "")
        # compare both parts every time so timing does not hint which one failed
        username_ok = hmac.compare_digest(username.encode(), settings.ADMIN_USERNAME.encode())
        password_ok = hmac.compare_digest(password.encode(), settings.ADMIN_PASSWORD.encode())
        if username_ok and password_ok:
            return username
        return None
