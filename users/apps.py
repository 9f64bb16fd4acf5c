from django.apps import AppConfig
from django.conf import settings


class UsersConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'users'

    def ready(self):
        from .sessions import SessionStore

        # One table per process, handed to the authentication class and views.
        self.session_store = SessionStore(ttl_seconds=settings.ADMIN_TOKEN_TTL_SECONDS)


def get_session_store():
    from django.apps import apps

    return apps.get_app_config('users').session_store
