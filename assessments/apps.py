from django.apps import AppConfig


class AssessmentsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'assessments'

    def ready(self):
        from .dashboard import DashboardCache

        self.dashboard_cache = DashboardCache()


def get_dashboard_cache():
    from django.apps import apps

    return apps.get_app_config('assessments').dashboard_cache
