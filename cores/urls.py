from django.urls import path
from .views import HealthView, ConfigView, AuditLogListView

urlpatterns = [
    path('health/', HealthView.as_view(), name='health'),
    path('config/', ConfigView.as_view(), name='config'),
    path('audit-logs/', AuditLogListView.as_view(), name='audit-logs'),
]
