from rest_framework import serializers
from .models import AuditLog


class AuditLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = AuditLog
        fields = ['id', 'actor', 'action', 'target_model', 'target_object_id', 'ip_address', 'timestamp', 'details']
