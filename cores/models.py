from django.db import models


class AuditLog(models.Model):
    ACTION_CHOICES = [
        ('CREATE', 'Create'),
        ('UPDATE', 'Update'),
        ('DELETE', 'Delete'),
        ('LOGIN', 'Login'),
        ('LOGOUT', 'Logout'),
    ]

    # Admin identities come from configuration, not a user table.
    actor = models.CharField(max_length=150, blank=True)
    action = models.CharField(max_length=20, choices=ACTION_CHOICES)
    target_model = models.CharField(max_length=50, help_text="e.g., Question, Session")
    target_object_id = models.CharField(max_length=100, blank=True, null=True)
    details = models.TextField(blank=True, help_text="Description of changes")
    ip_address = models.GenericIPAddressField(null=True, blank=True)
    timestamp = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ['-timestamp', '-id']

    def __str__(self):
        return f"{self.actor} - {self.action} - {self.timestamp}"

    @classmethod
    def record(cls, request, action, target_model, target_object_id=None, details=""):
        user = getattr(request, 'user', None)
        return cls.objects.create(
            actor=getattr(user, 'username', '') or '',
            action=action,
            target_model=target_model,
            target_object_id=None if target_object_id is None else str(target_object_id),
            details=details,
            ip_address=request.META.get('REMOTE_ADDR') or None,
        )
