# exam_portal/exams/models.py
from django.db import models


class Question(models.Model):
    # Business key, assigned once at creation and carried across every edit.
    external_id = models.CharField(max_length=64, unique=True, db_index=True)
    text = models.TextField()
    # Usually a downscaled data URL produced by the admin client
    image = models.TextField(null=True, blank=True)

    # Soft delete: questions are never removed, only hidden.
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ['created_at', 'id']

    def __str__(self):
        return f"{self.text[:50]}..."


class Option(models.Model):
    question = models.ForeignKey(Question, related_name='options', on_delete=models.CASCADE)
    external_id = models.CharField(max_length=80)
    text = models.TextField()
    is_correct = models.BooleanField(default=False)
    position = models.PositiveIntegerField()

    class Meta:
        ordering = ['position']
        unique_together = ('question', 'position')

    def __str__(self):
        return self.text
