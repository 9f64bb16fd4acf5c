# assessments/models.py
from django.db import models


class Attempt(models.Model):
    """
    One exam submission by a candidate. Written by the exam client; this
    service only reads it.
    """
    attempt_id = models.CharField(max_length=64, blank=True)
    roll_number = models.CharField(max_length=64, db_index=True)
    status = models.CharField(max_length=32, blank=True)

    exam_started_at = models.DateTimeField(null=True, blank=True)
    exam_submitted_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    duration_seconds = models.PositiveIntegerField(null=True, blank=True)
    time_taken_seconds = models.PositiveIntegerField(null=True, blank=True)

    # Summary block; any of these may be missing on partial submissions.
    total_questions = models.PositiveIntegerField(null=True, blank=True)
    answered = models.PositiveIntegerField(null=True, blank=True)
    unanswered = models.PositiveIntegerField(null=True, blank=True)
    correct = models.PositiveIntegerField(null=True, blank=True)
    wrong = models.PositiveIntegerField(null=True, blank=True)
    score = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        indexes = [
            models.Index(fields=['roll_number', 'exam_submitted_at'], name='attempt_roll_submitted_idx'),
        ]

    def __str__(self):
        return f"{self.roll_number} - {self.status}"

    @property
    def submitted_at(self):
        return self.exam_submitted_at or self.created_at
