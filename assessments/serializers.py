from rest_framework import serializers
from .models import Attempt


class CountField(serializers.IntegerField):
    """Summary numbers missing on partial submissions read as 0."""

    def get_attribute(self, instance):
        value = super().get_attribute(instance)
        return 0 if value is None else value


class LabelField(serializers.CharField):
    def get_attribute(self, instance):
        value = super().get_attribute(instance)
        return value or "-"


class AttemptResultSerializer(serializers.ModelSerializer):
    """One row of the results table: a candidate's latest attempt."""
    rollNumber = LabelField(source='roll_number')
    status = LabelField()
    submittedAt = serializers.DateTimeField(source='submitted_at')
    timeTakenSeconds = CountField(source='time_taken_seconds')
    totalQuestions = CountField(source='total_questions')
    answered = CountField()
    unanswered = CountField()
    correct = CountField()
    wrong = CountField()
    score = CountField()

    class Meta:
        model = Attempt
        fields = [
            'rollNumber', 'status', 'submittedAt', 'timeTakenSeconds', 'totalQuestions',
            'answered', 'unanswered', 'correct', 'wrong', 'score',
        ]


class LeaderboardEntrySerializer(serializers.Serializer):
    rank = serializers.IntegerField()
    rollNumber = serializers.CharField(source='roll_number')
    score = serializers.IntegerField()
    timeTakenSeconds = serializers.IntegerField(source='time_taken_seconds')
    reason = serializers.CharField()
