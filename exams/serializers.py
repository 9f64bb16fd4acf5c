# exam_portal/exams/serializers.py
from rest_framework import serializers
from .models import Question, Option


class OptionSerializer(serializers.ModelSerializer):
    # The client only ever sees the stable business id of an option
    id = serializers.CharField(source='external_id')
    isCorrect = serializers.BooleanField(source='is_correct')

    class Meta:
        model = Option
        fields = ['id', 'text', 'isCorrect']


class QuestionSerializer(serializers.ModelSerializer):
    """Read shape of a listed question. Expects catalog.list_questions() output."""
    _id = serializers.CharField(source='pk')
    questionNumber = serializers.IntegerField(source='question_number')
    id = serializers.CharField(source='external_id')
    # Map backend 'text' to the client's 'question'
    question = serializers.CharField(source='text')
    options = OptionSerializer(many=True)
    correctOptionIndex = serializers.IntegerField(source='correct_option_index')

    class Meta:
        model = Question
        fields = ['_id', 'questionNumber', 'id', 'question', 'image', 'options', 'correctOptionIndex']
