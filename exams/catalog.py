# exam_portal/exams/catalog.py
"""
Question bank operations.

Every write goes through the same gate order: edit lock first, then the
record lookup, then payload validation, and only then the database write.
Question numbers are never stored; list_questions() derives them from the
creation order of the currently active questions.
"""
import logging
import secrets
import time

from django.conf import settings
from django.db import transaction
from rest_framework.exceptions import NotFound, ValidationError

from cores.exceptions import QuestionsLocked, record_source
from .models import Question, Option

logger = logging.getLogger(__name__)


def ensure_editable():
    if settings.EXAM_EDIT_LOCK:
        raise QuestionsLocked()


def new_external_id():
    return f"q-{int(time.time() * 1000)}-{secrets.token_hex(3)}"


def option_external_id(question_external_id, position):
    return f"{question_external_id}-opt-{position}"


def _option_text(item):
    if isinstance(item, str):
        return item.strip()
    if isinstance(item, dict):
        return str(item.get('text') or '').strip()
    return ''


def _as_index(value):
    # bools are ints in Python but never a valid choice from the form
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def normalize_question_payload(payload, existing_external_id=None):
    """
    Validate a question draft and return the fields to store.

    Raises ValidationError on the first problem found. Nothing is written here.
    """
    payload = payload if isinstance(payload, dict) else {}
    question_text = str(payload.get('question') or '').strip()
    image = str(payload.get('image') or '').strip()
    options_input = payload.get('options')
    if not isinstance(options_input, (list, tuple)):
        options_input = []

    option_texts = [text for text in (_option_text(item) for item in options_input) if text]

    if not question_text:
        raise ValidationError("Question text is required.")

    if len(option_texts) < 2:
        raise ValidationError("At least two options are required.")

    correct_index = _as_index(payload.get('correctOptionIndex'))
    if correct_index is None or not 0 <= correct_index < len(option_texts):
        raise ValidationError("Select a valid correct option.")

    external_id = existing_external_id or new_external_id()
    options = [
        {
            'external_id': option_external_id(external_id, index + 1),
            'text': text,
            'is_correct': index == correct_index,
            'position': index + 1,
        }
        for index, text in enumerate(option_texts)
    ]

    return {
        'external_id': external_id,
        'text': question_text,
        'image': image or None,
        'options': options,
    }


def _write_options(question, options):
    question.options.all().delete()
    Option.objects.bulk_create([Option(question=question, **option) for option in options])


def list_questions():
    """Active questions in creation order, numbered from 1."""
    with record_source():
        questions = list(Question.objects.filter(is_active=True).order_by('created_at', 'id').prefetch_related('options'))

    for number, question in enumerate(questions, start=1):
        question.question_number = number
        options = list(question.options.all())
        question.correct_option_index = next(
            (index for index, option in enumerate(options) if option.is_correct), 0
        )
    return questions


def count_active_questions():
    with record_source():
        return Question.objects.filter(is_active=True).count()


def create_question(payload):
    ensure_editable()
    data = normalize_question_payload(payload)
    options = data.pop('options')

    with record_source(), transaction.atomic():
        question = Question.objects.create(**data)
        _write_options(question, options)

    logger.info("Created question %s (pk=%s)", question.external_id, question.pk)
    return question


def _get_active(pk):
    try:
        return Question.objects.get(pk=pk, is_active=True)
    except (Question.DoesNotExist, ValueError, TypeError, OverflowError):
        raise NotFound("Question not found.")


def update_question(pk, payload):
    ensure_editable()
    with record_source():
        question = _get_active(pk)

    data = normalize_question_payload(payload, existing_external_id=question.external_id)

    with record_source(), transaction.atomic():
        question.text = data['text']
        question.image = data['image']
        question.save(update_fields=['text', 'image', 'updated_at'])
        _write_options(question, data['options'])

    logger.info("Updated question %s (pk=%s)", question.external_id, question.pk)
    return question


def find_active_question(key):
    """Look up by storage pk first, then by the business external_id."""
    key = str(key or '').strip()
    if not key:
        return None
    active = Question.objects.filter(is_active=True)
    if key.isascii() and key.isdigit() and len(key) <= 18:
        question = active.filter(pk=int(key)).first()
        if question is not None:
            return question
    return active.filter(external_id=key).first()


def soft_delete_question(key):
    ensure_editable()
    with record_source():
        question = find_active_question(key)
        if question is None:
            raise NotFound("Question not found.")
        question.is_active = False
        question.save(update_fields=['is_active', 'updated_at'])

    logger.info("Soft-deleted question %s (pk=%s)", question.external_id, question.pk)
    return question.pk
