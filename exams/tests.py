from datetime import timedelta

from django.test import TestCase, override_settings
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import NotFound, ValidationError
from rest_framework.test import APITestCase

from cores.exceptions import QuestionsLocked
from cores.models import AuditLog
from users.apps import get_session_store
from . import catalog
from .models import Question, Option


def draft(question="What is 2 + 2?", options=("3", "4", "5"), correct=1, **extra):
    payload = {"question": question, "options": list(options), "correctOptionIndex": correct}
    payload.update(extra)
    return payload


class NormalizeQuestionPayloadTests(TestCase):
    def test_builds_ids_and_marks_correct_option(self):
        data = catalog.normalize_question_payload(draft(question="  Capital of France? ", options=["Paris", " Rome "], correct=0))

        self.assertRegex(data['external_id'], r'^q-\d+-[0-9a-f]{6}$')
        self.assertEqual(data['text'], "Capital of France?")
        self.assertIsNone(data['image'])
        self.assertEqual(
            [(o['external_id'], o['text'], o['is_correct'], o['position']) for o in data['options']],
            [
                (f"{data['external_id']}-opt-1", "Paris", True, 1),
                (f"{data['external_id']}-opt-2", "Rome", False, 2),
            ],
        )

    def test_existing_external_id_is_carried_forward(self):
        data = catalog.normalize_question_payload(draft(), existing_external_id='q-1-abcdef')
        self.assertEqual(data['external_id'], 'q-1-abcdef')
        self.assertEqual([o['external_id'] for o in data['options']], ['q-1-abcdef-opt-1', 'q-1-abcdef-opt-2', 'q-1-abcdef-opt-3'])

    def test_accepts_option_objects_and_drops_blank_options(self):
        data = catalog.normalize_question_payload(
            draft(options=[{"text": "A"}, "  ", {"text": ""}, "B"], correct="1")
        )
        self.assertEqual([o['text'] for o in data['options']], ["A", "B"])
        self.assertEqual([o['is_correct'] for o in data['options']], [False, True])

    def test_rejections(self):
        cases = [
            (draft(question="   "), "Question text is required."),
            (draft(options=["only one"], correct=0), "At least two options are required."),
            (draft(options=["a", "  "], correct=0), "At least two options are required."),
            (draft(correct=3), "Select a valid correct option."),
            (draft(correct=-1), "Select a valid correct option."),
            (draft(correct=1.5), "Select a valid correct option."),
            (draft(correct=None), "Select a valid correct option."),
            (draft(correct=True), "Select a valid correct option."),
            (draft(correct="x"), "Select a valid correct option."),
        ]
        for payload, message in cases:
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError) as ctx:
                    catalog.normalize_question_payload(payload)
                self.assertEqual(str(ctx.exception.detail[0]), message)


class CatalogTests(TestCase):
    def make(self, text, age_minutes=0):
        question = catalog.create_question(draft(question=text))
        Question.objects.filter(pk=question.pk).update(created_at=timezone.now() - timedelta(minutes=age_minutes))
        return question

    def test_single_option_draft_writes_nothing(self):
        with self.assertRaises(ValidationError):
            catalog.create_question(draft(options=["lonely"], correct=0))
        self.assertEqual(Question.objects.count(), 0)
        self.assertEqual(Option.objects.count(), 0)

    def test_create_stores_question_and_options(self):
        question = catalog.create_question(draft(image="data:image/png;base64,AAA"))
        self.assertTrue(question.is_active)
        self.assertEqual(question.image, "data:image/png;base64,AAA")
        self.assertEqual(question.options.count(), 3)
        self.assertEqual(question.options.get(is_correct=True).text, "4")

    def test_list_numbers_active_questions_by_creation_order(self):
        third = self.make("third", age_minutes=1)
        first = self.make("first", age_minutes=30)
        second = self.make("second", age_minutes=10)

        listed = catalog.list_questions()
        self.assertEqual([q.pk for q in listed], [first.pk, second.pk, third.pk])
        self.assertEqual([q.question_number for q in listed], [1, 2, 3])
        self.assertEqual([q.correct_option_index for q in listed], [1, 1, 1])

    def test_soft_delete_renumbers_without_touching_other_ids(self):
        first = self.make("first", age_minutes=30)
        second = self.make("second", age_minutes=20)
        third = self.make("third", age_minutes=10)
        before = {
            q.pk: (q.external_id, [o.external_id for o in q.options.all()])
            for q in catalog.list_questions()
        }

        self.assertEqual(catalog.soft_delete_question(second.pk), second.pk)

        listed = catalog.list_questions()
        self.assertEqual([q.pk for q in listed], [first.pk, third.pk])
        self.assertEqual([q.question_number for q in listed], [1, 2])
        for q in listed:
            self.assertEqual((q.external_id, [o.external_id for o in q.options.all()]), before[q.pk])

        # never physically removed
        self.assertFalse(Question.objects.get(pk=second.pk).is_active)
        self.assertEqual(catalog.count_active_questions(), 2)

    def test_soft_delete_falls_back_to_external_id(self):
        question = self.make("by business key")
        self.assertEqual(catalog.soft_delete_question(question.external_id), question.pk)
        with self.assertRaises(NotFound):
            catalog.soft_delete_question(question.external_id)
        with self.assertRaises(NotFound):
            catalog.soft_delete_question(question.pk)
        with self.assertRaises(NotFound):
            catalog.soft_delete_question('')
        # unicode digits are not a storage pk
        for key in ('²', '١٢', '0' * 30, '9' * 30):
            with self.subTest(key=key):
                with self.assertRaises(NotFound):
                    catalog.soft_delete_question(key)

    def test_update_keeps_external_and_option_ids(self):
        question = self.make("old text")
        updated = catalog.update_question(
            question.pk, draft(question="new text", options=["x", "y"], correct=0)
        )

        self.assertEqual(updated.external_id, question.external_id)
        updated.refresh_from_db()
        self.assertEqual(updated.text, "new text")
        self.assertEqual(
            [(o.external_id, o.text, o.is_correct) for o in updated.options.all()],
            [(f"{question.external_id}-opt-1", "x", True), (f"{question.external_id}-opt-2", "y", False)],
        )

    def test_update_validation_failure_leaves_record_untouched(self):
        question = self.make("keep me")
        with self.assertRaises(ValidationError):
            catalog.update_question(question.pk, draft(question=""))
        question.refresh_from_db()
        self.assertEqual(question.text, "keep me")
        self.assertEqual(question.options.count(), 3)

    def test_update_unknown_or_deleted_question(self):
        question = self.make("gone")
        catalog.soft_delete_question(question.pk)
        for key in (question.pk, 999999, 'not-a-pk', '9' * 30):
            with self.subTest(key=key):
                with self.assertRaises(NotFound):
                    catalog.update_question(key, draft())

    @override_settings(EXAM_EDIT_LOCK=True)
    def test_edit_lock_blocks_every_write_before_validation(self):
        question = Question.objects.create(external_id='q-1-aaaaaa', text='locked')

        with self.assertRaises(QuestionsLocked):
            catalog.create_question(draft())
        with self.assertRaises(QuestionsLocked):
            catalog.create_question({})
        with self.assertRaises(QuestionsLocked):
            catalog.update_question(question.pk, draft())
        with self.assertRaises(QuestionsLocked):
            catalog.update_question(123456, {})
        with self.assertRaises(QuestionsLocked):
            catalog.soft_delete_question(question.pk)

        self.assertEqual(Question.objects.count(), 1)
        self.assertTrue(Question.objects.get(pk=question.pk).is_active)


class QuestionApiTests(APITestCase):
    def setUp(self):
        self.token = get_session_store().issue('admin').token
        self.client.credentials(HTTP_X_ADMIN_TOKEN=self.token)

    def test_requires_token(self):
        self.client.credentials()
        self.assertEqual(self.client.get('/api/exam/questions/').status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(self.client.post('/api/exam/questions/', draft(), format='json').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_create_then_list(self):
        response = self.client.post('/api/exam/questions/', draft(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        question = Question.objects.get()
        self.assertEqual(response.data, {"ok": True, "questionId": str(question.pk)})
        self.assertTrue(AuditLog.objects.filter(action='CREATE', target_object_id=str(question.pk), actor='admin').exists())

        response = self.client.get('/api/exam/questions/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total'], 1)
        listed = response.data['questions'][0]
        self.assertEqual(listed['_id'], str(question.pk))
        self.assertEqual(listed['questionNumber'], 1)
        self.assertEqual(listed['id'], question.external_id)
        self.assertEqual(listed['question'], "What is 2 + 2?")
        self.assertIsNone(listed['image'])
        self.assertEqual(listed['correctOptionIndex'], 1)
        self.assertEqual(
            [dict(o) for o in listed['options']],
            [
                {"id": f"{question.external_id}-opt-1", "text": "3", "isCorrect": False},
                {"id": f"{question.external_id}-opt-2", "text": "4", "isCorrect": True},
                {"id": f"{question.external_id}-opt-3", "text": "5", "isCorrect": False},
            ],
        )

    def test_invalid_draft_is_400_with_message(self):
        response = self.client.post('/api/exam/questions/', draft(options=["one"], correct=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data, {"ok": False, "error": "At least two options are required."})
        self.assertFalse(Question.objects.exists())

    def test_update_and_delete(self):
        question = catalog.create_question(draft())

        response = self.client.put(f'/api/exam/questions/{question.pk}/', draft(question="edited"), format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        question.refresh_from_db()
        self.assertEqual(question.text, "edited")

        response = self.client.delete(f'/api/exam/questions/{question.pk}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get('/api/exam/questions/').data['total'], 0)
        self.assertEqual(self.client.get('/api/exam/summary/').data, {"ok": True, "totalActiveQuestions": 0})

        response = self.client.delete(f'/api/exam/questions/{question.pk}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data, {"ok": False, "error": "Question not found."})

        response = self.client.delete('/api/exam/questions/²/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_config_reports_edit_lock(self):
        with override_settings(EXAM_EDIT_LOCK=True):
            self.assertEqual(self.client.get('/api/config/').data, {"ok": True, "examEditLock": True})
        with override_settings(EXAM_EDIT_LOCK=False):
            self.assertEqual(self.client.get('/api/config/').data, {"ok": True, "examEditLock": False})

    @override_settings(EXAM_EDIT_LOCK=True)
    def test_edit_lock_is_423_even_for_valid_payloads(self):
        question = Question.objects.create(external_id='q-1-bbbbbb', text='locked')
        responses = [
            self.client.post('/api/exam/questions/', draft(), format='json'),
            self.client.put(f'/api/exam/questions/{question.pk}/', draft(), format='json'),
            self.client.delete(f'/api/exam/questions/{question.pk}/'),
        ]
        for response in responses:
            self.assertEqual(response.status_code, status.HTTP_423_LOCKED)
            self.assertIn('locked', response.data['error'])

        # reads still work
        self.assertEqual(self.client.get('/api/exam/questions/').status_code, status.HTTP_200_OK)
