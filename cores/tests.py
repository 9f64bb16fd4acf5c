from django.test import SimpleTestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError
from rest_framework.test import APITestCase

from users.apps import get_session_store
from .exceptions import QuestionsLocked, SourceUnavailable, api_exception_handler
from .models import AuditLog


class ExceptionHandlerTests(SimpleTestCase):
    def test_flattens_error_detail(self):
        cases = [
            (ValidationError("Question text is required."), 400, "Question text is required."),
            (ValidationError({"options": ["Too few."]}), 400, "Too few."),
            (QuestionsLocked(), 423, QuestionsLocked.default_detail),
            (SourceUnavailable(), 503, SourceUnavailable.default_detail),
        ]
        for exc, code, message in cases:
            with self.subTest(exc=exc):
                response = api_exception_handler(exc, {})
                self.assertEqual(response.status_code, code)
                self.assertEqual(response.data, {"ok": False, "error": message})

    def test_leaves_unknown_exceptions_alone(self):
        self.assertIsNone(api_exception_handler(RuntimeError("boom"), {}))


class CoreApiTests(APITestCase):
    def setUp(self):
        self.client.credentials(HTTP_X_ADMIN_TOKEN=get_session_store().issue('admin').token)

    def test_unknown_api_route_is_json_404(self):
        response = self.client.get('/api/nope/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.json(), {"ok": False, "error": "API route not found."})

    def test_audit_log_listing_filters_by_action(self):
        AuditLog.objects.create(actor='admin', action='CREATE', target_model='Question', target_object_id='1')
        AuditLog.objects.create(actor='admin', action='DELETE', target_model='Question', target_object_id='1')

        response = self.client.get('/api/audit-logs/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([row['action'] for row in response.data['logs']], ['DELETE', 'CREATE'])

        response = self.client.get('/api/audit-logs/', {'action': 'create'})
        self.assertEqual([row['action'] for row in response.data['logs']], ['CREATE'])

    def test_audit_log_requires_token(self):
        self.client.credentials()
        self.assertEqual(self.client.get('/api/audit-logs/').status_code, status.HTTP_401_UNAUTHORIZED)
