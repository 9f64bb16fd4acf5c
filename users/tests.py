import threading

from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from cores.models import AuditLog
from .apps import get_session_store
from .backends import AdminCredentialsBackend
from .sessions import SessionStore


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now


class SessionStoreTests(SimpleTestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.store = SessionStore(ttl_seconds=60, clock=self.clock)

    def test_token_is_valid_right_after_issue(self):
        session = self.store.issue('admin')
        self.assertEqual(self.store.validate(session.token), 'admin')
        self.assertEqual(session.expires_at, self.clock.now + 60)

    def test_tokens_are_random_and_unique(self):
        tokens = {self.store.issue('admin').token for _ in range(50)}
        self.assertEqual(len(tokens), 50)
        self.assertTrue(all(len(token) == 48 for token in tokens))

    def test_token_expires_at_ttl_boundary(self):
        session = self.store.issue('admin')
        self.clock.now += 59
        self.assertEqual(self.store.validate(session.token), 'admin')
        self.clock.now += 1
        self.assertIsNone(self.store.validate(session.token))

    def test_expired_token_never_comes_back(self):
        session = self.store.issue('admin')
        self.clock.now += 61
        self.assertIsNone(self.store.validate(session.token))
        self.clock.now -= 61
        self.assertIsNone(self.store.validate(session.token))

    def test_validate_sweeps_every_expired_session(self):
        old = [self.store.issue('admin') for _ in range(3)]
        self.clock.now += 30
        fresh = self.store.issue('admin')
        self.clock.now += 31
        self.assertEqual(len(self.store), 4)

        self.assertEqual(self.store.validate(fresh.token), 'admin')
        self.assertEqual(len(self.store), 1)
        for session in old:
            self.assertIsNone(self.store.validate(session.token))

    def test_revoke(self):
        session = self.store.issue('admin')
        self.store.revoke(session.token)
        self.assertIsNone(self.store.validate(session.token))
        # revoking twice is harmless
        self.store.revoke(session.token)

    def test_unknown_or_blank_token(self):
        self.assertIsNone(self.store.validate('nope'))
        self.assertIsNone(self.store.validate(''))
        self.assertIsNone(self.store.validate(None))

    def test_tokenless_validate_still_sweeps(self):
        self.store.issue('admin')
        self.clock.now += 61
        self.assertIsNone(self.store.validate(''))
        self.assertEqual(len(self.store), 0)

    def test_concurrent_issue_and_validate(self):
        workers = 8
        per_worker = 25
        barrier = threading.Barrier(workers)
        errors = []
        old_tokens = []
        new_tokens = []
        results_lock = threading.Lock()

        def run(target):
            try:
                barrier.wait()
                target()
            except Exception as exc:  # collected and asserted on below
                errors.append(exc)

        def issue_old():
            issued = [self.store.issue('admin').token for _ in range(per_worker)]
            with results_lock:
                old_tokens.extend(issued)

        def issue_new_and_validate():
            for _ in range(per_worker):
                token = self.store.issue('admin').token
                if self.store.validate(token) != 'admin':
                    errors.append(AssertionError(f"fresh token {token} did not validate"))
                with results_lock:
                    new_tokens.append(token)
                for stale in old_tokens[:5]:
                    if self.store.validate(stale) is not None:
                        errors.append(AssertionError("expired token validated"))

        def start(target):
            threads = [threading.Thread(target=run, args=(target,)) for _ in range(workers)]
            for thread in threads:
                thread.start()
            for thread in threads:
                thread.join()

        start(issue_old)
        self.assertEqual(len(self.store), workers * per_worker)

        # everything issued so far is now past its TTL
        self.clock.now += 61
        start(issue_new_and_validate)

        self.assertEqual(errors, [])
        self.assertEqual(len(set(new_tokens)), workers * per_worker)
        for token in new_tokens:
            self.assertEqual(self.store.validate(token), 'admin')
        for token in old_tokens:
            self.assertIsNone(self.store.validate(token))
        self.assertEqual(len(self.store), workers * per_worker)


@override_settings(ADMIN_USERNAME='admin', ADMIN_PASSWORD='s3cret')
class AdminCredentialsBackendTests(SimpleTestCase):
    def test_accepts_configured_account(self):
        self.assertEqual(AdminCredentialsBackend().authenticate(None, username=' admin ', password='s3cret'), 'admin')

    def test_rejects_wrong_username_or_password(self):
        backend = AdminCredentialsBackend()
        self.assertIsNone(backend.authenticate(None, username='admin', password='wrong'))
        self.assertIsNone(backend.authenticate(None, username='root', password='s3cret'))
        self.assertIsNone(backend.authenticate(None))


@override_settings(ADMIN_USERNAME='admin', ADMIN_PASSWORD='s3cret')
class AuthApiTests(APITestCase):
    def login(self, username='admin', password='s3cret'):
        return self.client.post('/api/auth/login/', {'username': username, 'password': password}, format='json')

    def test_health_needs_no_token(self):
        response = self.client.get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data, {"ok": True, "service": "admin-portal"})

    def test_login_issues_working_token(self):
        response = self.login()
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['ok'])
        token = response.data['token']
        self.assertEqual(get_session_store().validate(token), 'admin')
        self.assertGreater(response.data['expiresAt'], 0)
        self.assertTrue(AuditLog.objects.filter(action='LOGIN', actor='admin').exists())

        self.client.credentials(HTTP_X_ADMIN_TOKEN=token)
        self.assertEqual(self.client.get('/api/config/').status_code, status.HTTP_200_OK)

    def test_wrong_credentials_are_rejected(self):
        for username, password in [('admin', 'nope'), ('other', 's3cret'), ('', '')]:
            response = self.login(username, password)
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
            self.assertEqual(response.data, {"ok": False, "error": "Invalid username or password."})

    def test_missing_and_bogus_tokens_get_the_same_401(self):
        missing = self.client.get('/api/dashboard/')
        self.client.credentials(HTTP_X_ADMIN_TOKEN='not-a-token')
        bogus = self.client.get('/api/dashboard/')

        for response in (missing, bogus):
            self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
            self.assertEqual(response.data, {"ok": False, "error": "Unauthorized"})

    def test_logout_revokes_token(self):
        token = self.login().data['token']
        self.client.credentials(HTTP_X_ADMIN_TOKEN=token)

        response = self.client.post('/api/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNone(get_session_store().validate(token))
        self.assertEqual(self.client.get('/api/config/').status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_requires_token(self):
        self.assertEqual(self.client.post('/api/auth/logout/').status_code, status.HTTP_401_UNAUTHORIZED)
