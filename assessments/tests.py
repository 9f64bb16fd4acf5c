from datetime import datetime, timedelta, timezone as dt_timezone
from unittest import mock

from django.core.cache import caches
from django.db import OperationalError
from django.test import SimpleTestCase, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from cores.exceptions import SourceUnavailable
from users.apps import get_session_store
from .aggregation import latest_per_candidate, rank
from .dashboard import DashboardCache, build_dashboard
from .models import Attempt

BASE = datetime(2026, 3, 1, 9, 0, tzinfo=dt_timezone.utc)


def at(minutes):
    return BASE + timedelta(minutes=minutes)


def make_attempt(roll_number, score=None, time_taken=None, submitted=None, created=0, **extra):
    attempt = Attempt.objects.create(
        roll_number=roll_number,
        status=extra.pop('status', 'submitted'),
        score=score,
        time_taken_seconds=time_taken,
        exam_submitted_at=None if submitted is None else at(submitted),
        **extra,
    )
    # created_at is auto_now_add; pin it for deterministic ordering
    Attempt.objects.filter(pk=attempt.pk).update(created_at=at(created))
    attempt.refresh_from_db()
    return attempt


def unsaved(roll_number, score=None, time_taken=None, submitted=0):
    return Attempt(
        roll_number=roll_number,
        score=score,
        time_taken_seconds=time_taken,
        exam_submitted_at=at(submitted),
    )


class LatestPerCandidateTests(TestCase):
    def test_keeps_only_the_latest_submission(self):
        make_attempt("A", score=80, time_taken=300, submitted=10)
        later = make_attempt("A", score=95, time_taken=200, submitted=20)

        self.assertEqual([a.pk for a in latest_per_candidate()], [later.pk])

    def test_one_row_per_candidate_newest_first(self):
        make_attempt("A", submitted=5)
        a_latest = make_attempt("A", submitted=50)
        b_latest = make_attempt("B", submitted=70)
        make_attempt("B", submitted=1)
        c_only = make_attempt("C", submitted=30)

        rows = latest_per_candidate()
        self.assertEqual([a.pk for a in rows], [b_latest.pk, a_latest.pk, c_only.pk])
        self.assertEqual(len({a.roll_number for a in rows}), len(rows))

    def test_created_at_stands_in_for_missing_submission_time(self):
        submitted_early = make_attempt("A", submitted=10, created=0)
        never_submitted = make_attempt("A", submitted=None, created=40)

        self.assertEqual([a.pk for a in latest_per_candidate()], [never_submitted.pk])
        self.assertNotEqual(submitted_early.pk, never_submitted.pk)

    def test_equal_submission_times_resolve_deterministically(self):
        older = make_attempt("A", score=1, submitted=10, created=1)
        newer = make_attempt("A", score=2, submitted=10, created=2)
        self.assertEqual([a.pk for a in latest_per_candidate()], [newer.pk])

        twin = make_attempt("B", score=3, submitted=10, created=2)
        twin_later_pk = make_attempt("B", score=4, submitted=10, created=2)
        rows = {a.roll_number: a.pk for a in latest_per_candidate()}
        self.assertEqual(rows["B"], twin_later_pk.pk)
        self.assertNotIn(older.pk, rows.values())
        self.assertNotIn(twin.pk, rows.values())

    def test_search_is_case_insensitive_substring(self):
        make_attempt("ROLL-001", submitted=1)
        make_attempt("roll-002", submitted=2)
        make_attempt("other", submitted=3)

        self.assertEqual(
            sorted(a.roll_number for a in latest_per_candidate("  Roll-00 ")),
            ["ROLL-001", "roll-002"],
        )
        self.assertEqual(latest_per_candidate("zzz"), [])
        self.assertEqual(len(latest_per_candidate("")), 3)

    def test_search_does_not_resurrect_older_attempts(self):
        make_attempt("X1", score=10, submitted=1)
        latest = make_attempt("X1", score=20, submitted=2)
        self.assertEqual([a.pk for a in latest_per_candidate("x1")], [latest.pk])

    def test_database_outage_is_source_unavailable(self):
        with mock.patch('django.db.models.query.QuerySet._fetch_all', side_effect=OperationalError("down")):
            with self.assertRaises(SourceUnavailable):
                latest_per_candidate()


class RankTests(SimpleTestCase):
    def test_scorecard_scenario(self):
        board = rank([
            unsaved("A", score=95, time_taken=200),
            unsaved("B", score=95, time_taken=200),
            unsaved("C", score=90, time_taken=100),
        ])
        self.assertEqual([e.rank for e in board], [1, 1, 2])
        self.assertEqual([e.roll_number for e in board], ["A", "B", "C"])
        self.assertEqual(board[0].reason, "Score 95, Time 200s")

    def test_dense_ranks_never_skip(self):
        board = rank([
            unsaved("A", score=50, time_taken=10),
            unsaved("B", score=50, time_taken=10),
            unsaved("C", score=50, time_taken=10),
            unsaved("D", score=50, time_taken=20),
            unsaved("E", score=40, time_taken=5),
            unsaved("F", score=40, time_taken=5),
            unsaved("G", score=10, time_taken=1),
        ])
        self.assertEqual([e.rank for e in board], [1, 1, 1, 2, 3, 3, 4])

    def test_order_is_score_desc_then_time_asc(self):
        board = rank([
            unsaved("slow", score=70, time_taken=900),
            unsaved("low", score=10, time_taken=1),
            unsaved("fast", score=70, time_taken=100),
            unsaved("top", score=99, time_taken=999),
        ])
        self.assertEqual([e.roll_number for e in board], ["top", "fast", "slow", "low"])
        self.assertEqual([e.rank for e in board], [1, 2, 3, 4])

        for earlier, later in zip(board, board[1:]):
            self.assertLessEqual(earlier.rank, later.rank)
            self.assertTrue(
                earlier.score > later.score
                or (earlier.score == later.score and earlier.time_taken_seconds <= later.time_taken_seconds)
            )

    def test_missing_time_sorts_last_but_displays_as_zero(self):
        board = rank([
            unsaved("no-time", score=80, time_taken=None),
            unsaved("zero-time", score=80, time_taken=0),
            unsaved("timed", score=80, time_taken=500),
            unsaved("worse", score=70, time_taken=10),
        ])
        self.assertEqual([e.roll_number for e in board], ["timed", "no-time", "zero-time", "worse"])
        self.assertEqual([e.time_taken_seconds for e in board], [500, 0, 0, 10])
        # a missing time ties with an explicit zero time
        self.assertEqual([e.rank for e in board], [1, 2, 2, 3])
        self.assertEqual(board[1].reason, "Score 80, Time 0s")

    def test_equal_keys_fall_back_to_submission_time_then_roll(self):
        board = rank([
            unsaved("late", score=60, time_taken=60, submitted=30),
            unsaved("b-early", score=60, time_taken=60, submitted=10),
            unsaved("a-early", score=60, time_taken=60, submitted=10),
        ])
        self.assertEqual([e.roll_number for e in board], ["a-early", "b-early", "late"])
        self.assertEqual({e.rank for e in board}, {1})

    def test_missing_score_counts_as_zero(self):
        board = rank([unsaved("blank"), unsaved("scored", score=1, time_taken=5)])
        self.assertEqual([(e.roll_number, e.score) for e in board], [("scored", 1), ("blank", 0)])

    def test_empty_and_repeatable(self):
        self.assertEqual(rank([]), [])
        attempts = [unsaved(str(i), score=i % 3, time_taken=i % 2) for i in range(10)]
        self.assertEqual(rank(attempts), rank(list(reversed(attempts))))


class FakeClock:
    def __init__(self, now=1_000.0):
        self.now = now

    def __call__(self):
        return self.now


class DashboardCacheTests(TestCase):
    def setUp(self):
        self.clock = FakeClock()
        self.backend = caches['dashboard']
        self.backend.clear()
        self.cache = DashboardCache(cache=self.backend, ttl_seconds=30, clock=self.clock)

    def tearDown(self):
        self.backend.clear()

    def test_search_key_normalization(self):
        self.assertEqual(DashboardCache.normalize("  RoLL-1 "), "roll-1")
        self.assertEqual(DashboardCache.normalize(None), "")
        self.assertEqual(self.cache.cache_key(" ABC ".strip().lower()), self.cache.cache_key("abc"))

    def test_hit_within_ttl_returns_memoized_payload(self):
        make_attempt("A", score=10, time_taken=5, submitted=1)
        first = self.cache.get("a")

        make_attempt("B", score=99, time_taken=1, submitted=2)
        with mock.patch('assessments.dashboard.build_dashboard') as rebuild:
            self.clock.now += 29
            self.assertEqual(self.cache.get("  A "), first)
            rebuild.assert_not_called()

        self.assertEqual(first, build_dashboard("a"))

    def test_expired_entry_is_rebuilt(self):
        make_attempt("A", score=10, time_taken=5, submitted=1)
        self.cache.get("")
        make_attempt("B", score=99, time_taken=1, submitted=2)

        self.clock.now += 30
        payload = self.cache.get("")
        self.assertEqual([row['rollNumber'] for row in payload['leaderboard']], ["B", "A"])

    def test_empty_results_are_cached(self):
        with mock.patch('assessments.dashboard.build_dashboard', wraps=build_dashboard) as rebuild:
            self.assertEqual(self.cache.get("nobody"), {'results': [], 'leaderboard': []})
            self.assertEqual(self.cache.get("NOBODY"), {'results': [], 'leaderboard': []})
        self.assertEqual(rebuild.call_count, 1)

    def test_failed_rebuild_caches_nothing(self):
        with mock.patch('assessments.dashboard.build_dashboard', side_effect=SourceUnavailable()):
            with self.assertRaises(SourceUnavailable):
                self.cache.get("a")
        self.assertIsNone(self.backend.get(self.cache.cache_key("a")))

    def test_invalidate(self):
        self.cache.get("")
        self.cache.invalidate()
        self.assertIsNone(self.backend.get(self.cache.cache_key("")))


class DashboardApiTests(APITestCase):
    def setUp(self):
        caches['dashboard'].clear()
        self.client.credentials(HTTP_X_ADMIN_TOKEN=get_session_store().issue('admin').token)

    def tearDown(self):
        caches['dashboard'].clear()

    def test_results_shape_defaults_missing_fields(self):
        make_attempt("R1", score=7, time_taken=42, submitted=5, total_questions=10, answered=8,
                     unanswered=2, correct=7, wrong=1)
        make_attempt("R2", status='', submitted=None, created=3)

        response = self.client.get('/api/results/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        first, second = response.data['results']
        self.assertEqual(first, {
            "rollNumber": "R1", "status": "submitted", "submittedAt": "2026-03-01T09:05:00Z",
            "timeTakenSeconds": 42, "totalQuestions": 10, "answered": 8, "unanswered": 2,
            "correct": 7, "wrong": 1, "score": 7,
        })
        self.assertEqual(second, {
            "rollNumber": "R2", "status": "-", "submittedAt": "2026-03-01T09:03:00Z",
            "timeTakenSeconds": 0, "totalQuestions": 0, "answered": 0, "unanswered": 0,
            "correct": 0, "wrong": 0, "score": 0,
        })

    def test_dashboard_combines_results_and_scorecard(self):
        make_attempt("A", score=80, time_taken=300, submitted=1)
        make_attempt("A", score=95, time_taken=200, submitted=9)
        make_attempt("B", score=95, time_taken=200, submitted=5)
        make_attempt("C", score=90, time_taken=100, submitted=3)

        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([row['rollNumber'] for row in response.data['results']], ["A", "B", "C"])
        self.assertEqual(
            [(row['rank'], row['rollNumber']) for row in response.data['scorecard']],
            [(1, "B"), (1, "A"), (2, "C")],
        )
        self.assertEqual(response.data['scorecard'][2], {
            "rank": 2, "rollNumber": "C", "score": 90, "timeTakenSeconds": 100, "reason": "Score 90, Time 100s",
        })

        scorecard = self.client.get('/api/scorecard/', {'search': 'c'})
        self.assertEqual(scorecard.data['count'], 1)
        self.assertEqual(scorecard.data['scorecard'][0]['rank'], 1)

    def test_outage_is_503_and_retryable(self):
        with mock.patch('django.db.models.query.QuerySet._fetch_all', side_effect=OperationalError("down")):
            response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertFalse(response.data['ok'])

        make_attempt("A", score=1, submitted=1)
        response = self.client.get('/api/dashboard/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 1)
