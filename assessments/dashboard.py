# assessments/dashboard.py
import hashlib
import logging
import time

from django.conf import settings
from django.core.cache import caches

from .aggregation import latest_per_candidate, rank
from .serializers import AttemptResultSerializer, LeaderboardEntrySerializer

logger = logging.getLogger(__name__)


def build_dashboard(search=None):
    """Results table and leaderboard for one search, straight from the database."""
    attempts = latest_per_candidate(search)
    return {
        'results': [dict(row) for row in AttemptResultSerializer(attempts, many=True).data],
        'leaderboard': [dict(row) for row in LeaderboardEntrySerializer(rank(attempts), many=True).data],
    }


class DashboardCache:
    """
    Short-lived memo of build_dashboard() per normalized search string.

    A fresh entry is returned as stored. A missing or expired one is rebuilt
    and overwrites whatever was there; two requests racing on the same key
    may both rebuild, and the last write wins. Empty results are cached too.
    Entry count is bounded by the backend's MAX_ENTRIES culling.
    """

    key_prefix = 'dashboard'

    def __init__(self, cache=None, ttl_seconds=None, clock=time.time):
        self.cache = cache if cache is not None else caches[settings.DASHBOARD_CACHE_ALIAS]
        self.ttl_seconds = settings.DASHBOARD_CACHE_TTL_SECONDS if ttl_seconds is None else ttl_seconds
        self._clock = clock

    @staticmethod
    def normalize(search_key):
        return str(search_key or '').strip().lower()

    def cache_key(self, normalized):
        # hashed so arbitrary search text is a valid key for any backend
        digest = hashlib.sha256(normalized.encode('utf-8')).hexdigest()
        return f"{self.key_prefix}:{digest}"

    def get(self, search_key=None):
        normalized = self.normalize(search_key)
        key = self.cache_key(normalized)

        entry = self.cache.get(key)
        if entry is not None and entry['expires_at'] > self._clock():
            return entry['payload']

        logger.info("Rebuilding dashboard for search %r", normalized)
        payload = build_dashboard(normalized)
        self.cache.set(
            key,
            {'key': normalized, 'payload': payload, 'expires_at': self._clock() + self.ttl_seconds},
            timeout=self.ttl_seconds,
        )
        return payload

    def invalidate(self):
        self.cache.clear()
