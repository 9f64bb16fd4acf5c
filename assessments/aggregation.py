# assessments/aggregation.py
"""
Latest-attempt-per-candidate and leaderboard ranking.

A candidate may submit several attempts (retries, partial submissions).
Only the most recent one counts: latest_per_candidate() reduces the attempt
collection to that one row per roll number, and rank() orders those rows
into a densely ranked leaderboard.
"""
import math
from dataclasses import asdict, dataclass

from django.db.models import OuterRef, Subquery
from django.db.models.functions import Coalesce

from cores.exceptions import record_source
from .models import Attempt


def _effective_submitted_at():
    return Coalesce('exam_submitted_at', 'created_at')


def latest_per_candidate(search=None):
    """
    Return one Attempt per roll number: the one with the latest submission
    time (created_at when it was never submitted). Rows come back newest
    first.

    `search` is a case-insensitive substring of the roll number. Ties on the
    submission time go to the later created_at, then the higher pk.
    """
    search = str(search or '').strip()

    latest = (
        Attempt.objects.filter(roll_number=OuterRef('roll_number'))
        .annotate(effective_at=_effective_submitted_at())
        .order_by('-effective_at', '-created_at', '-pk')
        .values('pk')[:1]
    )

    attempts = Attempt.objects.annotate(effective_at=_effective_submitted_at())
    if search:
        attempts = attempts.filter(roll_number__icontains=search)
    attempts = attempts.filter(pk=Subquery(latest)).order_by('-effective_at', 'roll_number')

    with record_source():
        return list(attempts)


@dataclass(frozen=True)
class LeaderboardEntry:
    rank: int
    roll_number: str
    score: int
    time_taken_seconds: int
    reason: str

    def as_dict(self):
        return asdict(self)


def _timestamp(value):
    return value.timestamp() if value is not None else 0


def _ranking_key(attempt):
    # A missing or zero time sorts after every real time within the same
    # score, while the displayed (and tie-compared) time is 0.
    return (
        -(attempt.score or 0),
        attempt.time_taken_seconds or math.inf,
        _timestamp(attempt.submitted_at),
        attempt.roll_number or '',
    )


def rank(attempts):
    """
    Order attempts by score (high first) then time taken (low first) and
    assign dense ranks: an entry shares the previous rank only when its score
    and time taken are both identical, and ranks never skip.
    """
    leaderboard = []
    previous = None
    for attempt in sorted(attempts, key=_ranking_key):
        score = attempt.score or 0
        time_taken = attempt.time_taken_seconds or 0

        if previous is None:
            position = 1
        elif (score, time_taken) == (previous.score, previous.time_taken_seconds):
            position = previous.rank
        else:
            position = previous.rank + 1

        previous = LeaderboardEntry(
            rank=position,
            roll_number=attempt.roll_number or '-',
            score=score,
            time_taken_seconds=time_taken,
            reason=f"Score {score}, Time {time_taken}s",
        )
        leaderboard.append(previous)
    return leaderboard
