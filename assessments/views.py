from rest_framework.views import APIView
from rest_framework.response import Response

from .apps import get_dashboard_cache


class DashboardView(APIView):
    """
    Results and scorecard for the admin dashboard, served from the
    short-lived dashboard cache.
    """

    def get(self, request):
        payload = get_dashboard_cache().get(request.query_params.get('search'))
        return Response({
            "ok": True,
            "results": payload['results'],
            "scorecard": payload['leaderboard'],
        })


class ResultsView(APIView):
    """Latest attempt per roll number, newest submission first."""

    def get(self, request):
        results = get_dashboard_cache().get(request.query_params.get('search'))['results']
        return Response({"ok": True, "count": len(results), "results": results})


class ScorecardView(APIView):
    def get(self, request):
        scorecard = get_dashboard_cache().get(request.query_params.get('search'))['leaderboard']
        return Response({"ok": True, "count": len(scorecard), "scorecard": scorecard})
