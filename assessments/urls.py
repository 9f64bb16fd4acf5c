from django.urls import path
from .views import DashboardView, ResultsView, ScorecardView

urlpatterns = [
    path('dashboard/', DashboardView.as_view(), name='dashboard'),
    path('results/', ResultsView.as_view(), name='results'),
    path('scorecard/', ScorecardView.as_view(), name='scorecard'),
]
