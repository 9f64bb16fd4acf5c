from django.urls import path
from .views import ExamSummaryView, QuestionListView, QuestionDetailView

urlpatterns = [
    path('exam/summary/', ExamSummaryView.as_view(), name='exam-summary'),
    path('exam/questions/', QuestionListView.as_view(), name='question-list'),
    path('exam/questions/<str:key>/', QuestionDetailView.as_view(), name='question-detail'),
]
