from rest_framework import status
from rest_framework.views import APIView
from rest_framework.response import Response

from cores.models import AuditLog
from . import catalog
from .serializers import QuestionSerializer


class ExamSummaryView(APIView):
    def get(self, request):
        return Response({"ok": True, "totalActiveQuestions": catalog.count_active_questions()})


class QuestionListView(APIView):
    """GET lists the active bank; POST adds a question to it."""

    def get(self, request):
        questions = catalog.list_questions()
        data = QuestionSerializer(questions, many=True).data
        return Response({"ok": True, "total": len(data), "questions": data})

    def post(self, request):
        question = catalog.create_question(request.data)
        AuditLog.record(
            request, 'CREATE', 'Question', question.pk,
            details=f"Created question {question.external_id}",
        )
        return Response({"ok": True, "questionId": str(question.pk)}, status=status.HTTP_201_CREATED)


class QuestionDetailView(APIView):
    def put(self, request, key):
        question = catalog.update_question(key, request.data)
        AuditLog.record(
            request, 'UPDATE', 'Question', question.pk,
            details=f"Updated question {question.external_id}",
        )
        return Response({"ok": True})

    def delete(self, request, key):
        pk = catalog.soft_delete_question(key)
        AuditLog.record(request, 'DELETE', 'Question', pk, details="Question marked inactive")
        return Response({"ok": True})
