from django.conf import settings
from django.http import JsonResponse
from rest_framework import generics, permissions
from rest_framework.views import APIView
from rest_framework.response import Response
from .models import AuditLog
from .serializers import AuditLogSerializer


class HealthView(APIView):
    authentication_classes = []
    permission_classes = [permissions.AllowAny]

    def get(self, request):
        return Response({"ok": True, "service": "admin-portal"})


class ConfigView(APIView):
    """Exposes the edit lock so the client can disable the question form."""

    def get(self, request):
        return Response({"ok": True, "examEditLock": bool(settings.EXAM_EDIT_LOCK)})


class AuditLogListView(generics.ListAPIView):
    queryset = AuditLog.objects.all()
    serializer_class = AuditLogSerializer

    def get_queryset(self):
        queryset = super().get_queryset()
        action = self.request.query_params.get('action')
        if action:
            queryset = queryset.filter(action=action.upper())
        return queryset

    def list(self, request, *args, **kwargs):
        serializer = self.get_serializer(self.get_queryset(), many=True)
        return Response({"ok": True, "count": len(serializer.data), "logs": serializer.data})


def api_not_found(request, *args, **kwargs):
    return JsonResponse({"ok": False, "error": "API route not found."}, status=404)
