from django.urls import path, include, re_path

from cores.views import api_not_found

urlpatterns = [
    # --- Health, Config & Audit ---
    path('api/', include('cores.urls')),

    # --- Authentication ---
    path('api/', include('users.urls')),

    # --- Admin Dashboard (results + scorecard) ---
    path('api/', include('assessments.urls')),

    # --- Question Bank ---
    path('api/', include('exams.urls')),

    re_path(r'^api/', api_not_found),
]
