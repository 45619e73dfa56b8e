"""
URL configuration for learnwealthx_project project.

The JSON API lives under /api/ (core and users apps); the Django admin and
django-allauth's browser flows are mounted alongside it.
"""
from django.contrib import admin
from django.urls import path, include
from django.conf import settings
from django.conf.urls.static import static

urlpatterns = [
    # Admin
    path("admin/", admin.site.urls),

    # Authentication (django-allauth)
    path("accounts/", include("allauth.urls")),

    # JSON auth API
    path("api/auth/", include("users.urls")),

    # Core app (courses, payments, affiliates, payouts, back-office API)
    path("", include("core.urls")),
]

# Serve media files in development
if settings.DEBUG:
    urlpatterns += static(settings.MEDIA_URL, document_root=settings.MEDIA_ROOT)
