# backend/urls.py
"""
PROJECT URLS

The ledger is consumed in-process by the business modules; the only
routes served here are the Django admin (chart of accounts maintenance,
read-only journal browsing).

Security hardening:
- Admin path is configurable via env var (ADMIN_PATH)
"""

from __future__ import annotations

from django.conf import settings
from django.contrib import admin
from django.urls import path

ADMIN_PATH = getattr(settings, "ADMIN_PATH", "admin/")
if not ADMIN_PATH.endswith("/"):
    ADMIN_PATH = f"{ADMIN_PATH}/"

urlpatterns = [
    path(ADMIN_PATH, admin.site.urls),
]
