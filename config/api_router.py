"""
Public API router.

Billing endpoints are plain APIViews, so routes are listed explicitly
rather than registered on a DRF router.
"""

from django.urls import include
from django.urls import path

app_name = "api"
urlpatterns = [
    path("", include("classbook.billing.urls")),
]
