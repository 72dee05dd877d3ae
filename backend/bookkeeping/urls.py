"""
URL configuration for the bookkeeping API.

    /transactions/                      list, create
    /transactions/summary/              dashboard totals
    /transactions/{id}/                 retrieve, update, delete (drafts only)
    /transactions/{id}/transition/      workflow action
    /transactions/{id}/history/         validation history
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "bookkeeping"

# Initialize DefaultRouter for RESTful API endpoints
router = DefaultRouter()

# Transactions and their validation workflow
router.register(
    r"transactions",
    views.TransactionViewSet,
    basename="transaction",
)

urlpatterns = [
    path("", include(router.urls)),
]
