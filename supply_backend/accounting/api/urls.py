# accounting/api/urls.py

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from accounting.api.views import (
    DebitAdjustmentCreateView,
    EntityBalanceView,
    EntityStatementView,
    LedgerEntryViewSet,
    TotalBalanceView,
)

router = DefaultRouter()
router.register("ledger-entries", LedgerEntryViewSet, basename="ledger-entry")

urlpatterns = [
    path("", include(router.urls)),
    # Balances
    path("balances/<str:entity_type>/", TotalBalanceView.as_view(), name="total-balance"),
    path(
        "balances/<str:entity_type>/<uuid:entity_id>/",
        EntityBalanceView.as_view(),
        name="entity-balance",
    ),
    path(
        "balances/<str:entity_type>/<uuid:entity_id>/statement/",
        EntityStatementView.as_view(),
        name="entity-statement",
    ),
    # Posting actions
    path("adjustments/", DebitAdjustmentCreateView.as_view(), name="debit-adjustment"),
]
