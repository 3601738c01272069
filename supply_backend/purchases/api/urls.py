# purchases/api/urls.py

from django.urls import path

from purchases.api.views import (
    DispatchOrderApplyCreditView,
    DispatchOrderCancelView,
    DispatchOrderConfirmView,
    DispatchOrderDetailView,
    DispatchOrderListCreateView,
    DispatchOrderReturnView,
    LogisticsPaymentDistributionView,
    LogisticsPendingChargesView,
    SupplierDashboardView,
    SupplierPaymentDistributionView,
    SupplierPendingOrdersView,
    SupplierReturnListCreateView,
)

urlpatterns = [
    path("orders/", DispatchOrderListCreateView.as_view(), name="dispatch-orders"),
    path("orders/<uuid:order_id>/", DispatchOrderDetailView.as_view(), name="dispatch-order-detail"),
    path(
        "orders/<uuid:order_id>/confirm/",
        DispatchOrderConfirmView.as_view(),
        name="dispatch-order-confirm",
    ),
    path(
        "orders/<uuid:order_id>/cancel/",
        DispatchOrderCancelView.as_view(),
        name="dispatch-order-cancel",
    ),
    path(
        "orders/<uuid:order_id>/returns/",
        DispatchOrderReturnView.as_view(),
        name="dispatch-order-return",
    ),
    path(
        "orders/<uuid:order_id>/apply-credit/",
        DispatchOrderApplyCreditView.as_view(),
        name="dispatch-order-apply-credit",
    ),
    path("returns/", SupplierReturnListCreateView.as_view(), name="supplier-returns"),
    path(
        "suppliers/<uuid:supplier_id>/payments/",
        SupplierPaymentDistributionView.as_view(),
        name="supplier-payment-distribute",
    ),
    path(
        "suppliers/<uuid:supplier_id>/pending-orders/",
        SupplierPendingOrdersView.as_view(),
        name="supplier-pending-orders",
    ),
    path(
        "suppliers/<uuid:supplier_id>/dashboard/",
        SupplierDashboardView.as_view(),
        name="supplier-dashboard",
    ),
    path(
        "logistics/<uuid:company_id>/payments/",
        LogisticsPaymentDistributionView.as_view(),
        name="logistics-payment-distribute",
    ),
    path(
        "logistics/<uuid:company_id>/pending-charges/",
        LogisticsPendingChargesView.as_view(),
        name="logistics-pending-charges",
    ),
]
