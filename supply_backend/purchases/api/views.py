# purchases/api/views.py

from django.core.exceptions import ValidationError
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.api_errors import service_error_response
from products.services.exceptions import InventoryServiceError
from purchases.api.serializers import (
    ConfirmDispatchOrderSerializer,
    DispatchOrderCreateSerializer,
    DispatchOrderSerializer,
    OrderReturnSerializer,
    PaymentDistributionSerializer,
    ProductReturnSerializer,
    SupplierReturnSerializer,
)
from purchases.models import DispatchOrder, SupplierReturn
from purchases.selectors import (
    get_order_balance_summary,
    get_pending_logistics_charges,
    get_pending_orders_for_supplier,
    get_supplier_dashboard,
)
from purchases.services.confirmation_service import confirm_dispatch_order
from purchases.services.exceptions import DispatchOrderNotFoundError, PurchasesServiceError
from purchases.services.order_service import cancel_dispatch_order, create_dispatch_order
from purchases.services.payment_service import (
    apply_available_credit,
    distribute_logistics_payment,
    distribute_supplier_payment,
)
from purchases.services.return_service import create_order_return, create_product_return
from suppliers.models import LogisticsCompany, Supplier

# Errors a purchases endpoint may surface; anything else propagates (500 + Sentry).
SERVICE_ERRORS = (PurchasesServiceError, InventoryServiceError, ValidationError, ValueError)


def _strip_orders(rows):
    return [{k: v for k, v in row.items() if k != "order"} for row in rows]


def _order_queryset():
    return DispatchOrder.objects.select_related("supplier", "logistics_company").prefetch_related("items")


def _order_payload(order):
    data = DispatchOrderSerializer(order).data
    if order.status == DispatchOrder.Status.CONFIRMED:
        data["balance"] = get_order_balance_summary(order)
    return data


# =====================================================
# ORDERS
# =====================================================


class DispatchOrderListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DispatchOrderCreateSerializer

    @extend_schema(
        tags=["purchases"],
        parameters=[
            OpenApiParameter(name="supplier_id", type=str, required=False),
            OpenApiParameter(name="status", type=str, required=False),
        ],
        responses=DispatchOrderSerializer(many=True),
    )
    def get(self, request):
        qs = _order_queryset().order_by("-created_at")

        supplier_id = (request.query_params.get("supplier_id") or "").strip()
        if supplier_id:
            qs = qs.filter(supplier_id=supplier_id)

        status_filter = (request.query_params.get("status") or "").strip()
        if status_filter:
            qs = qs.filter(status=status_filter)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(DispatchOrderSerializer(page, many=True).data)
        return Response(DispatchOrderSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=DispatchOrderCreateSerializer,
        responses={201: DispatchOrderSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            order = create_dispatch_order(
                supplier_id=data["supplier_id"],
                logistics_company_id=data.get("logistics_company_id"),
                order_number=data.get("order_number", ""),
                dispatch_date=data.get("dispatch_date"),
                exchange_rate=data["exchange_rate"],
                percentage=data["percentage"],
                total_discount=data["total_discount"],
                total_boxes=data["total_boxes"],
                notes=data.get("notes", ""),
                items=data["items"],
                user=request.user,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(_order_payload(_order_queryset().get(id=order.id)), status=status.HTTP_201_CREATED)


class DispatchOrderDetailView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = DispatchOrderSerializer

    @extend_schema(tags=["purchases"], responses=DispatchOrderSerializer)
    def get(self, request, order_id):
        try:
            order = _order_queryset().get(id=order_id)
        except DispatchOrder.DoesNotExist:
            return service_error_response(DispatchOrderNotFoundError("Dispatch order not found"))
        return Response(_order_payload(order), status=status.HTTP_200_OK)


class DispatchOrderConfirmView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ConfirmDispatchOrderSerializer

    @extend_schema(tags=["purchases"], request=ConfirmDispatchOrderSerializer)
    def post(self, request, order_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = confirm_dispatch_order(
                order_id=order_id,
                user=request.user,
                exchange_rate=data.get("exchange_rate"),
                percentage=data.get("percentage"),
                total_discount=data.get("total_discount"),
                total_boxes=data.get("total_boxes"),
                cash_payment=data["cash_payment"],
                bank_payment=data["bank_payment"],
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(result, status=status.HTTP_200_OK)


class DispatchOrderCancelView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], request=None, responses=DispatchOrderSerializer)
    def post(self, request, order_id):
        try:
            cancel_dispatch_order(order_id=order_id, user=request.user)
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)
        return Response(_order_payload(_order_queryset().get(id=order_id)), status=status.HTTP_200_OK)


class DispatchOrderReturnView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = OrderReturnSerializer

    @extend_schema(
        tags=["purchases"],
        request=OrderReturnSerializer,
        responses={201: SupplierReturnSerializer},
    )
    def post(self, request, order_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            ret = create_order_return(
                order_id=order_id,
                items=data["items"],
                reason=data.get("reason", ""),
                user=request.user,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(SupplierReturnSerializer(ret).data, status=status.HTTP_201_CREATED)


class DispatchOrderApplyCreditView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"], request=None)
    def post(self, request, order_id):
        try:
            result = apply_available_credit(order_id=order_id, user=request.user)
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)
        return Response(result, status=status.HTTP_200_OK)


# =====================================================
# RETURNS
# =====================================================


class SupplierReturnListCreateView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = ProductReturnSerializer

    @extend_schema(
        tags=["purchases"],
        parameters=[OpenApiParameter(name="supplier_id", type=str, required=False)],
        responses=SupplierReturnSerializer(many=True),
    )
    def get(self, request):
        qs = SupplierReturn.objects.prefetch_related("items").order_by("-returned_at")
        supplier_id = (request.query_params.get("supplier_id") or "").strip()
        if supplier_id:
            qs = qs.filter(supplier_id=supplier_id)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(SupplierReturnSerializer(page, many=True).data)
        return Response(SupplierReturnSerializer(qs, many=True).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["purchases"],
        request=ProductReturnSerializer,
        responses={201: SupplierReturnSerializer},
    )
    def post(self, request):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            ret = create_product_return(
                supplier_id=data["supplier_id"],
                items=data["items"],
                reason=data.get("reason", ""),
                user=request.user,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(SupplierReturnSerializer(ret).data, status=status.HTTP_201_CREATED)


# =====================================================
# SUPPLIER / LOGISTICS SETTLEMENT
# =====================================================


class SupplierPaymentDistributionView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentDistributionSerializer

    @extend_schema(tags=["purchases"], request=PaymentDistributionSerializer)
    def post(self, request, supplier_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = distribute_supplier_payment(
                supplier_id=supplier_id,
                amount=data["amount"],
                payment_method=data["payment_method"],
                date=data.get("date"),
                remarks=data.get("remarks", ""),
                user=request.user,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(result, status=status.HTTP_201_CREATED)


class SupplierPendingOrdersView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"])
    def get(self, request, supplier_id):
        if not Supplier.objects.filter(id=supplier_id).exists():
            return Response({"detail": "Supplier not found"}, status=status.HTTP_404_NOT_FOUND)
        rows = _strip_orders(get_pending_orders_for_supplier(supplier_id))
        return Response({"count": len(rows), "results": rows}, status=status.HTTP_200_OK)


class SupplierDashboardView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"])
    def get(self, request, supplier_id):
        if not Supplier.objects.filter(id=supplier_id).exists():
            return Response({"detail": "Supplier not found"}, status=status.HTTP_404_NOT_FOUND)
        return Response(get_supplier_dashboard(supplier_id), status=status.HTTP_200_OK)


class LogisticsPaymentDistributionView(GenericAPIView):
    permission_classes = [IsAuthenticated]
    serializer_class = PaymentDistributionSerializer

    @extend_schema(tags=["purchases"], request=PaymentDistributionSerializer)
    def post(self, request, company_id):
        s = self.get_serializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            result = distribute_logistics_payment(
                company_id=company_id,
                amount=data["amount"],
                payment_method=data["payment_method"],
                date=data.get("date"),
                remarks=data.get("remarks", ""),
                user=request.user,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(result, status=status.HTTP_201_CREATED)


class LogisticsPendingChargesView(GenericAPIView):
    permission_classes = [IsAuthenticated]

    @extend_schema(tags=["purchases"])
    def get(self, request, company_id):
        if not LogisticsCompany.objects.filter(id=company_id).exists():
            return Response({"detail": "Logistics company not found"}, status=status.HTTP_404_NOT_FOUND)
        rows = _strip_orders(get_pending_logistics_charges(company_id))
        return Response({"count": len(rows), "results": rows}, status=status.HTTP_200_OK)
