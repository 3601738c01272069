# products/views/product.py

"""
PRODUCT / INVENTORY VIEWSET

Read-mostly surface over the catalog and its stock state.

Writes are limited to service-backed actions:
- variants/reserve | variants/release | variants/reduce
- stock-sync/reconcile (packets -> inventory only; the opposite is 409)

List filters (django-filter): supplier, category, season, is_active.
Search: code, sku, name.
"""

from __future__ import annotations

from django.core.exceptions import ValidationError
from django_filters import rest_framework as filters
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import filters as drf_filters
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from backend.api_errors import service_error_response
from products.models import Product, PurchaseBatch, StockMovement
from products.serializers import (
    InventorySerializer,
    ProductSerializer,
    PurchaseBatchSerializer,
    ReconcileSerializer,
    StockMovementSerializer,
    VariantActionSerializer,
    VariantStockSerializer,
)
from products.services.exceptions import InventoryServiceError
from products.services.inventory import get_or_create_inventory
from products.services.stock_sync import (
    check_batch_consistency,
    get_low_stock_alerts,
    reconcile_stock,
    validate_stock_sync,
)
from products.services.variants import reduce_variant, release_variant, reserve_variant

SERVICE_ERRORS = (InventoryServiceError, ValidationError)


class ProductFilterSet(filters.FilterSet):
    supplier = filters.UUIDFilter(field_name="supplier_id")
    category = filters.CharFilter(field_name="category", lookup_expr="iexact")
    season = filters.CharFilter(field_name="season", lookup_expr="iexact")

    class Meta:
        model = Product
        fields = ["supplier", "category", "season", "is_active"]


@extend_schema(tags=["products"])
class ProductViewSet(viewsets.ReadOnlyModelViewSet):
    permission_classes = [IsAuthenticated]
    serializer_class = ProductSerializer
    filterset_class = ProductFilterSet
    filter_backends = [filters.DjangoFilterBackend, drf_filters.SearchFilter, drf_filters.OrderingFilter]
    search_fields = ["code", "sku", "name"]
    ordering_fields = ["name", "code", "created_at"]

    def get_queryset(self):
        return Product.objects.select_related("supplier", "inventory").order_by("-created_at")

    # -------------------------------------------------
    # STOCK STATE
    # -------------------------------------------------
    @action(detail=True, methods=["get"], url_path="inventory")
    def inventory(self, request, pk=None):
        inventory = get_or_create_inventory(self.get_object())
        return Response(InventorySerializer(inventory).data)

    @action(detail=True, methods=["get"], url_path="batches")
    def batches(self, request, pk=None):
        qs = PurchaseBatch.objects.filter(product=self.get_object()).order_by("purchase_date", "created_at")
        only_open = (request.query_params.get("open") or "").strip().lower() in ("1", "true", "yes")
        if only_open:
            qs = qs.filter(remaining_quantity__gt=0)
        return Response(PurchaseBatchSerializer(qs, many=True).data)

    @extend_schema(parameters=[OpenApiParameter(name="movement_type", type=str, required=False)])
    @action(detail=True, methods=["get"], url_path="movements")
    def movements(self, request, pk=None):
        qs = StockMovement.objects.filter(product=self.get_object()).order_by("-created_at")
        movement_type = (request.query_params.get("movement_type") or "").strip()
        if movement_type:
            qs = qs.filter(movement_type=movement_type)

        page = self.paginate_queryset(qs)
        if page is not None:
            return self.get_paginated_response(StockMovementSerializer(page, many=True).data)
        return Response(StockMovementSerializer(qs, many=True).data)

    # -------------------------------------------------
    # VARIANTS
    # -------------------------------------------------
    def _variant_action(self, request, fn, **extra):
        s = VariantActionSerializer(data=request.data)
        s.is_valid(raise_exception=True)
        data = s.validated_data

        try:
            variant = fn(
                product=self.get_object(),
                size=data["size"],
                color=data["color"],
                quantity=data["quantity"],
                **extra,
            )
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

        return Response(VariantStockSerializer(variant).data, status=status.HTTP_200_OK)

    @extend_schema(request=VariantActionSerializer, responses=VariantStockSerializer)
    @action(detail=True, methods=["post"], url_path="variants/reserve")
    def reserve_variant(self, request, pk=None):
        return self._variant_action(request, reserve_variant)

    @extend_schema(request=VariantActionSerializer, responses=VariantStockSerializer)
    @action(detail=True, methods=["post"], url_path="variants/release")
    def release_variant(self, request, pk=None):
        return self._variant_action(request, release_variant)

    @extend_schema(request=VariantActionSerializer, responses=VariantStockSerializer)
    @action(detail=True, methods=["post"], url_path="variants/reduce")
    def reduce_variant(self, request, pk=None):
        return self._variant_action(request, reduce_variant, user=request.user)

    # -------------------------------------------------
    # SYNC / CONSISTENCY
    # -------------------------------------------------
    @action(detail=True, methods=["get"], url_path="stock-sync")
    def stock_sync(self, request, pk=None):
        try:
            return Response(validate_stock_sync(self.get_object()))
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

    @extend_schema(request=ReconcileSerializer)
    @action(detail=True, methods=["post"], url_path="stock-sync/reconcile")
    def reconcile(self, request, pk=None):
        s = ReconcileSerializer(data=request.data)
        s.is_valid(raise_exception=True)

        try:
            result = reconcile_stock(self.get_object(), source=s.validated_data["source"], user=request.user)
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)
        return Response(result)

    @action(detail=True, methods=["get"], url_path="batch-consistency")
    def batch_consistency(self, request, pk=None):
        try:
            return Response(check_batch_consistency(self.get_object()))
        except SERVICE_ERRORS as exc:
            return service_error_response(exc)

    @extend_schema(
        parameters=[
            OpenApiParameter(name="threshold", type=int, required=False),
            OpenApiParameter(name="include_packets", type=bool, required=False),
        ]
    )
    @action(detail=False, methods=["get"], url_path="alerts/low-stock")
    def low_stock(self, request):
        raw = (request.query_params.get("threshold") or "").strip()
        threshold = None
        if raw:
            try:
                threshold = int(raw)
                if threshold < 0:
                    raise ValueError
            except ValueError:
                return Response({"detail": "threshold must be a non-negative integer"}, status=400)

        include_packets = (request.query_params.get("include_packets") or "true").strip().lower() in (
            "1",
            "true",
            "yes",
        )
        return Response(get_low_stock_alerts(threshold=threshold, include_packets=include_packets))
