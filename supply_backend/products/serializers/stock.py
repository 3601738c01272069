# products/serializers/stock.py

from rest_framework import serializers

from products.models import PurchaseBatch, StockMovement


class PurchaseBatchSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    is_exhausted = serializers.BooleanField(read_only=True)

    class Meta:
        model = PurchaseBatch
        fields = [
            "id",
            "product",
            "product_name",
            "supplier",
            "dispatch_order_id",
            "batch_number",
            "purchase_date",
            "quantity",
            "remaining_quantity",
            "cost_price",
            "landed_price",
            "exchange_rate",
            "is_exhausted",
            "created_at",
        ]
        read_only_fields = fields


class StockMovementSerializer(serializers.ModelSerializer):
    total_cost = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)

    class Meta:
        model = StockMovement
        fields = [
            "id",
            "product",
            "batch",
            "movement_type",
            "quantity",
            "unit_cost_snapshot",
            "total_cost",
            "reference",
            "reference_id",
            "performed_by",
            "notes",
            "created_at",
        ]
        read_only_fields = fields
