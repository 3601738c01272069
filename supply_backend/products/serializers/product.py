# products/serializers/product.py

"""
PRODUCT / INVENTORY SERIALIZERS

Read-side only: stock numbers are service-managed, so nothing here writes
current_stock, batches or variants. Derived inventory fields (available,
needs_reorder, total_value, stock_status) come from model properties.
"""

from rest_framework import serializers

from products.models import Inventory, Product, VariantStock


class VariantStockSerializer(serializers.ModelSerializer):
    available_quantity = serializers.IntegerField(read_only=True)

    class Meta:
        model = VariantStock
        fields = ["id", "size", "color", "quantity", "reserved_quantity", "available_quantity", "updated_at"]


class InventorySerializer(serializers.ModelSerializer):
    available_stock = serializers.IntegerField(read_only=True)
    needs_reorder = serializers.BooleanField(read_only=True)
    total_value = serializers.DecimalField(max_digits=16, decimal_places=2, read_only=True)
    stock_status = serializers.CharField(read_only=True)
    variants = VariantStockSerializer(many=True, read_only=True)

    class Meta:
        model = Inventory
        fields = [
            "id",
            "product",
            "current_stock",
            "reserved_stock",
            "available_stock",
            "average_cost_price",
            "total_value",
            "min_stock_level",
            "max_stock_level",
            "reorder_level",
            "reorder_quantity",
            "needs_reorder",
            "stock_status",
            "variant_tracking",
            "last_stock_update",
            "variants",
        ]
        read_only_fields = fields


class ProductSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True, default="")
    current_stock = serializers.SerializerMethodField()

    class Meta:
        model = Product
        fields = [
            "id",
            "sku",
            "code",
            "name",
            "supplier",
            "supplier_name",
            "category",
            "season",
            "cost_price",
            "current_stock",
            "is_active",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields

    def get_current_stock(self, obj) -> int:
        # reverse one-to-one: missing row raises an AttributeError subclass
        inventory = getattr(obj, "inventory", None)
        return int(getattr(inventory, "current_stock", 0) or 0)


class VariantActionSerializer(serializers.Serializer):
    size = serializers.CharField()
    color = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)


class ReconcileSerializer(serializers.Serializer):
    source = serializers.CharField(default="packets")
