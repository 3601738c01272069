# purchases/api/serializers.py

from decimal import Decimal

from rest_framework import serializers

from purchases.models import DispatchOrder, DispatchOrderItem, SupplierReturn, SupplierReturnItem


# =====================================================
# INPUT
# =====================================================


class PacketCompositionRowSerializer(serializers.Serializer):
    size = serializers.CharField()
    color = serializers.CharField()
    quantity = serializers.IntegerField(min_value=1)


class PacketSerializer(serializers.Serializer):
    composition = PacketCompositionRowSerializer(many=True)
    count = serializers.IntegerField(min_value=1, default=1)


class DispatchOrderItemCreateSerializer(serializers.Serializer):
    product_name = serializers.CharField(required=False, allow_blank=True, default="")
    product_code = serializers.CharField()
    category = serializers.CharField(required=False, allow_blank=True, default="")
    season = serializers.CharField(required=False, allow_blank=True, default="")
    cost_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    quantity = serializers.IntegerField(min_value=1)
    packets = PacketSerializer(many=True, required=False, default=list)


class DispatchOrderCreateSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    logistics_company_id = serializers.UUIDField(required=False, allow_null=True)
    order_number = serializers.CharField(required=False, allow_blank=True, default="")
    dispatch_date = serializers.DateField(required=False)
    exchange_rate = serializers.DecimalField(max_digits=12, decimal_places=4, default=Decimal("1.0000"))
    percentage = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0, default=Decimal("0.00"))
    total_discount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=Decimal("0.00"))
    total_boxes = serializers.IntegerField(min_value=0, default=0)
    notes = serializers.CharField(required=False, allow_blank=True, default="")
    items = DispatchOrderItemCreateSerializer(many=True, allow_empty=False)

    def validate_exchange_rate(self, value):
        if value <= 0:
            raise serializers.ValidationError("exchange_rate must be > 0")
        return value


class ConfirmDispatchOrderSerializer(serializers.Serializer):
    exchange_rate = serializers.DecimalField(max_digits=12, decimal_places=4, required=False)
    percentage = serializers.DecimalField(max_digits=7, decimal_places=2, min_value=0, required=False)
    total_discount = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, required=False)
    total_boxes = serializers.IntegerField(min_value=0, required=False)
    cash_payment = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=Decimal("0.00"))
    bank_payment = serializers.DecimalField(max_digits=14, decimal_places=2, min_value=0, default=Decimal("0.00"))


class OrderReturnLineSerializer(serializers.Serializer):
    item_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class OrderReturnSerializer(serializers.Serializer):
    items = OrderReturnLineSerializer(many=True, allow_empty=False)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class ProductReturnLineSerializer(serializers.Serializer):
    product_id = serializers.UUIDField()
    quantity = serializers.IntegerField(min_value=1)


class ProductReturnSerializer(serializers.Serializer):
    supplier_id = serializers.UUIDField()
    items = ProductReturnLineSerializer(many=True, allow_empty=False)
    reason = serializers.CharField(required=False, allow_blank=True, default="")


class PaymentDistributionSerializer(serializers.Serializer):
    amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    payment_method = serializers.ChoiceField(choices=["cash", "bank"])
    date = serializers.DateTimeField(required=False)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")

    def validate_amount(self, value):
        if value <= 0:
            raise serializers.ValidationError("amount must be > 0")
        return value


# =====================================================
# OUTPUT
# =====================================================


class DispatchOrderItemSerializer(serializers.ModelSerializer):
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, read_only=True)

    class Meta:
        model = DispatchOrderItem
        fields = [
            "id",
            "line_number",
            "product_name",
            "product_code",
            "category",
            "season",
            "cost_price",
            "quantity",
            "packets",
            "product",
            "batch",
            "landed_price",
            "confirmed_quantity",
            "line_total",
        ]


class DispatchOrderSerializer(serializers.ModelSerializer):
    supplier_name = serializers.CharField(source="supplier.name", read_only=True)
    items = DispatchOrderItemSerializer(many=True, read_only=True)

    class Meta:
        model = DispatchOrder
        fields = [
            "id",
            "order_number",
            "supplier",
            "supplier_name",
            "logistics_company",
            "status",
            "dispatch_date",
            "exchange_rate",
            "percentage",
            "total_discount",
            "total_boxes",
            "notes",
            "confirmed_at",
            "created_at",
            "items",
        ]


class SupplierReturnItemSerializer(serializers.ModelSerializer):
    class Meta:
        model = SupplierReturnItem
        fields = ["id", "order_item", "product", "quantity", "unit_cost", "line_value", "batch_deductions"]


class SupplierReturnSerializer(serializers.ModelSerializer):
    items = SupplierReturnItemSerializer(many=True, read_only=True)

    class Meta:
        model = SupplierReturn
        fields = [
            "id",
            "return_number",
            "supplier",
            "dispatch_order",
            "return_type",
            "stock_applied",
            "total_value",
            "reason",
            "returned_at",
            "items",
        ]
