# purchases/models.py

import uuid
from decimal import Decimal

from django.conf import settings
from django.core.exceptions import ValidationError
from django.db import models
from django.db.models import Q
from django.utils import timezone

TWOPLACES = Decimal("0.01")


def _money(v) -> Decimal:
    return Decimal(str(v or "0.00")).quantize(TWOPLACES)


User = settings.AUTH_USER_MODEL


def _generate_number(prefix: str) -> str:
    return f"{prefix}-{timezone.now():%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


class DispatchOrder(models.Model):
    """
    Supplier dispatch order header.

    Confirmation is performed by services (all-or-nothing):
    - stock-in per line (PurchaseBatch + variants + packet stock)
    - ledger: purchase debit, payment credits, credit application, logistics charge
    - marks order CONFIRMED with confirmed_at (the canonical "oldest first" key)

    No stored order total is trusted: the live value is recomputed from item
    quantities (minus returns) and the discount.
    """

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        CONFIRMED = "confirmed", "Confirmed"
        CANCELLED = "cancelled", "Cancelled"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order_number = models.CharField(max_length=64, unique=True, blank=True)

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.PROTECT,
        related_name="dispatch_orders",
    )
    logistics_company = models.ForeignKey(
        "suppliers.LogisticsCompany",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="dispatch_orders",
    )

    status = models.CharField(max_length=16, choices=Status.choices, default=Status.PENDING)

    dispatch_date = models.DateField(default=timezone.localdate)

    exchange_rate = models.DecimalField(max_digits=12, decimal_places=4, default=Decimal("1.0000"))
    percentage = models.DecimalField(
        max_digits=7,
        decimal_places=2,
        default=Decimal("0.00"),
        help_text="Margin applied on top of the converted cost (landed price).",
    )
    total_discount = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    total_boxes = models.PositiveIntegerField(default=0)

    notes = models.TextField(blank=True, default="")

    confirmed_at = models.DateTimeField(null=True, blank=True)
    confirmed_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dispatch_orders_confirmed",
    )
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="dispatch_orders_created",
    )

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["supplier", "status", "confirmed_at"], name="order_supplier_status_idx"),
            models.Index(fields=["logistics_company", "status"], name="order_logistics_status_idx"),
            models.Index(fields=["confirmed_at"], name="order_confirmed_at_idx"),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(exchange_rate__gt=0),
                name="chk_order_exchange_rate_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(percentage__gte=0),
                name="chk_order_percentage_gte_zero",
            ),
            models.CheckConstraint(
                condition=Q(total_discount__gte=0),
                name="chk_order_discount_gte_zero",
            ),
        ]

    def save(self, *args, **kwargs):
        if not (self.order_number or "").strip():
            self.order_number = _generate_number("DO")
        super().save(*args, **kwargs)

    @property
    def is_confirmed(self) -> bool:
        return self.status == self.Status.CONFIRMED

    def __str__(self):
        return f"{self.order_number} ({self.status})"


class DispatchOrderItem(models.Model):
    """
    One article line on a dispatch order.

    `packets`: [{"composition": [{"size", "color", "quantity"}], "count": n}, ...]
    Filled at confirmation: product, batch, landed_price, confirmed_quantity.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    order = models.ForeignKey(
        DispatchOrder,
        on_delete=models.CASCADE,
        related_name="items",
    )
    line_number = models.PositiveIntegerField(default=1)

    product_name = models.CharField(max_length=255)
    product_code = models.CharField(max_length=128)
    category = models.CharField(max_length=120, blank=True, default="")
    season = models.CharField(max_length=60, blank=True, default="")

    cost_price = models.DecimalField(max_digits=12, decimal_places=2)
    quantity = models.PositiveIntegerField()

    packets = models.JSONField(default=list, blank=True)

    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="dispatch_order_items",
    )
    batch = models.ForeignKey(
        "products.PurchaseBatch",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="dispatch_order_items",
    )
    landed_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    confirmed_quantity = models.PositiveIntegerField(null=True, blank=True)

    class Meta:
        ordering = ["order", "line_number"]
        constraints = [
            models.UniqueConstraint(
                fields=["order", "line_number"],
                name="unique_line_number_per_order",
            ),
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_order_item_quantity_gt_zero",
            ),
            models.CheckConstraint(
                condition=Q(cost_price__gte=0),
                name="chk_order_item_cost_gte_zero",
            ),
        ]

    def clean(self):
        if not (self.product_code or "").strip():
            raise ValidationError({"product_code": "product_code is required"})
        if self.quantity is None or self.quantity <= 0:
            raise ValidationError({"quantity": "quantity must be greater than zero"})

    @property
    def line_total(self) -> Decimal:
        return _money(Decimal(str(self.cost_price)) * Decimal(int(self.quantity or 0)))

    def __str__(self):
        return f"{self.order_id} | {self.product_code} x {self.quantity}"


class SupplierReturn(models.Model):
    """
    Goods handed back to a supplier.

    - ORDER returns target lines of one dispatch order (batch-aware)
    - PRODUCT returns consume the supplier's batches FIFO

    stock_applied=False marks a pre-confirmation order return: only the
    order quantities change, no stock or ledger is touched.
    """

    class ReturnType(models.TextChoices):
        ORDER = "order", "Order Return"
        PRODUCT = "product", "Product Return"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    return_number = models.CharField(max_length=64, unique=True, blank=True)

    supplier = models.ForeignKey(
        "suppliers.Supplier",
        on_delete=models.PROTECT,
        related_name="returns",
    )
    dispatch_order = models.ForeignKey(
        DispatchOrder,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="returns",
    )

    return_type = models.CharField(max_length=16, choices=ReturnType.choices)
    stock_applied = models.BooleanField(default=True)

    total_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))
    reason = models.TextField(blank=True, default="")

    returned_at = models.DateTimeField(default=timezone.now)
    created_by = models.ForeignKey(
        User,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="supplier_returns_created",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-returned_at"]
        indexes = [
            models.Index(fields=["supplier", "returned_at"], name="return_supplier_date_idx"),
        ]

    def save(self, *args, **kwargs):
        if not (self.return_number or "").strip():
            self.return_number = _generate_number("RET")
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.return_number} ({self.return_type})"


class SupplierReturnItem(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)

    supplier_return = models.ForeignKey(
        SupplierReturn,
        on_delete=models.CASCADE,
        related_name="items",
    )
    order_item = models.ForeignKey(
        DispatchOrderItem,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="return_items",
    )
    product = models.ForeignKey(
        "products.Product",
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="supplier_return_items",
    )

    quantity = models.PositiveIntegerField()
    unit_cost = models.DecimalField(max_digits=12, decimal_places=2, default=Decimal("0.00"))
    line_value = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    # [{"batch_id", "quantity", "cost_price", "landed_price"}]
    batch_deductions = models.JSONField(default=list, blank=True)

    class Meta:
        constraints = [
            models.CheckConstraint(
                condition=Q(quantity__gt=0),
                name="chk_return_item_quantity_gt_zero",
            ),
        ]

    def __str__(self):
        return f"{self.supplier_return_id} | {self.product_id} x {self.quantity}"
