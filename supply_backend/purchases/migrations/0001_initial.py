from decimal import Decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        ("suppliers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DispatchOrder",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("order_number", models.CharField(blank=True, max_length=64, unique=True)),
                (
                    "status",
                    models.CharField(
                        choices=[("pending", "Pending"), ("confirmed", "Confirmed"), ("cancelled", "Cancelled")],
                        default="pending",
                        max_length=16,
                    ),
                ),
                ("dispatch_date", models.DateField(default=django.utils.timezone.localdate)),
                ("exchange_rate", models.DecimalField(decimal_places=4, default=Decimal("1.0000"), max_digits=12)),
                (
                    "percentage",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Margin applied on top of the converted cost (landed price).",
                        max_digits=7,
                    ),
                ),
                ("total_discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("total_boxes", models.PositiveIntegerField(default=0)),
                ("notes", models.TextField(blank=True, default="")),
                ("confirmed_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "confirmed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dispatch_orders_confirmed",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="dispatch_orders_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "logistics_company",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatch_orders",
                        to="suppliers.logisticscompany",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatch_orders",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["supplier", "status", "confirmed_at"], name="order_supplier_status_idx"),
                    models.Index(fields=["logistics_company", "status"], name="order_logistics_status_idx"),
                    models.Index(fields=["confirmed_at"], name="order_confirmed_at_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(exchange_rate__gt=0),
                        name="chk_order_exchange_rate_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(percentage__gte=0),
                        name="chk_order_percentage_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(total_discount__gte=0),
                        name="chk_order_discount_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="DispatchOrderItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("line_number", models.PositiveIntegerField(default=1)),
                ("product_name", models.CharField(max_length=255)),
                ("product_code", models.CharField(max_length=128)),
                ("category", models.CharField(blank=True, default="", max_length=120)),
                ("season", models.CharField(blank=True, default="", max_length=60)),
                ("cost_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("quantity", models.PositiveIntegerField()),
                ("packets", models.JSONField(blank=True, default=list)),
                ("landed_price", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("confirmed_quantity", models.PositiveIntegerField(blank=True, null=True)),
                (
                    "batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatch_order_items",
                        to="products.purchasebatch",
                    ),
                ),
                (
                    "order",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="purchases.dispatchorder",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="dispatch_order_items",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["order", "line_number"],
                "constraints": [
                    models.UniqueConstraint(fields=("order", "line_number"), name="unique_line_number_per_order"),
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="chk_order_item_quantity_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(cost_price__gte=0),
                        name="chk_order_item_cost_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplierReturn",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("return_number", models.CharField(blank=True, max_length=64, unique=True)),
                (
                    "return_type",
                    models.CharField(
                        choices=[("order", "Order Return"), ("product", "Product Return")],
                        max_length=16,
                    ),
                ),
                ("stock_applied", models.BooleanField(default=True)),
                ("total_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("reason", models.TextField(blank=True, default="")),
                ("returned_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "created_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="supplier_returns_created",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "dispatch_order",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                        to="purchases.dispatchorder",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="returns",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["-returned_at"],
                "indexes": [
                    models.Index(fields=["supplier", "returned_at"], name="return_supplier_date_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="SupplierReturnItem",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("quantity", models.PositiveIntegerField()),
                ("unit_cost", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("line_value", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=14)),
                ("batch_deductions", models.JSONField(blank=True, default=list)),
                (
                    "order_item",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="return_items",
                        to="purchases.dispatchorderitem",
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="supplier_return_items",
                        to="products.product",
                    ),
                ),
                (
                    "supplier_return",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="items",
                        to="purchases.supplierreturn",
                    ),
                ),
            ],
            options={
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(quantity__gt=0),
                        name="chk_return_item_quantity_gt_zero",
                    ),
                ],
            },
        ),
    ]
