from decimal import Decimal
import uuid

import django.db.models.deletion
import django.utils.timezone
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("suppliers", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Product",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("code", models.CharField(db_index=True, max_length=128)),
                ("sku", models.CharField(db_index=True, max_length=160, unique=True)),
                ("name", models.CharField(db_index=True, max_length=255)),
                ("category", models.CharField(blank=True, default="", max_length=120)),
                ("season", models.CharField(blank=True, default="", max_length=60)),
                (
                    "cost_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Current unit cost basis (latest landed price).",
                        max_digits=12,
                    ),
                ),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="products",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["-created_at"],
                "indexes": [
                    models.Index(fields=["supplier", "code"], name="product_supplier_code_idx"),
                    models.Index(fields=["is_active"], name="product_active_idx"),
                ],
                "constraints": [
                    models.UniqueConstraint(fields=("supplier", "code"), name="unique_product_code_per_supplier"),
                    models.CheckConstraint(
                        condition=models.Q(cost_price__gte=0),
                        name="chk_product_cost_price_gte_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="Inventory",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("current_stock", models.PositiveIntegerField(default=0)),
                ("reserved_stock", models.PositiveIntegerField(default=0)),
                (
                    "average_cost_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Weighted average over remaining batch quantities.",
                        max_digits=12,
                    ),
                ),
                ("min_stock_level", models.PositiveIntegerField(default=0)),
                ("max_stock_level", models.PositiveIntegerField(default=1000)),
                ("reorder_level", models.PositiveIntegerField(default=10)),
                ("reorder_quantity", models.PositiveIntegerField(default=0)),
                ("variant_tracking", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("last_stock_update", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.OneToOneField(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="inventory",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "verbose_name_plural": "Inventories",
                "ordering": ["-updated_at"],
                "indexes": [
                    models.Index(fields=["current_stock"], name="inventory_stock_idx"),
                    models.Index(fields=["is_active", "current_stock"], name="inventory_active_stock_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(average_cost_price__gte=0),
                        name="chk_inventory_avg_cost_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(max_stock_level__gte=models.F("min_stock_level")),
                        name="chk_inventory_max_gte_min",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="PurchaseBatch",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("dispatch_order_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("batch_number", models.CharField(blank=True, default="", max_length=128)),
                ("purchase_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("quantity", models.PositiveIntegerField(help_text="Quantity received (immutable)")),
                (
                    "remaining_quantity",
                    models.PositiveIntegerField(default=0, help_text="Remaining quantity (service-managed only)"),
                ),
                (
                    "cost_price",
                    models.DecimalField(
                        decimal_places=2,
                        help_text="Supplier unit cost (basis for payment obligations).",
                        max_digits=12,
                    ),
                ),
                (
                    "landed_price",
                    models.DecimalField(
                        decimal_places=2,
                        default=Decimal("0.00"),
                        help_text="Unit cost after exchange rate and margin (valuation basis).",
                        max_digits=12,
                    ),
                ),
                ("exchange_rate", models.DecimalField(decimal_places=4, default=Decimal("1.0000"), max_digits=12)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="purchase_batches",
                        to="products.product",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="purchase_batches",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["purchase_date", "created_at"],
                "indexes": [
                    models.Index(fields=["product", "purchase_date"], name="batch_product_date_idx"),
                    models.Index(fields=["product", "remaining_quantity"], name="batch_product_remaining_idx"),
                    models.Index(fields=["supplier", "purchase_date"], name="batch_supplier_date_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(condition=models.Q(quantity__gt=0), name="chk_batch_quantity_gt_zero"),
                    models.CheckConstraint(
                        condition=models.Q(remaining_quantity__gte=0),
                        name="chk_batch_remaining_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(remaining_quantity__lte=models.F("quantity")),
                        name="chk_batch_remaining_lte_quantity",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(cost_price__gte=0),
                        name="chk_batch_cost_price_gte_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(exchange_rate__gt=0),
                        name="chk_batch_exchange_rate_gt_zero",
                    ),
                ],
            },
        ),
        migrations.CreateModel(
            name="StockMovement",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                (
                    "movement_type",
                    models.CharField(
                        choices=[
                            ("in", "Stock In"),
                            ("out", "Stock Out"),
                            ("adjustment", "Adjustment"),
                            ("transfer", "Transfer"),
                        ],
                        max_length=12,
                    ),
                ),
                ("quantity", models.IntegerField()),
                (
                    "unit_cost_snapshot",
                    models.DecimalField(
                        blank=True,
                        decimal_places=2,
                        default=None,
                        help_text="Batch cost at movement time (immutable).",
                        max_digits=12,
                        null=True,
                    ),
                ),
                (
                    "reference",
                    models.CharField(
                        choices=[
                            ("DispatchOrder", "Dispatch Order"),
                            ("SupplierReturn", "Supplier Return"),
                            ("VariantReduction", "Variant Reduction"),
                            ("StockReconciliation", "Stock Reconciliation"),
                            ("Manual", "Manual"),
                        ],
                        default="Manual",
                        max_length=40,
                    ),
                ),
                ("reference_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("notes", models.TextField(blank=True, default="")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                (
                    "batch",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="stock_movements",
                        to="products.purchasebatch",
                    ),
                ),
                (
                    "performed_by",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.SET_NULL,
                        related_name="stock_movements",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="stock_movements",
                        to="products.product",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["product", "created_at"], name="movement_product_created_idx"),
                    models.Index(fields=["movement_type"], name="movement_type_idx"),
                    models.Index(fields=["reference", "reference_id"], name="movement_reference_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="VariantStock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("size", models.CharField(max_length=32)),
                ("color", models.CharField(max_length=64)),
                ("quantity", models.PositiveIntegerField(default=0)),
                ("reserved_quantity", models.PositiveIntegerField(default=0)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "inventory",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="variants",
                        to="products.inventory",
                    ),
                ),
            ],
            options={
                "ordering": ["color", "size"],
                "constraints": [
                    models.UniqueConstraint(fields=("inventory", "size", "color"), name="unique_variant_per_inventory"),
                    models.CheckConstraint(
                        condition=models.Q(reserved_quantity__lte=models.F("quantity")),
                        name="chk_variant_reserved_lte_quantity",
                    ),
                ],
            },
        ),
    ]
