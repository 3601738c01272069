import uuid

import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("products", "0001_initial"),
        ("suppliers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="PacketStock",
            fields=[
                ("id", models.UUIDField(default=uuid.uuid4, editable=False, primary_key=True, serialize=False)),
                ("dispatch_order_id", models.UUIDField(blank=True, db_index=True, null=True)),
                ("barcode", models.CharField(max_length=64, unique=True)),
                ("composition", models.JSONField(blank=True, default=list)),
                ("items_per_packet", models.PositiveIntegerField(default=1)),
                ("available_packets", models.PositiveIntegerField(default=0)),
                ("reserved_packets", models.PositiveIntegerField(default=0)),
                ("sold_packets", models.PositiveIntegerField(default=0)),
                ("is_loose", models.BooleanField(default=False)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                (
                    "product",
                    models.ForeignKey(
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="packet_stocks",
                        to="products.product",
                    ),
                ),
                (
                    "supplier",
                    models.ForeignKey(
                        blank=True,
                        null=True,
                        on_delete=django.db.models.deletion.PROTECT,
                        related_name="packet_stocks",
                        to="suppliers.supplier",
                    ),
                ),
            ],
            options={
                "ordering": ["created_at"],
                "indexes": [
                    models.Index(fields=["product", "is_active"], name="packet_product_active_idx"),
                    models.Index(fields=["supplier", "product"], name="packet_supplier_product_idx"),
                ],
                "constraints": [
                    models.CheckConstraint(
                        condition=models.Q(items_per_packet__gt=0),
                        name="chk_packet_items_per_packet_gt_zero",
                    ),
                    models.CheckConstraint(
                        condition=models.Q(is_loose=False) | models.Q(items_per_packet=1),
                        name="chk_packet_loose_single_item",
                    ),
                ],
            },
        ),
    ]
