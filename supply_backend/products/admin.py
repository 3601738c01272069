# products/admin.py
"""
=====================================================
PATH: products/admin.py
=====================================================

Admin rules (audit-safe):

- Stock enters only through order confirmation (or add_batch in services),
  never by editing rows here.
- PurchaseBatch and StockMovement are view-only audit artifacts.
- Inventory aggregates are read-only; reorder levels stay editable.
"""

from __future__ import annotations

from django.contrib import admin

from products.models import Inventory, Product, PurchaseBatch, StockMovement, VariantStock


class ReadOnlyAdmin(admin.ModelAdmin):
    def has_add_permission(self, request):
        return False

    def has_change_permission(self, request, obj=None):
        return False if obj else True

    def has_delete_permission(self, request, obj=None):
        return False


# =====================================================
# PRODUCT
# =====================================================

@admin.register(Product)
class ProductAdmin(admin.ModelAdmin):
    list_display = ("sku", "code", "name", "supplier", "category", "season", "cost_price", "is_active")
    list_filter = ("is_active", "category", "season")
    search_fields = ("sku", "code", "name")
    ordering = ("-created_at",)
    readonly_fields = ("sku", "created_at", "updated_at")


# =====================================================
# INVENTORY + VARIANTS
# =====================================================

class VariantStockInline(admin.TabularInline):
    model = VariantStock
    extra = 0
    can_delete = False
    readonly_fields = ("size", "color", "quantity", "reserved_quantity", "updated_at")


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = (
        "product",
        "current_stock",
        "reserved_stock",
        "average_cost_price",
        "stock_status",
        "variant_tracking",
        "last_stock_update",
    )
    list_filter = ("is_active", "variant_tracking")
    search_fields = ("product__name", "product__sku")
    readonly_fields = (
        "product",
        "current_stock",
        "reserved_stock",
        "average_cost_price",
        "variant_tracking",
        "last_stock_update",
        "created_at",
        "updated_at",
    )
    inlines = [VariantStockInline]


# =====================================================
# BATCHES / MOVEMENTS (VIEW-ONLY)
# =====================================================

@admin.register(PurchaseBatch)
class PurchaseBatchAdmin(ReadOnlyAdmin):
    list_display = (
        "product",
        "supplier",
        "batch_number",
        "purchase_date",
        "quantity",
        "remaining_quantity",
        "cost_price",
        "landed_price",
    )
    list_filter = ("purchase_date",)
    search_fields = ("batch_number", "product__name", "product__sku")
    ordering = ("purchase_date", "created_at")


@admin.register(StockMovement)
class StockMovementAdmin(ReadOnlyAdmin):
    list_display = ("product", "batch", "movement_type", "quantity", "reference", "reference_id", "created_at")
    list_filter = ("movement_type", "reference")
    search_fields = ("product__name", "product__sku", "notes")
    ordering = ("-created_at",)
