# purchases/admin.py

from django.contrib import admin

from purchases.models import DispatchOrder, DispatchOrderItem, SupplierReturn, SupplierReturnItem


class DispatchOrderItemInline(admin.TabularInline):
    model = DispatchOrderItem
    extra = 0
    readonly_fields = ("product", "batch", "landed_price", "confirmed_quantity")


@admin.register(DispatchOrder)
class DispatchOrderAdmin(admin.ModelAdmin):
    list_display = ("order_number", "supplier", "status", "total_boxes", "confirmed_at", "created_at")
    list_filter = ("status",)
    search_fields = ("order_number", "supplier__name")
    readonly_fields = ("status", "confirmed_at", "confirmed_by")
    inlines = [DispatchOrderItemInline]


class SupplierReturnItemInline(admin.TabularInline):
    model = SupplierReturnItem
    extra = 0
    readonly_fields = ("order_item", "product", "quantity", "unit_cost", "line_value", "batch_deductions")


@admin.register(SupplierReturn)
class SupplierReturnAdmin(admin.ModelAdmin):
    list_display = ("return_number", "supplier", "return_type", "total_value", "returned_at")
    list_filter = ("return_type", "stock_applied")
    search_fields = ("return_number", "supplier__name")
    inlines = [SupplierReturnItemInline]
