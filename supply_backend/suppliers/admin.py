# suppliers/admin.py

from django.contrib import admin

from suppliers.models import LogisticsCompany, Supplier


@admin.register(Supplier)
class SupplierAdmin(admin.ModelAdmin):
    list_display = ("name", "company", "phone", "is_active", "created_at")
    list_filter = ("is_active",)
    search_fields = ("name", "company", "phone", "email")


@admin.register(LogisticsCompany)
class LogisticsCompanyAdmin(admin.ModelAdmin):
    list_display = ("name", "code", "box_rate", "is_active")
    list_filter = ("is_active",)
    search_fields = ("name", "code")
