# packets/admin.py

from django.contrib import admin

from packets.models import PacketStock


@admin.register(PacketStock)
class PacketStockAdmin(admin.ModelAdmin):
    list_display = ("barcode", "product", "items_per_packet", "available_packets", "is_loose", "is_active")
    list_filter = ("is_loose", "is_active")
    search_fields = ("barcode", "product__name", "product__code")
