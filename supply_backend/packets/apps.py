# packets/apps.py

from django.apps import AppConfig


class PacketsConfig(AppConfig):
    """
    Barcoded packet stock.

    Only the aggregate (available_packets x items_per_packet) and the two
    stock hooks used by order confirmation and returns live here.
    """

    default_auto_field = "django.db.models.BigAutoField"
    name = "packets"
    verbose_name = "Packet Stock"
