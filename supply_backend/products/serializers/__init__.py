# products/serializers/__init__.py

from .product import (
    InventorySerializer,
    ProductSerializer,
    ReconcileSerializer,
    VariantActionSerializer,
    VariantStockSerializer,
)
from .stock import PurchaseBatchSerializer, StockMovementSerializer

__all__ = [
    "InventorySerializer",
    "ProductSerializer",
    "PurchaseBatchSerializer",
    "ReconcileSerializer",
    "StockMovementSerializer",
    "VariantActionSerializer",
    "VariantStockSerializer",
]
