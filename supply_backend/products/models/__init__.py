"""
PATH: products/models/__init__.py

Products models export surface.

Note:
- Keep this file *imports-only* (no business logic).
"""

from .inventory import Inventory
from .product import Product
from .stock_batch import PurchaseBatch
from .stock_movement import StockMovement
from .variant_stock import VariantStock

__all__ = [
    "Product",
    "Inventory",
    "PurchaseBatch",
    "StockMovement",
    "VariantStock",
]
