from .stock_fifo import consume_fifo, consume_from_batch
from .stock_intake import add_batch
from .stock_sync import (
    check_batch_consistency,
    get_low_stock_alerts,
    reconcile_stock,
    validate_stock_sync,
)
from .variants import (
    deduct_variant_cells,
    merge_incoming_variants,
    reduce_variant,
    release_variant,
    reserve_variant,
)

__all__ = [
    "add_batch",
    "consume_fifo",
    "consume_from_batch",
    "reserve_variant",
    "release_variant",
    "reduce_variant",
    "merge_incoming_variants",
    "deduct_variant_cells",
    "validate_stock_sync",
    "reconcile_stock",
    "check_batch_consistency",
    "get_low_stock_alerts",
]
