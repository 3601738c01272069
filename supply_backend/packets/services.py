# packets/services.py

"""
PACKET STOCK HOOKS

- register_item_packets(): on order confirmation, materialize packet rows for one
  order line so the packet aggregate matches the stock that just came in.
- remove_items(): on supplier return, take items out of packet stock
  (loose rows first, then whole packets, then one packet broken open for
  the remainder; its unreturned items become a loose row).

Packet CRUD, barcode printing and packet sales are handled elsewhere.
"""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field

from django.db import transaction

from packets.models import PacketStock

logger = logging.getLogger("inventory")


class PacketStockError(ValueError):
    pass


def generate_barcode(*, product_code: str) -> str:
    code = "".join(ch for ch in (product_code or "").upper() if ch.isalnum())[:16] or "ITEM"
    return f"PKT-{code}-{uuid.uuid4().hex[:10].upper()}"


def _composition_key(composition) -> str:
    rows = sorted(
        (str(r.get("size", "")).strip(), str(r.get("color", "")).strip(), int(r.get("quantity") or 0))
        for r in composition or []
    )
    return json.dumps(rows)


def packet_items(packets) -> int:
    total = 0
    for packet in packets or []:
        count = int(packet.get("count") or 1)
        total += count * sum(int(r.get("quantity") or 0) for r in packet.get("composition") or [])
    return total


@transaction.atomic
def register_item_packets(
    *,
    product,
    supplier,
    dispatch_order_id,
    packets,
    quantity: int,
) -> list[PacketStock]:
    """
    packets: [{"composition": [{size, color, quantity}], "count": n}, ...]

    Identical compositions are grouped into one row. Any units of `quantity`
    not covered by packets become a loose row.
    """
    packed_items = packet_items(packets)
    if packed_items > quantity:
        raise PacketStockError(
            f"Packet composition covers {packed_items} items but only {quantity} were confirmed"
        )

    grouped: dict[str, dict] = {}
    for packet in packets or []:
        composition = [
            {
                "size": str(r.get("size", "")).strip(),
                "color": str(r.get("color", "")).strip(),
                "quantity": int(r.get("quantity") or 0),
            }
            for r in packet.get("composition") or []
        ]
        key = _composition_key(composition)
        slot = grouped.setdefault(key, {"composition": composition, "count": 0})
        slot["count"] += int(packet.get("count") or 1)

    rows = []
    for slot in grouped.values():
        items_per_packet = sum(r["quantity"] for r in slot["composition"])
        if items_per_packet <= 0:
            continue
        rows.append(
            PacketStock.objects.create(
                product=product,
                supplier=supplier,
                dispatch_order_id=dispatch_order_id,
                barcode=generate_barcode(product_code=product.code),
                composition=slot["composition"],
                items_per_packet=items_per_packet,
                available_packets=slot["count"],
            )
        )

    loose = quantity - packed_items
    if loose > 0:
        rows.append(
            PacketStock.objects.create(
                product=product,
                supplier=supplier,
                dispatch_order_id=dispatch_order_id,
                barcode=generate_barcode(product_code=product.code),
                items_per_packet=1,
                available_packets=loose,
                is_loose=True,
            )
        )

    return rows


def _split_cells(composition, count: int) -> tuple[list[dict], list[dict]]:
    """Take `count` items off a composition in row order: (taken, left)."""
    need = int(count)
    taken, left = [], []
    for r in composition or []:
        qty = int(r.get("quantity") or 0)
        take = min(qty, need)
        need -= take
        if take:
            taken.append({"size": r.get("size", ""), "color": r.get("color", ""), "quantity": take})
        if qty - take:
            left.append({"size": r.get("size", ""), "color": r.get("color", ""), "quantity": qty - take})
    return taken, left


def _scaled(composition, times: int) -> list[dict]:
    return [
        {"size": r.get("size", ""), "color": r.get("color", ""), "quantity": int(r.get("quantity") or 0) * times}
        for r in composition or []
    ]


@dataclass
class PacketRemoval:
    """
    What remove_items() took out of packet stock.

    cells lists the (size, color) units removed where the packet composition
    names them; loose rows registered without a composition add to `removed`
    only.
    """

    requested: int
    removed: int = 0
    broken_packets: int = 0
    cells: list[dict] = field(default_factory=list)

    @property
    def shortfall(self) -> int:
        return self.requested - self.removed


def _break_packet(row: PacketStock, count: int) -> list[dict]:
    """
    Open one packet of `row`: `count` items leave, the rest of the packet
    becomes a new loose row carrying its share of the composition.
    """
    taken, left = _split_cells(row.composition, count)

    row.available_packets = int(row.available_packets) - 1
    row.save(update_fields=["available_packets", "updated_at"])

    leftover = int(row.items_per_packet) - count
    if leftover > 0:
        PacketStock.objects.create(
            product_id=row.product_id,
            supplier_id=row.supplier_id,
            dispatch_order_id=row.dispatch_order_id,
            barcode=generate_barcode(product_code=row.product.code),
            composition=left,
            items_per_packet=1,
            available_packets=leftover,
            is_loose=True,
        )

    logger.info(
        "Packet broken for partial removal",
        extra={
            "product_id": str(row.product_id),
            "packet_id": str(row.pk),
            "removed": count,
            "loose_created": leftover,
        },
    )
    return taken


@transaction.atomic
def remove_items(*, product, quantity: int, supplier=None) -> PacketRemoval:
    """
    Remove up to `quantity` items: loose rows first, then whole packets,
    then one packet is broken for a remainder smaller than any packet.

    A shortfall (not enough packet stock at all) is logged and left for
    stock sync to report.
    """
    result = PacketRemoval(requested=int(quantity))
    remaining = int(quantity)

    qs = PacketStock.objects.select_for_update().select_related("product").filter(
        product_id=getattr(product, "pk", product),
        is_active=True,
        available_packets__gt=0,
    )
    if supplier is not None:
        qs = qs.filter(supplier_id=getattr(supplier, "pk", supplier))
    rows = list(qs.order_by("-is_loose", "created_at"))

    for row in rows:
        if remaining <= 0:
            break
        take = min(int(row.available_packets), remaining // int(row.items_per_packet))
        if take <= 0:
            continue

        items = take * int(row.items_per_packet)
        if row.is_loose:
            taken, left = _split_cells(row.composition, items)
            row.composition = left
        else:
            taken = _scaled(row.composition, take)
        result.cells.extend(taken)

        row.available_packets = int(row.available_packets) - take
        row.save(update_fields=["available_packets", "composition", "updated_at"])
        remaining -= items

    # every row still holding stock now has more items per packet than remain
    if remaining > 0:
        packed = next((r for r in rows if not r.is_loose and r.available_packets > 0), None)
        if packed is not None:
            result.cells.extend(_break_packet(packed, remaining))
            result.broken_packets = 1
            remaining = 0

    result.removed = int(quantity) - remaining
    if remaining > 0:
        logger.warning(
            "Packet stock could not absorb full removal",
            extra={
                "product_id": str(getattr(product, "pk", product)),
                "requested": int(quantity),
                "removed": result.removed,
            },
        )
    return result
