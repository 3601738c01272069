# products/management/commands/check_stock_sync.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from products.models import Inventory
from products.services.stock_sync import reconcile_stock, validate_stock_sync


class Command(BaseCommand):
    help = "Compare inventory current_stock with packet stock; optionally reconcile from packets."

    def add_arguments(self, parser):
        parser.add_argument(
            "--reconcile",
            action="store_true",
            help="Set current_stock to the packet item total for every out-of-sync product.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if anything is out of sync and was not reconciled.",
        )

    def handle(self, *args, **options):
        do_reconcile = bool(options.get("reconcile"))
        strict = bool(options.get("strict"))

        self.stdout.write(self.style.MIGRATE_HEADING("Inventory / packet stock sync"))

        out_of_sync = 0
        reconciled = 0
        for inventory in Inventory.objects.select_related("product").filter(is_active=True):
            result = validate_stock_sync(inventory.product)
            if result["is_valid"]:
                continue

            out_of_sync += 1
            self.stderr.write(
                self.style.WARNING(f"[DIFF] {inventory.product.code}: {result['message']}")
            )

            if do_reconcile:
                outcome = reconcile_stock(inventory.product, source="packets")
                reconciled += 1
                self.stdout.write(
                    f"  reconciled {outcome['previous_stock']} -> {outcome['new_stock']}"
                )

        self.stdout.write("")
        if out_of_sync == 0:
            self.stdout.write(self.style.SUCCESS("[OK] Inventory and packet stock are in sync"))
        elif do_reconcile:
            self.stdout.write(self.style.SUCCESS(f"Reconciled {reconciled} product(s)"))
        else:
            self.stderr.write(self.style.ERROR(f"{out_of_sync} product(s) out of sync"))

        if strict and out_of_sync and not do_reconcile:
            raise SystemExit(1)
