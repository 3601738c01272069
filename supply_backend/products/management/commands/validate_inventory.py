# products/management/commands/validate_inventory.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from products.models import Inventory
from products.services.stock_sync import check_batch_consistency


class Command(BaseCommand):
    help = "Validate inventory integrity (current_stock vs batch remaining, variant totals)."

    def add_arguments(self, parser):
        parser.add_argument(
            "--product",
            dest="product_id",
            help="Only check one product (UUID).",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Fail (non-zero exit) if any inconsistency is found.",
        )

    def handle(self, *args, **options):
        strict = bool(options.get("strict"))

        qs = Inventory.objects.select_related("product").order_by("product__code")
        if options.get("product_id"):
            qs = qs.filter(product_id=options["product_id"])

        self.stdout.write(self.style.MIGRATE_HEADING("Inventory batch ledger validation"))
        self.stdout.write(f"Inventory records: {qs.count()}")
        self.stdout.write("")

        errors = 0
        for inventory in qs:
            result = check_batch_consistency(inventory.product)
            label = f"{inventory.product.code} ({inventory.product_id})"

            if not result["is_consistent"]:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"[FAIL] {label}: current_stock={result['current_stock']} "
                        f"batch_total={result['batch_total']} difference={result['difference']}"
                    )
                )

            if result.get("variants_consistent") is False:
                errors += 1
                self.stderr.write(
                    self.style.ERROR(
                        f"[FAIL] {label}: variant_total={result['variant_total']} "
                        f"current_stock={result['current_stock']}"
                    )
                )

        self.stdout.write("")
        if errors == 0:
            self.stdout.write(self.style.SUCCESS("[OK] Inventory matches its batches"))
        else:
            self.stderr.write(self.style.ERROR(f"VALIDATION FOUND ISSUES: {errors} problem(s)"))

        return self._exit(strict and errors > 0)

    def _exit(self, fail: bool):
        if fail:
            raise SystemExit(1)
        return None
