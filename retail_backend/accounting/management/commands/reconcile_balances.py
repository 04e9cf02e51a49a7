# accounting/management/commands/reconcile_balances.py

from __future__ import annotations

from django.core.management.base import BaseCommand

from accounting.services.reconciliation import find_balance_drift


class Command(BaseCommand):
    help = "Recompute customer/supplier balances from their ledgers and report (or repair) drift."

    def add_arguments(self, parser):
        parser.add_argument(
            "--repair",
            action="store_true",
            help="Rewrite drifted balances with the recomputed value.",
        )
        parser.add_argument(
            "--strict",
            action="store_true",
            help="Exit non-zero if any drift is found (without --repair).",
        )

    def handle(self, *args, **options):
        repair = bool(options.get("repair"))
        strict = bool(options.get("strict"))

        self.stdout.write("Recomputing balances from ledgers...")
        drifts = find_balance_drift(repair=repair)

        for d in drifts:
            line = (
                f"{d.kind:<8} {d.name:<30} stored={d.stored_balance} "
                f"expected={d.expected_balance} diff={d.difference}"
            )
            self.stdout.write(self.style.WARNING(line))

        if not drifts:
            self.stdout.write(self.style.SUCCESS("All balances match their ledgers."))
            return

        if repair:
            self.stdout.write(self.style.SUCCESS(f"Repaired {len(drifts)} balance(s)."))
            return

        self.stdout.write(self.style.ERROR(f"{len(drifts)} balance(s) drifted. Re-run with --repair to fix."))
        if strict:
            raise SystemExit(1)
