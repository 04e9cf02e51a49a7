# accounting/services/reconciliation.py

"""
BALANCE DRIFT DETECTION

The stored Customer.balance / Supplier.balance is a running total kept by
accounting.services.balances. This job recomputes what it should be:

    expected = opening_balance + sum(credits) - sum(settlements)

(the all-time closing balance of the ledger) and reports every row where
the stored value differs. With repair=True the stored value is rewritten.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal

from django.db import transaction

from accounting.services.ledger import (
    CUSTOMER,
    SUPPLIER,
    customer_entry_map,
    reconcile,
    supplier_entry_map,
)
from purchases.models import Supplier
from sales.models import Customer
from store.services.concurrency import cas_update

logger = logging.getLogger("ledger")


@dataclass(frozen=True)
class BalanceDrift:
    kind: str
    counterparty_id: object
    name: str
    stored_balance: Decimal
    expected_balance: Decimal
    repaired: bool = False

    @property
    def difference(self) -> Decimal:
        return self.stored_balance - self.expected_balance

    def as_dict(self) -> dict:
        return {
            "kind": self.kind,
            "id": str(self.counterparty_id),
            "name": self.name,
            "stored_balance": str(self.stored_balance),
            "expected_balance": str(self.expected_balance),
            "difference": str(self.difference),
            "repaired": self.repaired,
        }


def _scan(kind: str, model, parties, entry_map, *, repair: bool) -> list[BalanceDrift]:
    drifts = []
    for party in parties:
        credits, settlements = entry_map[party.pk]
        expected = reconcile(
            opening_balance=party.opening_balance,
            credits=credits,
            settlements=settlements,
        ).closing_balance

        if party.balance == expected:
            continue

        if repair:
            cas_update(model, pk=party.pk, expected_version=party.version, balance=expected)

        drift = BalanceDrift(
            kind=kind,
            counterparty_id=party.pk,
            name=party.name,
            stored_balance=party.balance,
            expected_balance=expected,
            repaired=repair,
        )
        logger.warning("Balance drift detected", extra=drift.as_dict())
        drifts.append(drift)
    return drifts


@transaction.atomic
def find_balance_drift(*, repair: bool = False) -> list[BalanceDrift]:
    customers = list(Customer.objects.all().order_by("name"))
    suppliers = list(Supplier.objects.all().order_by("name"))

    drifts = _scan(
        CUSTOMER, Customer, customers, customer_entry_map(customers), repair=repair
    )
    drifts += _scan(
        SUPPLIER, Supplier, suppliers, supplier_entry_map(suppliers), repair=repair
    )

    logger.info(
        "Balance reconciliation finished",
        extra={
            "customers": len(customers),
            "suppliers": len(suppliers),
            "drifted": len(drifts),
            "repair": repair,
        },
    )
    return drifts
