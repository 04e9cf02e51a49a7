# sales/services/customers.py

"""
CUSTOMER MASTER

A new customer starts with balance = opening_balance. Editing the opening
balance moves the running balance by the same difference; the balance
column itself is never accepted from a client.
"""

from __future__ import annotations

import logging

from django.db import transaction

from accounting.services.balances import opening_balance_changed
from sales.models import Customer
from sales.services.exceptions import CustomerError
from store.services.concurrency import check_expected_version

logger = logging.getLogger("ledger")

EDITABLE_FIELDS = ("name", "phone", "address", "gstin", "is_active")


@transaction.atomic
def create_customer(*, data: dict) -> Customer:
    opening = data.get("opening_balance") or 0
    customer = Customer(
        **{k: v for k, v in data.items() if k in EDITABLE_FIELDS},
        opening_balance=opening,
        balance=opening,
    )
    customer.full_clean()
    customer.save()
    logger.info(
        "Customer created",
        extra={"customer_id": str(customer.pk), "opening_balance": str(customer.opening_balance)},
    )
    return customer


@transaction.atomic
def update_customer(*, customer_id, data: dict, expected_version=None) -> Customer:
    customer = Customer.objects.select_for_update().filter(pk=customer_id).first()
    if customer is None:
        raise CustomerError(f"Customer not found: {customer_id}")
    check_expected_version(customer, expected_version)

    old_opening = customer.opening_balance
    changed = [k for k in EDITABLE_FIELDS if k in data]
    for key in changed:
        setattr(customer, key, data[key])

    if changed:
        customer.full_clean()
        Customer.objects.filter(pk=customer.pk).update(
            **{k: getattr(customer, k) for k in changed}
        )

    if "opening_balance" in data and data["opening_balance"] != old_opening:
        Customer.objects.filter(pk=customer.pk).update(opening_balance=data["opening_balance"])
        opening_balance_changed(customer, old_opening, data["opening_balance"])

    customer.refresh_from_db()
    return customer
