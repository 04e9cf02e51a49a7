# purchases/services/supplier_service.py

from __future__ import annotations

import logging

from django.db import transaction

from accounting.services.balances import opening_balance_changed
from purchases.models import Supplier
from store.services.concurrency import check_expected_version

logger = logging.getLogger("ledger")

EDITABLE_FIELDS = ("name", "phone", "email", "address", "gstin", "is_active")


class SupplierError(ValueError):
    pass


def _check_name(name: str, *, exclude_pk=None) -> str:
    name = (name or "").strip()
    if not name:
        raise SupplierError("name is required")
    qs = Supplier.objects.filter(name__iexact=name)
    if exclude_pk is not None:
        qs = qs.exclude(pk=exclude_pk)
    if qs.exists():
        raise SupplierError(f"Supplier '{name}' already exists")
    return name


@transaction.atomic
def create_supplier(*, data: dict) -> Supplier:
    """A new supplier starts with balance = opening_balance."""
    fields = {k: v for k, v in data.items() if k in EDITABLE_FIELDS}
    fields["name"] = _check_name(fields.get("name"))
    opening = data.get("opening_balance") or 0

    supplier = Supplier(**fields, opening_balance=opening, balance=opening)
    supplier.full_clean(validate_constraints=False)
    supplier.save()

    logger.info(
        "Supplier created",
        extra={"supplier_id": str(supplier.pk), "opening_balance": str(supplier.opening_balance)},
    )
    return supplier


@transaction.atomic
def update_supplier(*, supplier_id, data: dict, expected_version=None) -> Supplier:
    supplier = Supplier.objects.select_for_update().filter(pk=supplier_id).first()
    if supplier is None:
        raise SupplierError(f"Supplier not found: {supplier_id}")
    check_expected_version(supplier, expected_version)

    old_opening = supplier.opening_balance
    changed = [k for k in EDITABLE_FIELDS if k in data]
    if "name" in data:
        data = {**data, "name": _check_name(data["name"], exclude_pk=supplier.pk)}
    for key in changed:
        setattr(supplier, key, data[key])

    if changed:
        supplier.full_clean(validate_constraints=False)
        Supplier.objects.filter(pk=supplier.pk).update(**{k: getattr(supplier, k) for k in changed})

    if "opening_balance" in data and data["opening_balance"] != old_opening:
        Supplier.objects.filter(pk=supplier.pk).update(opening_balance=data["opening_balance"])
        opening_balance_changed(supplier, old_opening, data["opening_balance"])

    supplier.refresh_from_db()
    return supplier
