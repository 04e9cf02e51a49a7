# store/services/concurrency.py

"""
OPTIMISTIC CONCURRENCY (compare-and-swap on a version column)

Rows that carry running totals (batch stock, counterparty balances, bills)
have a `version` integer. Every write goes through a conditional UPDATE:

    UPDATE ... SET <changes>, version = version + 1
    WHERE id = <pk> AND version = <expected>

Zero rows updated means another writer got there first; the caller's
transaction must roll back.
"""

from __future__ import annotations

import logging

from django.db.models import F

logger = logging.getLogger("stock")


class ConcurrentUpdateError(Exception):
    """Raised when a row changed between read and compare-and-swap write."""

    def __init__(self, model_label: str, pk, expected_version):
        self.model_label = model_label
        self.pk = pk
        self.expected_version = expected_version
        super().__init__(
            f"{model_label} {pk} was modified concurrently "
            f"(expected version {expected_version}). Reload and retry."
        )


def check_expected_version(instance, expected_version) -> None:
    """
    Client-supplied guard (e.g. `expected_version` on an edit request).
    None means the client did not ask for a check.
    """
    if expected_version is None:
        return
    if int(expected_version) != int(instance.version):
        raise ConcurrentUpdateError(instance._meta.label, instance.pk, expected_version)


def cas_update(model, *, pk, expected_version: int, **changes) -> int:
    """
    Apply `changes` to one row only if its version still equals
    `expected_version`. Returns the new version.
    """
    updated = model.objects.filter(pk=pk, version=expected_version).update(
        version=F("version") + 1, **changes
    )
    if updated != 1:
        logger.warning(
            "Compare-and-swap lost",
            extra={"model": model._meta.label, "pk": str(pk), "expected_version": expected_version},
        )
        raise ConcurrentUpdateError(model._meta.label, pk, expected_version)
    return expected_version + 1
